from datetime import timedelta
from decimal import Decimal

from carteira.domain.models import CommissionType, DistratoStep, Severity
from carteira.usecases.relatorios import COLUNAS_COMISSOES


def _nomes(clientes):
    return sorted(cl.name for cl in clientes)


def _seed_carteira(ciclo):
    a = ciclo.register_client("A", "30", "1000", ["trafego"])
    b = ciclo.register_client("B", "30", "2000", ["trafego", "social"])
    c = ciclo.register_client("C", "30", "500", ["social"])
    return a, b, c


def test_listar_clientes_caminho_global(ciclo):
    a, b, c = _seed_carteira(ciclo)
    ciclo.initiate_global_churn(c.id)
    res = ciclo.list_clients()
    assert _nomes(res["ativos"]) == ["A", "B"]
    assert _nomes(res["churn"]) == ["C"]


def test_listar_clientes_por_produto_independe_do_global(ciclo):
    a, b, c = _seed_carteira(ciclo)
    ciclo.initiate_product_churn(a.id, "trafego", "1000", has_valid_contract=False)

    por_produto = ciclo.list_clients("trafego")
    assert _nomes(por_produto["ativos"]) == ["B"]
    assert _nomes(por_produto["churn"]) == ["A"]

    # no caminho global, A continua ativo
    assert "A" in _nomes(ciclo.list_clients()["ativos"])
    # e segue ativo para outro produto
    assert _nomes(ciclo.list_clients("social")["ativos"]) == ["B", "C"]


def test_produto_de_servico_lista_todos(ciclo):
    a, b, c = _seed_carteira(ciclo)
    ciclo.initiate_product_churn(b.id, "design", "300", has_valid_contract=False)
    res = ciclo.list_clients("design")
    assert _nomes(res["ativos"]) == ["A", "C"]
    assert _nomes(res["churn"]) == ["B"]


def test_comissoes_por_destinatario_e_mes(ciclo):
    a, _, _ = _seed_carteira(ciclo)
    ciclo.register_sale(a.id, "1000.00")
    up = ciclo.register_upsell(a.id, "social", "500.00")

    df = ciclo.commissions_by_recipient_month()
    assert list(df.columns) == COLUNAS_COMISSOES
    linhas = {r["recipient_role"]: r for r in df.to_dict(orient="records")}
    assert set(linhas) == {"gestor_ads", "sucesso_cliente", "consultor_comercial"}
    assert all(r["ano_mes"] == "2024-01" for r in linhas.values())
    assert linhas["gestor_ads"]["total"] == Decimal("100.00")
    assert linhas["sucesso_cliente"]["total"] == Decimal("135.00")
    assert linhas["sucesso_cliente"]["quantidade"] == 2
    assert linhas["consultor_comercial"]["pendente"] == Decimal("100.00")

    com = ciclo.commissions_for(CommissionType.UPSELL, up.id)[0]
    ciclo.mark_commission_paid(com.id)
    linhas = {r["recipient_role"]: r for r in ciclo.commissions_by_recipient_month("2024-01").to_dict(orient="records")}
    assert linhas["sucesso_cliente"]["pago"] == Decimal("35.00")
    assert linhas["sucesso_cliente"]["pendente"] == Decimal("100.00")


def test_comissoes_mes_sem_dados(ciclo):
    a, _, _ = _seed_carteira(ciclo)
    ciclo.register_sale(a.id, "1000.00")
    df = ciclo.commissions_by_recipient_month("2023-12")
    assert df.empty
    assert list(df.columns) == COLUNAS_COMISSOES


def test_comissoes_separadas_por_mes(ciclo, relogio):
    a, _, _ = _seed_carteira(ciclo)
    ciclo.register_sale(a.id, "300.00")
    relogio.avancar(days=31)
    ciclo.register_sale(a.id, "600.00")
    df = ciclo.commissions_by_recipient_month()
    gestor = df[df["recipient_role"] == "gestor_ads"]
    assert list(gestor["ano_mes"]) == ["2024-02", "2024-01"]
    assert list(gestor["total"]) == [Decimal("60.00"), Decimal("30.00")]


def test_plano_ativo_por_cliente(ciclo):
    a, b, _ = _seed_carteira(ciclo)
    antigo = ciclo.create_action_plan(a.id, "performance", "leve", ["x"])
    novo = ciclo.create_action_plan(a.id, "estrategia", "moderado", ["y"])
    outro = ciclo.create_action_plan(b.id, "valor_percebido", Severity.CRITICO, ["z"])
    ciclo.update_action_plan_status(outro.id, "cancelled")

    ativos = ciclo.active_plan_by_client()
    assert set(ativos) == {a.id}
    assert ativos[a.id].id == novo.id != antigo.id


def test_resumo_mensal(ciclo, relogio):
    a, b, c = _seed_carteira(ciclo)
    ciclo.initiate_global_churn(a.id)
    ciclo.initiate_product_churn(b.id, "social", "400", has_valid_contract=False)

    resumo = ciclo.monthly_summary("2024-01")
    assert resumo["entradas"] == 3
    assert resumo["valor_entradas"] == Decimal("3500")
    assert resumo["churns_globais"] == 1
    assert resumo["churns_produto"] == 1
    assert resumo["valor_perdido"] == Decimal("1400")

    vazio = ciclo.monthly_summary("2024-02")
    assert vazio["entradas"] == 0
    assert vazio["valor_perdido"] == Decimal("0")


def test_notificacoes_mais_recentes_primeiro(ciclo, relogio):
    a, b, _ = _seed_carteira(ciclo)
    ciclo.initiate_global_churn(a.id)
    relogio.avancar(hours=1)
    ciclo.initiate_product_churn(b.id, "social", "400", has_valid_contract=False, product_name="Social")
    notas = ciclo.churn_notifications()
    assert [n.client_name for n in notas] == ["B (Social)", "A"]


def test_churns_em_aberto(ciclo, relogio):
    a, b, c = _seed_carteira(ciclo)
    ciclo.initiate_global_churn(a.id)
    relogio.avancar(hours=1)
    ciclo.initiate_global_churn(c.id)
    ciclo.advance_distrato_step(c.id)
    ciclo.finalize_churn(c.id)
    churn_b = ciclo.initiate_product_churn(b.id, "social", "400", has_valid_contract=True, product_name="Social")

    abertos = ciclo.open_churns()
    assert abertos["globais"] == [
        {"client_id": a.id, "cliente": "A", "etapa": DistratoStep.SEM_CONTRATO_SOLICITADO, "desde": relogio.agora - timedelta(hours=1)},
    ]
    [produto] = abertos["produtos"]
    assert produto["churn_id"] == churn_b.id
    assert produto["cliente"] == "B"
    assert produto["produto"] == "Social"
    assert produto["valor_mensal"] == Decimal("400")
    assert produto["contrato_valido"] is True
    assert produto["etapa"] == DistratoStep.CHURN_SOLICITADO

    ciclo.restore_client(a.id)
    for _ in range(3):
        ciclo.advance_product_churn_step(churn_b.id)
    ciclo.finalize_product_churn(churn_b.id)
    assert ciclo.open_churns() == {"globais": [], "produtos": []}
