from decimal import Decimal
from pathlib import Path

import pandas as pd
import pytest

from carteira.domain.errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from carteira.domain.models import CommissionStatus, CommissionType, RecipientRole
from carteira.infra.db import connect
from carteira.usecases.vendas import _gravar_comissoes


def _count(db_path: str, table: str) -> int:
    with connect(db_path) as c:
        return c.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


def _seed_cliente(ciclo, pct="30", nome="Acme"):
    return ciclo.register_client(nome, sales_percentage=pct, monthly_value="2000.00")


def test_venda_gera_tres_comissoes_pendentes(ciclo):
    cl = _seed_cliente(ciclo)
    sale = ciclo.register_sale(cl.id, Decimal("1000.00"))

    assert sale.value == Decimal("1000.00")
    assert sale.commission_percentage == Decimal("30")
    assert sale.sale_date.isoformat() == "2024-01-01"

    comissoes = ciclo.commissions_for(CommissionType.SALE, sale.id)
    assert [c.value for c in comissoes] == [Decimal("100.00")] * 3
    assert {c.recipient_role for c in comissoes} == set(RecipientRole)
    assert all(c.status == CommissionStatus.PENDING for c in comissoes)
    assert all(c.client_id == cl.id for c in comissoes)


def test_venda_com_sobra_de_centavos(ciclo):
    cl = _seed_cliente(ciclo, pct="10")
    sale = ciclo.register_sale(cl.id, "100,01")
    valores = [c.value for c in ciclo.commissions_for(CommissionType.SALE, sale.id)]
    assert valores == [Decimal("3.34"), Decimal("3.33"), Decimal("3.33")]
    assert sum(valores) == Decimal("10.00")


def test_cliente_com_percentual_zero_vende_sem_comissao(ciclo, db_path):
    cl = _seed_cliente(ciclo, pct="0")
    sale = ciclo.register_sale(cl.id, "500")
    assert sale.id is not None
    assert ciclo.commissions_for(CommissionType.SALE, sale.id) == []
    assert _count(db_path, "commissions") == 0


@pytest.mark.parametrize("valor", ["0", "-10", "abc", float("nan"), float("inf"), Decimal("NaN")])
def test_venda_com_valor_invalido(ciclo, db_path, valor):
    cl = _seed_cliente(ciclo)
    with pytest.raises(ValidationError):
        ciclo.register_sale(cl.id, valor)
    assert _count(db_path, "client_sales") == 0
    assert _count(db_path, "commissions") == 0


def test_venda_cliente_inexistente(ciclo):
    with pytest.raises(NotFoundError):
        ciclo.register_sale(999, "100")


def test_comissao_duplicada_vira_conflito(ciclo, db_path):
    cl = _seed_cliente(ciclo)
    sale = ciclo.register_sale(cl.id, "1000")
    row = {
        "type": CommissionType.SALE,
        "source_id": sale.id,
        "client_id": cl.id,
        "value": Decimal("1.00"),
        "recipient_role": RecipientRole.GESTOR_ADS,
        "created_at": "2024-01-01T12:00:00+00:00",
    }
    with pytest.raises(ConflictError):
        with connect(db_path) as c:
            _gravar_comissoes(c, [row])
    assert _count(db_path, "commissions") == 3


def test_upsell_gera_uma_comissao_de_sete_por_cento(ciclo):
    cl = _seed_cliente(ciclo)
    up = ciclo.register_upsell(cl.id, "social", Decimal("500.00"), product_name="Social Media", sold_by="ana")
    comissoes = ciclo.commissions_for(CommissionType.UPSELL, up.id)
    assert len(comissoes) == 1
    com = comissoes[0]
    assert com.value == Decimal("35.00")
    assert com.status == CommissionStatus.PENDING
    assert com.recipient_role == RecipientRole.SUCESSO_CLIENTE
    assert com.recipient == "ana"


def test_upsell_com_papel_do_vendedor(ciclo):
    cl = _seed_cliente(ciclo)
    up = ciclo.register_upsell(cl.id, "social", "300", seller_role=RecipientRole.CONSULTOR_COMERCIAL)
    com = ciclo.commissions_for(CommissionType.UPSELL, up.id)[0]
    assert com.recipient_role == RecipientRole.CONSULTOR_COMERCIAL
    assert com.value == Decimal("21.00")


def test_upsell_com_papel_desconhecido(ciclo, db_path):
    cl = _seed_cliente(ciclo)
    with pytest.raises(ValidationError, match="estagiario"):
        ciclo.register_upsell(cl.id, "social", "300", seller_role="estagiario")
    assert _count(db_path, "upsells") == 0
    assert _count(db_path, "commissions") == 0


@pytest.mark.parametrize("valor", ["0", "-1", float("nan"), float("-inf"), Decimal("Infinity")])
def test_upsell_valor_invalido(ciclo, db_path, valor):
    cl = _seed_cliente(ciclo)
    with pytest.raises(ValidationError):
        ciclo.register_upsell(cl.id, "social", valor)
    assert _count(db_path, "upsells") == 0


def test_pagar_comissao_de_upsell(ciclo, relogio):
    cl = _seed_cliente(ciclo)
    up = ciclo.register_upsell(cl.id, "social", "500")
    com = ciclo.commissions_for(CommissionType.UPSELL, up.id)[0]

    relogio.avancar(days=3)
    paga = ciclo.mark_commission_paid(com.id, responsavel="financeiro")
    assert paga.status == CommissionStatus.PAID
    assert paga.paid_at == relogio.agora

    with pytest.raises(InvalidStateError):
        ciclo.mark_commission_paid(com.id)


def test_comissao_de_venda_nao_pode_ser_paga(ciclo):
    cl = _seed_cliente(ciclo)
    sale = ciclo.register_sale(cl.id, "1000")
    com = ciclo.commissions_for(CommissionType.SALE, sale.id)[0]
    with pytest.raises(InvalidStateError):
        ciclo.mark_commission_paid(com.id)
    assert ciclo.commissions_for(CommissionType.SALE, sale.id)[0].status == CommissionStatus.PENDING


def test_pagar_comissao_inexistente(ciclo):
    with pytest.raises(NotFoundError):
        ciclo.mark_commission_paid(12345)


def _planilha(tmp_path: Path, linhas) -> str:
    path = tmp_path / "vendas.xlsx"
    pd.DataFrame(linhas).to_excel(path, index=False)
    return str(path)


def test_vendas_em_lote(ciclo, db_path, tmp_path):
    a = _seed_cliente(ciclo, nome="A")
    b = _seed_cliente(ciclo, pct="0", nome="B")
    path = _planilha(tmp_path, [
        {"Cliente": a.id, "Valor": "1.000,00", "Data da Venda": "15/01/2024", "Vendedor": "ana"},
        {"Cliente": b.id, "Valor": "250,00", "Data da Venda": "16/01/2024", "Vendedor": "rui"},
    ])
    res = ciclo.register_sales_batch(path)
    assert res["vendas_registradas"] == 2
    assert _count(db_path, "client_sales") == 2
    assert _count(db_path, "commissions") == 3


def test_vendas_em_lote_tudo_ou_nada(ciclo, db_path, tmp_path):
    a = _seed_cliente(ciclo)
    path = _planilha(tmp_path, [
        {"Cliente": a.id, "Valor": "1.000,00", "Data": "15/01/2024"},
        {"Cliente": 999, "Valor": "50,00", "Data": "15/01/2024"},
    ])
    with pytest.raises(NotFoundError):
        ciclo.register_sales_batch(path)
    assert _count(db_path, "client_sales") == 0
    assert _count(db_path, "commissions") == 0


@pytest.mark.parametrize("pct", [float("nan"), float("inf"), "101", "-1"])
def test_cliente_com_percentual_invalido(ciclo, pct):
    with pytest.raises(ValidationError):
        ciclo.register_client("Acme", sales_percentage=pct)
