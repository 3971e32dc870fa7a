# carteira/adapters/cli.py
"""
CLI da carteira de clientes (Typer).

Comandos principais:
- migrate                      -> aplica migrações e cria views
- params set/get/show          -> gerencia parâmetros globais
- clientes novo/marco/...      -> cadastro, marcos, contrato, restauração
- vendas registrar/lote/upsell -> vendas e upsells (com comissões)
- comissoes listar/pagar       -> consulta e pagamento de comissões de upsell
- churn iniciar/produto/...    -> fluxo de distrato global e por produto
- planos criar/tarefa/...      -> planos de ação e checklist
- rel resumo/planos-ativos     -> relatórios
"""

from __future__ import annotations

import functools
import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from carteira.adapters.parsers import formatar_valor
from carteira.config import DB_PATH, DEFAULTS
from carteira.domain.errors import CarteiraError
from carteira.domain.models import ActionPlan, Client, CommissionType, ProductChurn
from carteira.domain.policies import STATUS_LABELS, STEP_LABELS
from carteira.infra.logger import get_log_summary
from carteira.infra.migrations import apply_migrations
from carteira.infra.repositories import ParamsRepo
from carteira.infra.views import create_views
from carteira.usecases.orquestrador import CicloDeVida


app = typer.Typer(help="Carteira de Clientes: CLI de ciclo de vida, vendas e churn")
console = Console()


# -----------------------
# util
# -----------------------

def _trata_erros(func):
    """Converte erros de negócio em mensagem vermelha e código de saída 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except CarteiraError as e:
            console.print(f"[bold red]Erro ({type(e).__name__}):[/] {e}")
            raise typer.Exit(code=1)
    return wrapper


def _ciclo(db_path: str) -> CicloDeVida:
    return CicloDeVida(db_path)


def _fmt(val: Any) -> str:
    if val is None:
        return "-"
    if isinstance(val, Enum):
        return str(val.value)
    if isinstance(val, Decimal):
        return formatar_valor(val)
    if isinstance(val, datetime):
        return val.strftime("%d/%m/%Y %H:%M")
    if isinstance(val, date):
        return val.strftime("%d/%m/%Y")
    if isinstance(val, bool):
        return "sim" if val else "não"
    if isinstance(val, float):
        return f"{val:.0%}"
    if isinstance(val, (list, tuple, set)):
        return ", ".join(str(v) for v in val) or "-"
    return str(val)


def _print_json(obj) -> None:
    """Fallback para impressão de JSON quando necessário."""
    typer.echo(json.dumps(obj, ensure_ascii=False, indent=2, default=_fmt))


def _display_table(data: List[Dict[str, Any]] | Dict[str, Any], title: str = "Resultado") -> None:
    """Exibe os dados em tabelas formatadas usando Rich."""
    if not data:
        console.print(Panel("Nenhum dado encontrado", title=title, border_style="yellow"))
        return

    if isinstance(data, dict):
        table = Table(title=title, box=box.ROUNDED)
        table.add_column("Campo")
        table.add_column("Valor")
        for chave, valor in data.items():
            table.add_row(str(chave), _fmt(valor))
        console.print(table)
        return

    if isinstance(data, list) and isinstance(data[0], dict):
        table = Table(title=title, box=box.ROUNDED)
        columns = list(data[0].keys())
        for column in columns:
            if column.lower() in ("valor", "total", "pendente", "pago", "mensal", "progresso"):
                table.add_column(column, justify="right")
            elif column.lower() in ("data", "prazo", "entrada"):
                table.add_column(column, justify="center")
            else:
                table.add_column(column)
        for row in data:
            table.add_row(*[_fmt(row.get(col)) for col in columns])
        console.print(table)
        return

    _print_json(data)


def _cliente_dict(cl: Client) -> Dict[str, Any]:
    return {
        "id": cl.id,
        "nome": cl.name,
        "status": STATUS_LABELS[cl.status],
        "etapa": STEP_LABELS[cl.distrato_step] if cl.distrato_step else None,
        "arquivado": cl.archived,
        "produtos": cl.contracted_products,
        "pct_vendas": f"{cl.sales_percentage}%",
        "mensal": cl.monthly_value,
    }


def _churn_dict(pc: ProductChurn) -> Dict[str, Any]:
    return {
        "id": pc.id,
        "cliente": pc.client_id,
        "produto": pc.product_name or pc.product_slug,
        "etapa": STEP_LABELS[pc.distrato_step],
        "contrato": pc.has_valid_contract,
        "mensal": pc.monthly_value,
        "arquivado": pc.archived,
    }


def _plano_dict(p: ActionPlan) -> Dict[str, Any]:
    return {
        "id": p.id,
        "cliente": p.client_id,
        "problema": p.problem_type,
        "severidade": p.severity,
        "status": p.status,
        "prazo": p.due_date,
        "indicadores": p.indicators,
    }


def _mostrar_plano(p: ActionPlan) -> None:
    _display_table(_plano_dict(p), title=f"Plano de Ação #{p.id}")
    _display_table(
        [
            {"id": t.id, "tipo": t.task_type, "tarefa": t.title, "feita": t.is_completed}
            for t in p.tasks
        ],
        title="Tarefas",
    )


# -----------------------
# comandos de infra
# -----------------------

@app.command("migrate")
def cmd_migrate(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Aplica migrações e recria as views auxiliares."""
    apply_migrations(db_path)
    create_views(db_path)
    typer.echo(f">> Migrações aplicadas e views criadas em: {db_path}")


params_app = typer.Typer(help="Gerenciar parâmetros globais.")
app.add_typer(params_app, name="params")


@params_app.command("set")
def cmd_params_set(
    dias_aviso_contrato: Optional[int] = typer.Option(None, help="Dias antes do vencimento para 'expirando' (ex.: 30)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Define parâmetros globais (apenas os informados são alterados)."""
    apply_migrations(db_path)
    items: List[tuple[str, str]] = []
    if dias_aviso_contrato is not None:
        items.append(("dias_aviso_contrato", str(dias_aviso_contrato)))
    if not items:
        typer.echo("Nada a alterar. Informe pelo menos um parâmetro.")
        raise typer.Exit(code=1)
    ParamsRepo(db_path).set_many(items)
    typer.echo(">> Parâmetros atualizados.")


@params_app.command("get")
def cmd_params_get(
    chave: str = typer.Argument(..., help="Ex.: dias_aviso_contrato"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Mostra um parâmetro específico."""
    apply_migrations(db_path)
    val = ParamsRepo(db_path).get(chave)
    typer.echo("(None)" if val is None else val)


@params_app.command("show")
def cmd_params_show(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Exibe os parâmetros efetivos (com fallback para defaults)."""
    apply_migrations(db_path)
    repo = ParamsRepo(db_path)
    _display_table(
        [{
            "parametro": "dias_aviso_contrato",
            "atual": repo.get("dias_aviso_contrato", str(DEFAULTS.dias_aviso_contrato)),
            "padrao": DEFAULTS.dias_aviso_contrato,
        }],
        title="Parâmetros do Sistema",
    )
    console.print(f"[dim]Banco de dados: {db_path}[/dim]")


# -----------------------
# clientes
# -----------------------

clientes_app = typer.Typer(help="Cadastro e ciclo de vida de clientes.")
app.add_typer(clientes_app, name="clientes")


@clientes_app.command("novo")
@_trata_erros
def cmd_cliente_novo(
    nome: str = typer.Argument(..., help="Nome do cliente"),
    pct: str = typer.Option("0", "--pct", help="Percentual de comissão sobre vendas (0 a 100)"),
    mensal: str = typer.Option("0", "--mensal", help="Valor mensal (ex.: 1.500,00)"),
    produto: Optional[List[str]] = typer.Option(None, "--produto", help="Produto contratado (repetível)"),
    entrada: Optional[str] = typer.Option(None, "--entrada", help="Data de entrada (DD/MM/AAAA ou ISO)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Cadastra um cliente novo."""
    cl = _ciclo(db_path).register_client(nome, pct, mensal, produto or [], entrada)
    _display_table(_cliente_dict(cl), title="Cliente Cadastrado")


@clientes_app.command("marco")
@_trata_erros
def cmd_cliente_marco(
    client_id: int = typer.Argument(...),
    marco: str = typer.Argument(..., help="onboarding | campaign_published"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Registra um marco do cliente (onboarding ou campanha publicada)."""
    cl = _ciclo(db_path).mark_milestone(client_id, marco)
    _display_table(_cliente_dict(cl), title="Marco Registrado")


@clientes_app.command("contrato")
@_trata_erros
def cmd_cliente_contrato(
    client_id: int = typer.Argument(...),
    expira: Optional[str] = typer.Option(None, "--expira", help="Expiração do contrato (DD/MM/AAAA ou ISO)"),
    mensal: Optional[str] = typer.Option(None, "--mensal", help="Valor mensal do contrato"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Inclui/atualiza o cliente no registro de clientes ativos."""
    reg = _ciclo(db_path).register_contract(client_id, expira, mensal)
    _display_table(
        {"cliente": reg.client_id, "expira_em": reg.contract_expires_at, "mensal": reg.monthly_value},
        title="Contrato Registrado",
    )


@clientes_app.command("situacao")
@_trata_erros
def cmd_cliente_situacao(client_id: int = typer.Argument(...), db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Mostra a situação do contrato (assinado, expirando, expirado)."""
    _display_table(_ciclo(db_path).contract_status(client_id), title="Situação do Contrato")


@clientes_app.command("restaurar")
@_trata_erros
def cmd_cliente_restaurar(
    client_id: int = typer.Argument(...),
    responsavel: Optional[str] = typer.Option(None, "--por", help="Quem executa"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Restaura um cliente em churn/arquivado."""
    cl = _ciclo(db_path).restore_client(client_id, responsavel)
    _display_table(_cliente_dict(cl), title="Cliente Restaurado")


@clientes_app.command("listar")
@_trata_erros
def cmd_cliente_listar(
    produto: Optional[str] = typer.Option(None, "--produto", help="Filtra pelo churn deste produto"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Lista clientes ativos e em churn."""
    res = _ciclo(db_path).list_clients(produto)
    sufixo = f" ({produto})" if produto else ""
    _display_table([_cliente_dict(cl) for cl in res["ativos"]], title=f"Ativos{sufixo}")
    _display_table([_cliente_dict(cl) for cl in res["churn"]], title=f"Churn{sufixo}")


# -----------------------
# vendas / comissões
# -----------------------

vendas_app = typer.Typer(help="Vendas e upsells.")
app.add_typer(vendas_app, name="vendas")


@vendas_app.command("registrar")
@_trata_erros
def cmd_venda_registrar(
    client_id: int = typer.Argument(...),
    valor: str = typer.Argument(..., help="Valor da venda (ex.: 1.000,00)"),
    data: Optional[str] = typer.Option(None, "--data", help="Data da venda (padrão: hoje)"),
    por: Optional[str] = typer.Option(None, "--por", help="Quem registrou"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Registra uma venda e gera as comissões."""
    ciclo = _ciclo(db_path)
    sale = ciclo.register_sale(client_id, valor, data, por)
    _display_table(
        {"venda": sale.id, "cliente": sale.client_id, "valor": sale.value,
         "data": sale.sale_date, "pct": f"{sale.commission_percentage}%"},
        title="Venda Registrada",
    )
    _display_table(
        [{"papel": com.recipient_role, "valor": com.value, "status": com.status}
         for com in ciclo.commissions_for(CommissionType.SALE, sale.id)],
        title="Comissões",
    )


@vendas_app.command("lote")
@_trata_erros
def cmd_venda_lote(
    path: str = typer.Argument(..., help="Caminho do XLSX de VENDAS"),
    por: Optional[str] = typer.Option(None, "--por", help="Quem registrou (quando a planilha não informa)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Registra vendas em lote a partir de um XLSX (tudo ou nada)."""
    info = _ciclo(db_path).register_sales_batch(path, por)
    _display_table(
        {"arquivo": info["arquivo"], "vendas_registradas": info["vendas_registradas"]},
        title="Processamento de Vendas em Lote",
    )


@vendas_app.command("upsell")
@_trata_erros
def cmd_venda_upsell(
    client_id: int = typer.Argument(...),
    produto: str = typer.Argument(..., help="Slug do produto"),
    mensal: str = typer.Argument(..., help="Valor mensal do upsell"),
    nome: Optional[str] = typer.Option(None, "--nome", help="Nome do produto"),
    por: Optional[str] = typer.Option(None, "--por", help="Quem vendeu"),
    papel: Optional[str] = typer.Option(None, "--papel", help="Papel de quem vendeu (padrão: sucesso_cliente)"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Registra um upsell (comissão de 7% pendente)."""
    ciclo = _ciclo(db_path)
    up = ciclo.register_upsell(client_id, produto, mensal, nome, por, papel)
    com = ciclo.commissions_for(CommissionType.UPSELL, up.id)[0]
    _display_table(
        {"upsell": up.id, "cliente": up.client_id, "produto": up.product_name or up.product_slug,
         "mensal": up.monthly_value, "comissao": com.id, "valor_comissao": com.value,
         "papel": com.recipient_role, "status": com.status},
        title="Upsell Registrado",
    )


comissoes_app = typer.Typer(help="Comissões.")
app.add_typer(comissoes_app, name="comissoes")


@comissoes_app.command("pagar")
@_trata_erros
def cmd_comissao_pagar(
    commission_id: int = typer.Argument(...),
    por: Optional[str] = typer.Option(None, "--por", help="Quem executa"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Marca uma comissão de upsell como paga."""
    com = _ciclo(db_path).mark_commission_paid(commission_id, por)
    _display_table(
        {"comissao": com.id, "valor": com.value, "status": com.status, "pago_em": com.paid_at},
        title="Comissão Paga",
    )


@comissoes_app.command("listar")
@_trata_erros
def cmd_comissao_listar(
    mes: Optional[str] = typer.Option(None, "--mes", help="YYYY-MM"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Comissões agrupadas por destinatário e mês."""
    df = _ciclo(db_path).commissions_by_recipient_month(mes)
    _display_table(df.to_dict(orient="records"), title="Comissões por Destinatário/Mês")


# -----------------------
# churn / distrato
# -----------------------

churn_app = typer.Typer(help="Fluxo de churn/distrato.")
app.add_typer(churn_app, name="churn")


@churn_app.command("iniciar")
@_trata_erros
def cmd_churn_iniciar(
    client_id: int = typer.Argument(...),
    por: Optional[str] = typer.Option(None, "--por", help="Quem executa"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Abre o distrato global do cliente."""
    cl = _ciclo(db_path).initiate_global_churn(client_id, por)
    _display_table(_cliente_dict(cl), title="Distrato Iniciado")


@churn_app.command("avancar")
@_trata_erros
def cmd_churn_avancar(
    client_id: int = typer.Argument(...),
    por: Optional[str] = typer.Option(None, "--por", help="Quem executa"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Avança o distrato global para a próxima etapa."""
    cl = _ciclo(db_path).advance_distrato_step(client_id, por)
    _display_table(_cliente_dict(cl), title="Etapa Avançada")


@churn_app.command("finalizar")
@_trata_erros
def cmd_churn_finalizar(
    client_id: int = typer.Argument(...),
    por: Optional[str] = typer.Option(None, "--por", help="Quem executa"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Finaliza o distrato global (arquiva o cliente)."""
    cl = _ciclo(db_path).finalize_churn(client_id, por)
    _display_table(_cliente_dict(cl), title="Churn Finalizado")


@churn_app.command("produto")
@_trata_erros
def cmd_churn_produto(
    client_id: int = typer.Argument(...),
    produto: str = typer.Argument(..., help="Slug do produto"),
    mensal: str = typer.Option("0", "--mensal", help="Valor mensal do produto"),
    com_contrato: bool = typer.Option(False, "--com-contrato/--sem-contrato", help="Contrato válido para o produto"),
    nome: Optional[str] = typer.Option(None, "--nome", help="Nome do produto"),
    por: Optional[str] = typer.Option(None, "--por", help="Quem executa"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Abre o churn de um produto do cliente."""
    pc = _ciclo(db_path).initiate_product_churn(client_id, produto, mensal, com_contrato, nome, por)
    _display_table(_churn_dict(pc), title="Churn de Produto Iniciado")


@churn_app.command("avancar-produto")
@_trata_erros
def cmd_churn_avancar_produto(
    churn_id: int = typer.Argument(...),
    por: Optional[str] = typer.Option(None, "--por", help="Quem executa"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Avança o churn de produto para a próxima etapa."""
    pc = _ciclo(db_path).advance_product_churn_step(churn_id, por)
    _display_table(_churn_dict(pc), title="Etapa Avançada")


@churn_app.command("finalizar-produto")
@_trata_erros
def cmd_churn_finalizar_produto(
    churn_id: int = typer.Argument(...),
    por: Optional[str] = typer.Option(None, "--por", help="Quem executa"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Finaliza o churn de produto."""
    pc = _ciclo(db_path).finalize_product_churn(churn_id, por)
    _display_table(_churn_dict(pc), title="Churn de Produto Finalizado")


@churn_app.command("listar")
@_trata_erros
def cmd_churn_listar(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Distratos em aberto, globais e por produto."""
    abertos = _ciclo(db_path).open_churns()
    _display_table(
        [{**g, "etapa": STEP_LABELS[g["etapa"]]} for g in abertos["globais"]],
        title="Distratos Globais em Aberto",
    )
    _display_table(
        [{**p, "etapa": STEP_LABELS[p["etapa"]]} for p in abertos["produtos"]],
        title="Churns de Produto em Aberto",
    )


@churn_app.command("notificacoes")
def cmd_churn_notificacoes(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Lista as notificações de churn."""
    notas = _ciclo(db_path).churn_notifications()
    _display_table(
        [{"id": n.id, "cliente": n.client_id, "nome": n.client_name, "data": n.created_at} for n in notas],
        title="Notificações de Churn",
    )


# -----------------------
# planos de ação
# -----------------------

planos_app = typer.Typer(help="Planos de ação de sucesso do cliente.")
app.add_typer(planos_app, name="planos")


@planos_app.command("criar")
@_trata_erros
def cmd_plano_criar(
    client_id: int = typer.Argument(...),
    tipo: str = typer.Option(..., "--tipo", help="performance | expectativas | estrategia | valor_percebido"),
    severidade: str = typer.Option(..., "--severidade", help="leve | moderado | critico"),
    indicador: Optional[List[str]] = typer.Option(None, "--indicador", help="Indicador observado (repetível)"),
    notas: Optional[str] = typer.Option(None, "--notas"),
    por: Optional[str] = typer.Option(None, "--por", help="Quem criou"),
    sem_tarefas: bool = typer.Option(False, "--sem-tarefas", help="Não gera o checklist pré-definido"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Cria um plano de ação para o cliente."""
    plano = _ciclo(db_path).create_action_plan(
        client_id, tipo, severidade, indicador or [], notas, por, not sem_tarefas
    )
    _mostrar_plano(plano)


@planos_app.command("ver")
@_trata_erros
def cmd_plano_ver(plan_id: int = typer.Argument(...), db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Mostra um plano e seu checklist."""
    _mostrar_plano(_ciclo(db_path).get_action_plan(plan_id))


@planos_app.command("tarefa")
@_trata_erros
def cmd_plano_tarefa(
    plan_id: int = typer.Argument(...),
    titulo: str = typer.Argument(...),
    tipo: str = typer.Option("action", "--tipo", help="action | quick_win | deliverable"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Acrescenta uma tarefa ao plano."""
    t = _ciclo(db_path).add_task(plan_id, titulo, tipo)
    typer.echo(f">> Tarefa {t.id} adicionada ao plano {plan_id}.")


@planos_app.command("toggle")
@_trata_erros
def cmd_plano_toggle(
    task_id: int = typer.Argument(...),
    por: Optional[str] = typer.Option(None, "--por", help="Quem concluiu"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Marca/desmarca uma tarefa."""
    t = _ciclo(db_path).toggle_task(task_id, None, por)
    estado = "concluída" if t.is_completed else "pendente"
    typer.echo(f">> Tarefa {t.id} {estado}.")


@planos_app.command("status")
@_trata_erros
def cmd_plano_status(
    plan_id: int = typer.Argument(...),
    status: str = typer.Argument(..., help="completed | cancelled"),
    por: Optional[str] = typer.Option(None, "--por", help="Quem executa"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Conclui ou cancela um plano ativo."""
    plano = _ciclo(db_path).update_action_plan_status(plan_id, status, por)
    typer.echo(f">> Plano {plano.id} agora está '{plano.status.value}'.")


@planos_app.command("excluir")
@_trata_erros
def cmd_plano_excluir(
    plan_id: int = typer.Argument(...),
    por: Optional[str] = typer.Option(None, "--por", help="Quem executa"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Exclui um plano e suas tarefas."""
    _ciclo(db_path).delete_action_plan(plan_id, por)
    typer.echo(f">> Plano {plan_id} excluído.")


@planos_app.command("listar")
@_trata_erros
def cmd_plano_listar(
    cliente: Optional[int] = typer.Option(None, "--cliente"),
    status: Optional[str] = typer.Option(None, "--status", help="active | completed | cancelled"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Lista planos com progresso e atraso."""
    res = _ciclo(db_path).list_action_plans(cliente, status)
    linhas = []
    for r in res:
        p = r["plano"]
        linhas.append({
            "id": p.id,
            "cliente": p.client_id,
            "problema": p.problem_type,
            "severidade": p.severity,
            "status": p.status,
            "prazo": p.due_date,
            "progresso": r["progresso"],
            "atrasado": r["atrasado"],
        })
    _display_table(linhas, title="Planos de Ação")


# -----------------------
# relatórios
# -----------------------

rel_app = typer.Typer(help="Relatórios da carteira")
app.add_typer(rel_app, name="rel")


@rel_app.command("resumo")
def rel_resumo(
    mes: str = typer.Argument(..., help="YYYY-MM"),
    db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite"),
):
    """Entradas e churns do mês."""
    _display_table(_ciclo(db_path).monthly_summary(mes), title=f"Resumo {mes}")


@rel_app.command("planos-ativos")
def rel_planos_ativos(db_path: str = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")):
    """Plano ativo mais recente de cada cliente."""
    planos = _ciclo(db_path).active_plan_by_client()
    _display_table([_plano_dict(p) for p in planos.values()], title="Planos Ativos por Cliente")


@app.command("logs")
def cmd_logs(
    tipo: str = typer.Argument("transactions", help="transactions, vendas, churn, planos, database ou system"),
    linhas: int = typer.Option(50, "--linhas", "-n", help="Quantidade de linhas"),
):
    """Mostra as últimas linhas de um arquivo de log."""
    console.print(get_log_summary(tipo, linhas), markup=False)


# Entry point opcional:
def main():
    app()


if __name__ == "__main__":
    main()
