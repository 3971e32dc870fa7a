# carteira/usecases/relatorios.py
"""
Relatórios da carteira:
- clientes ativos x em churn (geral ou por produto)
- comissões agrupadas por destinatário e mês
- planos de ação com progresso e atraso
- plano ativo por cliente
- resumo mensal de entradas e churns
- notificações de churn
- distratos em aberto (globais e por produto)
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

import pandas as pd

from carteira.adapters.parsers import converter_enum, parse_instante
from carteira.config import DB_PATH
from carteira.domain.formulas import CENT, progress
from carteira.domain.models import ActionPlan, ChurnNotification, Client, ClientStatus, DistratoStep, PlanStatus
from carteira.domain.policies import SERVICE_PRODUCTS, instante, plano_atrasado
from carteira.infra.db import connect
from carteira.infra.logger import log_database_operation, system_logger
from carteira.infra.repositories import (
    ClienteRepo, NotificacaoChurnRepo, PlanoAcaoRepo, ProductChurnRepo, TarefaRepo
)


# ----------------------
# util
# ----------------------

def _ano_mes(dt) -> Optional[str]:
    if dt is None:
        return None
    return dt.isoformat()[:7]


def _em_churn_global(cliente: Client) -> bool:
    return cliente.em_distrato or cliente.archived or cliente.status == ClientStatus.CHURNED


# ----------------------
# 1) Clientes ativos x churn
# ----------------------

def listar_clientes(product_slug: Optional[str] = None, db_path: str = DB_PATH) -> Dict[str, List[Client]]:
    """
    Separa os clientes em ``ativos`` e ``churn``.

    Sem produto, vale o caminho global (distrato em andamento, arquivado ou
    status churned). Com produto, o cliente está em churn para aquele produto
    se existir um churn de produto para o par; o status global é ignorado.
    Produtos de serviço consideram todos os clientes; os demais apenas quem
    contrata o produto ou já teve churn dele.
    """
    with connect(db_path) as c:
        clientes = ClienteRepo(c).get_all()
        churns = ProductChurnRepo(c).list_all() if product_slug else []
    log_database_operation("clients", "SELECT_ALL", len(clientes))

    ativos: List[Client] = []
    churn: List[Client] = []
    if not product_slug:
        for cl in clientes:
            (churn if _em_churn_global(cl) else ativos).append(cl)
        return {"ativos": ativos, "churn": churn}

    com_churn = {pc.client_id for pc in churns if pc.product_slug == product_slug}
    servico = product_slug in SERVICE_PRODUCTS
    for cl in clientes:
        if cl.id in com_churn:
            churn.append(cl)
        elif servico or product_slug in cl.contracted_products:
            ativos.append(cl)
    return {"ativos": ativos, "churn": churn}


# ----------------------
# 2) Comissões por destinatário e mês
# ----------------------

COLUNAS_COMISSOES = ["recipient_role", "ano_mes", "quantidade", "total", "pendente", "pago"]


def comissoes_por_destinatario_mes(
    ano_mes: Optional[str] = None,
    db_path: str = DB_PATH,
) -> pd.DataFrame:
    """
    Agrupa as comissões por papel do destinatário e mês (YYYY-MM) de criação.

    Os valores são somados em centavos inteiros e devolvidos como ``Decimal``
    nas colunas ``total``, ``pendente`` e ``pago``.
    """
    sql = "SELECT recipient_role, ano_mes, value, status FROM vw_comissoes_mes"
    params: tuple = ()
    if ano_mes:
        sql += " WHERE ano_mes = ?"
        params = (ano_mes,)
    with connect(db_path) as c:
        df = pd.read_sql_query(sql, c, params=params)
    log_database_operation("vw_comissoes_mes", "SELECT", len(df), ano_mes=ano_mes)

    if df.empty:
        return pd.DataFrame(columns=COLUNAS_COMISSOES)

    df["cents"] = df["value"].map(lambda v: int(Decimal(v) / CENT))

    df["pendente_cents"] = df["cents"].where(df["status"] == "pending", 0)
    df["pago_cents"] = df["cents"].where(df["status"] == "paid", 0)
    out = (
        df.groupby(["recipient_role", "ano_mes"], as_index=False)
        .agg(
            quantidade=("cents", "size"),
            total_cents=("cents", "sum"),
            pendente_cents=("pendente_cents", "sum"),
            pago_cents=("pago_cents", "sum"),
        )
        .sort_values(["ano_mes", "recipient_role"], ascending=[False, True])
        .reset_index(drop=True)
    )
    for col in ("total", "pendente", "pago"):
        out[col] = out[f"{col}_cents"].map(lambda v: Decimal(int(v)) * CENT)
    system_logger.debug(f"REPORT_COMISSOES: {len(out)} grupos")
    return out[COLUNAS_COMISSOES]


# ----------------------
# 3) Planos de ação
# ----------------------

def _resumo_plano(plano: ActionPlan, agora: datetime) -> Dict[str, Any]:
    concluidas = sum(1 for t in plano.tasks if t.is_completed)
    return {
        "plano": plano,
        "total_tarefas": len(plano.tasks),
        "tarefas_concluidas": concluidas,
        "progresso": progress(concluidas, len(plano.tasks)),
        "atrasado": plano_atrasado(plano.status, plano.due_date, agora),
    }


def listar_planos(
    client_id: Optional[int] = None,
    status: Optional[PlanStatus] = None,
    db_path: str = DB_PATH,
    agora: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """Planos (mais recentes primeiro) com progresso do checklist e atraso."""
    agora = instante(agora)
    filtro = converter_enum(PlanStatus, status, "Status") if status else None
    with connect(db_path) as c:
        planos = PlanoAcaoRepo(c).list(client_id=client_id, status=filtro)
        tarefas = TarefaRepo(c)
        for p in planos:
            p.tasks = tarefas.list_by_plan(p.id)
    log_database_operation("cs_action_plans", "SELECT", len(planos), client_id=client_id)
    return [_resumo_plano(p, agora) for p in planos]


def plano_ativo_por_cliente(db_path: str = DB_PATH) -> Dict[int, ActionPlan]:
    """Plano ativo mais recente de cada cliente."""
    with connect(db_path) as c:
        planos = PlanoAcaoRepo(c).list(status=PlanStatus.ACTIVE)
    out: Dict[int, ActionPlan] = {}
    for p in planos:
        # lista já vem do mais recente para o mais antigo
        out.setdefault(p.client_id, p)
    return out


# ----------------------
# 4) Resumo mensal
# ----------------------

def resumo_mensal(ano_mes: str, db_path: str = DB_PATH) -> Dict[str, Any]:
    """
    Entradas e churns de um mês (YYYY-MM).

    - entradas: clientes com ``entry_date`` no mês
    - churns_globais: distratos globais abertos no mês
    - churns_produto: churns de produto abertos no mês
    - valor_entradas / valor_perdido: soma dos valores mensais correspondentes
    """
    with connect(db_path) as c:
        clientes = ClienteRepo(c).get_all()
        churns = ProductChurnRepo(c).list_all()

    entradas = [cl for cl in clientes if _ano_mes(cl.entry_date) == ano_mes]
    globais = [cl for cl in clientes if _ano_mes(cl.distrato_entered_at) == ano_mes]
    por_produto = [pc for pc in churns if _ano_mes(pc.initiated_at) == ano_mes]

    valor_perdido = sum((cl.monthly_value for cl in globais), Decimal("0")) + \
        sum((pc.monthly_value for pc in por_produto), Decimal("0"))
    return {
        "ano_mes": ano_mes,
        "entradas": len(entradas),
        "churns_globais": len(globais),
        "churns_produto": len(por_produto),
        "valor_entradas": sum((cl.monthly_value for cl in entradas), Decimal("0")),
        "valor_perdido": valor_perdido,
    }


# ----------------------
# 5) Notificações
# ----------------------

def notificacoes_churn(db_path: str = DB_PATH) -> List[ChurnNotification]:
    with connect(db_path) as c:
        return NotificacaoChurnRepo(c).list_all()


# ----------------------
# 6) Distratos em aberto
# ----------------------

def churns_em_aberto(db_path: str = DB_PATH) -> Dict[str, List[Dict[str, Any]]]:
    """
    Distratos ainda não finalizados, do mais antigo para o mais recente.

    ``globais`` vem de ``vw_clientes_distrato`` (cliente em distrato e não
    arquivado); ``produtos`` vem de ``vw_churns_produto_abertos``.
    """
    with connect(db_path) as c:
        globais = c.execute(
            """
            SELECT id, name, distrato_step, distrato_entered_at
            FROM vw_clientes_distrato
            ORDER BY distrato_entered_at, id
            """
        ).fetchall()
        produtos = c.execute(
            """
            SELECT id, client_id, client_name, product_slug, product_name, monthly_value,
                   had_valid_contract, distrato_step, distrato_entered_at
            FROM vw_churns_produto_abertos
            ORDER BY distrato_entered_at, id
            """
        ).fetchall()
    log_database_operation("vw_clientes_distrato", "SELECT", len(globais))
    log_database_operation("vw_churns_produto_abertos", "SELECT", len(produtos))

    return {
        "globais": [
            {
                "client_id": r["id"],
                "cliente": r["name"],
                "etapa": DistratoStep(r["distrato_step"]),
                "desde": parse_instante(r["distrato_entered_at"]),
            }
            for r in globais
        ],
        "produtos": [
            {
                "churn_id": r["id"],
                "client_id": r["client_id"],
                "cliente": r["client_name"],
                "produto": r["product_name"] or r["product_slug"],
                "valor_mensal": Decimal(str(r["monthly_value"])),
                "contrato_valido": bool(r["had_valid_contract"]),
                "etapa": DistratoStep(r["distrato_step"]),
                "desde": parse_instante(r["distrato_entered_at"]),
            }
            for r in produtos
        ],
    }
