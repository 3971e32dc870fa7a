# carteira/usecases/orquestrador.py
"""
Fachada do ciclo de vida do cliente.

``CicloDeVida`` reúne os comandos e consultas dos casos de uso sobre um
único banco e um único relógio. Cada comando devolve a entidade
atualizada; a camada de apresentação decide quando reconsultar listas.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

import pandas as pd

from carteira.config import DB_PATH
from carteira.domain.models import (
    ActionPlan,
    ActionPlanTask,
    ActiveClientContract,
    ChurnNotification,
    Client,
    Commission,
    CommissionType,
    PlanStatus,
    ProductChurn,
    RecipientRole,
    Sale,
    TaskType,
    Upsell,
)
from carteira.infra.logger import log_system_event
from carteira.infra.migrations import apply_migrations
from carteira.infra.views import create_views
from carteira.usecases import clientes, distrato, planos_acao, relatorios, vendas


class CicloDeVida:
    """Comandos e consultas da carteira.

    Args:
        db_path: caminho do SQLite.
        relogio: função que devolve o instante atual; padrão é UTC agora.
        migrar: aplica migrações e views ao construir.
    """

    def __init__(
        self,
        db_path: str = DB_PATH,
        relogio: Optional[Callable[[], datetime]] = None,
        migrar: bool = True,
    ):
        self.db_path = db_path
        self._relogio = relogio
        if migrar:
            apply_migrations(db_path)
            create_views(db_path)
            log_system_event("ciclo_de_vida_pronto", {"db_path": db_path})

    def _agora(self) -> Optional[datetime]:
        return self._relogio() if self._relogio else None

    # -------------------------
    # Clientes
    # -------------------------

    def register_client(
        self,
        name: str,
        sales_percentage: Any = 0,
        monthly_value: Any = 0,
        contracted_products: Optional[Iterable[str]] = None,
        entry_date: Any = None,
    ) -> Client:
        return clientes.registrar_cliente(
            name, sales_percentage, monthly_value, contracted_products, entry_date,
            db_path=self.db_path, agora=self._agora(),
        )

    def mark_milestone(self, client_id: int, milestone: str) -> Client:
        return clientes.marcar_marco(client_id, milestone, db_path=self.db_path, agora=self._agora())

    def register_contract(
        self, client_id: int, contract_expires_at: Any, monthly_value: Any = None
    ) -> ActiveClientContract:
        return clientes.registrar_contrato(client_id, contract_expires_at, monthly_value, db_path=self.db_path)

    def restore_client(self, client_id: int, responsavel: Optional[str] = None) -> Client:
        return clientes.restaurar_cliente(client_id, responsavel, db_path=self.db_path)

    def contract_status(self, client_id: int) -> Dict[str, Any]:
        return clientes.situacao_contrato_cliente(client_id, db_path=self.db_path, agora=self._agora())

    # -------------------------
    # Vendas e comissões
    # -------------------------

    def register_sale(
        self, client_id: int, value: Any, sale_date: Any = None, registered_by: Optional[str] = None
    ) -> Sale:
        return vendas.registrar_venda(
            client_id, value, sale_date, registered_by, db_path=self.db_path, agora=self._agora()
        )

    def register_sales_batch(self, path: str, registered_by: Optional[str] = None) -> Dict[str, Any]:
        return vendas.registrar_vendas_lote(path, registered_by, db_path=self.db_path, agora=self._agora())

    def register_upsell(
        self,
        client_id: int,
        product_slug: str,
        monthly_value: Any,
        product_name: Optional[str] = None,
        sold_by: Optional[str] = None,
        seller_role: Optional[RecipientRole] = None,
    ) -> Upsell:
        return vendas.registrar_upsell(
            client_id, product_slug, monthly_value, product_name, sold_by, seller_role,
            db_path=self.db_path, agora=self._agora(),
        )

    def commissions_for(self, tipo: CommissionType, source_id: int) -> List[Commission]:
        return vendas.comissoes_da_origem(tipo, source_id, db_path=self.db_path)

    def mark_commission_paid(self, commission_id: int, responsavel: Optional[str] = None) -> Commission:
        return vendas.marcar_comissao_paga(commission_id, responsavel, db_path=self.db_path, agora=self._agora())

    # -------------------------
    # Churn / distrato
    # -------------------------

    def initiate_global_churn(self, client_id: int, responsavel: Optional[str] = None) -> Client:
        return distrato.iniciar_churn_global(client_id, responsavel, db_path=self.db_path, agora=self._agora())

    def advance_distrato_step(self, client_id: int, responsavel: Optional[str] = None) -> Client:
        return distrato.avancar_etapa_distrato(client_id, responsavel, db_path=self.db_path)

    def finalize_churn(self, client_id: int, responsavel: Optional[str] = None) -> Client:
        return distrato.finalizar_churn(client_id, responsavel, db_path=self.db_path, agora=self._agora())

    def initiate_product_churn(
        self,
        client_id: int,
        product_slug: str,
        monthly_value: Any,
        has_valid_contract: bool,
        product_name: Optional[str] = None,
        responsavel: Optional[str] = None,
    ) -> ProductChurn:
        return distrato.iniciar_churn_produto(
            client_id, product_slug, monthly_value, has_valid_contract, product_name, responsavel,
            db_path=self.db_path, agora=self._agora(),
        )

    def advance_product_churn_step(self, churn_id: int, responsavel: Optional[str] = None) -> ProductChurn:
        return distrato.avancar_etapa_churn_produto(churn_id, responsavel, db_path=self.db_path)

    def finalize_product_churn(self, churn_id: int, responsavel: Optional[str] = None) -> ProductChurn:
        return distrato.finalizar_churn_produto(churn_id, responsavel, db_path=self.db_path, agora=self._agora())

    # -------------------------
    # Planos de ação
    # -------------------------

    def create_action_plan(
        self,
        client_id: int,
        problem_type,
        severity,
        indicators: Iterable[str],
        notes: Optional[str] = None,
        created_by: Optional[str] = None,
        com_tarefas_predefinidas: bool = True,
    ) -> ActionPlan:
        return planos_acao.criar_plano(
            client_id, problem_type, severity, indicators, notes, created_by, com_tarefas_predefinidas,
            db_path=self.db_path, agora=self._agora(),
        )

    def get_action_plan(self, plan_id: int) -> ActionPlan:
        return planos_acao.obter_plano(plan_id, db_path=self.db_path)

    def add_task(self, plan_id: int, title: str, task_type=TaskType.ACTION) -> ActionPlanTask:
        return planos_acao.adicionar_tarefa(plan_id, title, task_type, db_path=self.db_path)

    def toggle_task(
        self, task_id: int, completed: Optional[bool] = None, completed_by: Optional[str] = None
    ) -> ActionPlanTask:
        return planos_acao.alternar_tarefa(
            task_id, completed, completed_by, db_path=self.db_path, agora=self._agora()
        )

    def update_action_plan_status(self, plan_id: int, status, responsavel: Optional[str] = None) -> ActionPlan:
        return planos_acao.atualizar_status_plano(
            plan_id, status, responsavel, db_path=self.db_path, agora=self._agora()
        )

    def delete_action_plan(self, plan_id: int, responsavel: Optional[str] = None) -> None:
        planos_acao.excluir_plano(plan_id, responsavel, db_path=self.db_path)

    # -------------------------
    # Consultas
    # -------------------------

    def list_clients(self, product_slug: Optional[str] = None) -> Dict[str, List[Client]]:
        return relatorios.listar_clientes(product_slug, db_path=self.db_path)

    def commissions_by_recipient_month(self, ano_mes: Optional[str] = None) -> pd.DataFrame:
        return relatorios.comissoes_por_destinatario_mes(ano_mes, db_path=self.db_path)

    def open_churns(self) -> Dict[str, List[Dict[str, Any]]]:
        return relatorios.churns_em_aberto(db_path=self.db_path)

    def list_action_plans(
        self, client_id: Optional[int] = None, status: Optional[PlanStatus] = None
    ) -> List[Dict[str, Any]]:
        return relatorios.listar_planos(client_id, status, db_path=self.db_path, agora=self._agora())

    def active_plan_by_client(self) -> Dict[int, ActionPlan]:
        return relatorios.plano_ativo_por_cliente(db_path=self.db_path)

    def monthly_summary(self, ano_mes: str) -> Dict[str, Any]:
        return relatorios.resumo_mensal(ano_mes, db_path=self.db_path)

    def churn_notifications(self) -> List[ChurnNotification]:
        return relatorios.notificacoes_churn(db_path=self.db_path)
