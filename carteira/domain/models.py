# carteira/domain/models.py
"""
Modelos (dataclasses) e enums fechados do domínio.

Observação importante:
- Status e etapas são enums (str), de modo que valores fora do conjunto
  falham já na conversão ``Enum(valor)``.
- Os repositórios devolvem estas dataclasses a partir das linhas do SQLite.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class ClientStatus(str, Enum):
    NEW_CLIENT = "new_client"
    ONBOARDING = "onboarding"
    CAMPAIGN_PUBLISHED = "campaign_published"
    CHURNED = "churned"


class DistratoStep(str, Enum):
    # Fluxo COM contrato (4 etapas)
    CHURN_SOLICITADO = "churn_solicitado"
    COBRANCA_RETIRADA = "cobranca_retirada"
    DISTRATO_ENVIADO = "distrato_enviado"
    DISTRATO_ASSINADO = "distrato_assinado"
    # Fluxo SEM contrato (2 etapas)
    SEM_CONTRATO_SOLICITADO = "sem_contrato_solicitado"
    SEM_CONTRATO_EFETIVADO = "sem_contrato_efetivado"


class CommissionType(str, Enum):
    SALE = "sale"
    UPSELL = "upsell"


class CommissionStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class RecipientRole(str, Enum):
    """Papéis que recebem comissão; a ordem da declaração é a ordem do rateio."""
    GESTOR_ADS = "gestor_ads"
    SUCESSO_CLIENTE = "sucesso_cliente"
    CONSULTOR_COMERCIAL = "consultor_comercial"


class ProblemType(str, Enum):
    PERFORMANCE = "performance"
    EXPECTATIVAS = "expectativas"
    ESTRATEGIA = "estrategia"
    VALOR_PERCEBIDO = "valor_percebido"


class Severity(str, Enum):
    LEVE = "leve"
    MODERADO = "moderado"
    CRITICO = "critico"


class PlanStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskType(str, Enum):
    ACTION = "action"
    QUICK_WIN = "quick_win"
    DELIVERABLE = "deliverable"


class ContractStatus(str, Enum):
    NOT_SIGNED = "not_signed"
    SIGNED = "signed"
    EXPIRING = "expiring"
    EXPIRED = "expired"


@dataclass
class Client:
    """Cadastro canônico do cliente e seus campos de ciclo de vida."""
    id: int
    name: str
    status: ClientStatus = ClientStatus.NEW_CLIENT
    archived: bool = False
    archived_at: Optional[datetime] = None
    distrato_step: Optional[DistratoStep] = None
    distrato_entered_at: Optional[datetime] = None
    contracted_products: List[str] = field(default_factory=list)
    sales_percentage: Decimal = Decimal("0")
    monthly_value: Decimal = Decimal("0")
    entry_date: Optional[date] = None
    onboarding_started_at: Optional[datetime] = None
    campaign_published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def em_distrato(self) -> bool:
        return self.distrato_step is not None


@dataclass
class ActiveClientContract:
    """Linha do registro de clientes ativos (financeiro)."""
    client_id: int
    contract_expires_at: Optional[datetime] = None
    monthly_value: Optional[Decimal] = None


@dataclass
class ProductChurn:
    id: int
    client_id: int
    product_slug: str
    product_name: Optional[str]
    monthly_value: Decimal
    has_valid_contract: bool
    distrato_step: DistratoStep
    initiated_at: datetime
    initiated_by: Optional[str] = None
    archived: bool = False
    archived_at: Optional[datetime] = None


@dataclass(frozen=True)
class Sale:
    """Venda registrada; imutável depois de criada."""
    id: int
    client_id: int
    value: Decimal
    sale_date: date
    commission_percentage: Decimal
    registered_by: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Upsell:
    id: int
    client_id: int
    product_slug: str
    product_name: Optional[str]
    monthly_value: Decimal
    sold_by: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class Commission:
    id: int
    type: CommissionType
    source_id: int
    client_id: int
    value: Decimal
    status: CommissionStatus
    recipient_role: RecipientRole
    recipient: Optional[str] = None
    created_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None


@dataclass(frozen=True)
class CommissionShare:
    """Parcela calculada (ainda não persistida) de uma comissão."""
    recipient_role: RecipientRole
    value: Decimal


@dataclass
class ActionPlanTask:
    id: int
    plan_id: int
    title: str
    task_type: TaskType
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    position: int = 0


@dataclass
class ActionPlan:
    id: int
    client_id: int
    problem_type: ProblemType
    severity: Severity
    indicators: List[str]
    notes: Optional[str]
    status: PlanStatus
    due_date: datetime
    created_at: datetime
    created_by: Optional[str] = None
    completed_at: Optional[datetime] = None
    tasks: List[ActionPlanTask] = field(default_factory=list)


@dataclass(frozen=True)
class ChurnNotification:
    id: int
    client_id: int
    client_name: str
    created_at: datetime
