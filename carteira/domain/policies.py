"""
Políticas de ciclo de vida do cliente.

Este módulo contém as regras de negócio de classificação e transição:
status ao restaurar um cliente, escolha da trilha de distrato conforme a
validade do contrato, avanço de etapa dentro da trilha, situação do
contrato e atraso de planos de ação. As funções são puras e são usadas
pela camada de casos de uso antes de gravar no banco.
"""

from __future__ import annotations

from datetime import datetime, timezone
from math import ceil
from typing import Optional

from carteira.domain.errors import InvalidStateError
from carteira.domain.models import (
    ClientStatus,
    ContractStatus,
    DistratoStep,
    PlanStatus,
)


TRILHA_COM_CONTRATO = (
    DistratoStep.CHURN_SOLICITADO,
    DistratoStep.COBRANCA_RETIRADA,
    DistratoStep.DISTRATO_ENVIADO,
    DistratoStep.DISTRATO_ASSINADO,
)

TRILHA_SEM_CONTRATO = (
    DistratoStep.SEM_CONTRATO_SOLICITADO,
    DistratoStep.SEM_CONTRATO_EFETIVADO,
)

STEP_LABELS = {
    DistratoStep.CHURN_SOLICITADO: "Churn solicitado",
    DistratoStep.COBRANCA_RETIRADA: "Cobrança retirada",
    DistratoStep.DISTRATO_ENVIADO: "Distrato enviado",
    DistratoStep.DISTRATO_ASSINADO: "Distrato assinado",
    DistratoStep.SEM_CONTRATO_SOLICITADO: "Churn solicitado (sem contrato)",
    DistratoStep.SEM_CONTRATO_EFETIVADO: "Churn efetivado",
}

STATUS_LABELS = {
    ClientStatus.NEW_CLIENT: "Novo Cliente",
    ClientStatus.ONBOARDING: "Onboarding",
    ClientStatus.CAMPAIGN_PUBLISHED: "Campanha Publicada",
    ClientStatus.CHURNED: "Churn",
}

# Produtos de serviço listam todos os clientes (não filtram por contracted_products)
SERVICE_PRODUCTS = frozenset({"atrizes", "produtora", "design", "video", "devs"})


def status_por_marcos(
    onboarding_started_at: Optional[datetime],
    campaign_published_at: Optional[datetime],
) -> ClientStatus:
    """Status de um cliente restaurado.

    O marco mais recente tem prioridade:
        - ``campaign_published_at`` preenchido → ``campaign_published``
        - ``onboarding_started_at`` preenchido → ``onboarding``
        - nenhum marco → ``new_client``
    """
    if campaign_published_at:
        return ClientStatus.CAMPAIGN_PUBLISHED
    if onboarding_started_at:
        return ClientStatus.ONBOARDING
    return ClientStatus.NEW_CLIENT


def contrato_valido(contract_expires_at: Optional[datetime], agora: datetime) -> bool:
    """Contrato é válido se existe data de expiração e ela ainda não passou."""
    if contract_expires_at is None:
        return False
    return contract_expires_at > agora


def etapa_inicial(has_valid_contract: bool) -> DistratoStep:
    """Primeira etapa do distrato.

    A validade do contrato é o único critério: com contrato a trilha tem 4
    etapas, sem contrato (ou expirado) tem 2.
    """
    if has_valid_contract:
        return DistratoStep.CHURN_SOLICITADO
    return DistratoStep.SEM_CONTRATO_SOLICITADO


def trilha_de(step: DistratoStep) -> tuple:
    step = DistratoStep(step)
    if step in TRILHA_COM_CONTRATO:
        return TRILHA_COM_CONTRATO
    return TRILHA_SEM_CONTRATO


def etapa_final(step: DistratoStep) -> bool:
    """Indica se ``step`` é a última etapa da sua trilha."""
    return trilha_de(step)[-1] == DistratoStep(step)


def proxima_etapa(step: DistratoStep) -> DistratoStep:
    """Avança uma etapa sem trocar de trilha.

    Raises:
        InvalidStateError: se ``step`` já é a etapa final (use a finalização).
    """
    trilha = trilha_de(step)
    idx = trilha.index(DistratoStep(step))
    if idx == len(trilha) - 1:
        raise InvalidStateError(
            f"Etapa '{DistratoStep(step).value}' é a final da trilha; finalize o churn."
        )
    return trilha[idx + 1]


def situacao_contrato(
    tem_registro: bool,
    contract_expires_at: Optional[datetime],
    agora: datetime,
    dias_aviso: int = 30,
) -> tuple:
    """Classifica o contrato de um cliente.

    Returns:
        Tupla ``(ContractStatus, dias_ate_expirar)``; ``dias_ate_expirar`` é
        ``None`` quando não há data de expiração.
    """
    if not tem_registro:
        return ContractStatus.NOT_SIGNED, None
    if contract_expires_at is None:
        return ContractStatus.SIGNED, None
    dias = ceil((contract_expires_at - agora).total_seconds() / 86400)
    if dias < 0:
        return ContractStatus.EXPIRED, dias
    if dias <= dias_aviso:
        return ContractStatus.EXPIRING, dias
    return ContractStatus.SIGNED, dias


def plano_atrasado(status: PlanStatus, due_date: datetime, agora: datetime) -> bool:
    """Atraso é só observação: plano ativo com prazo vencido."""
    return PlanStatus(status) == PlanStatus.ACTIVE and due_date < agora


def dias_desde(inicio: Optional[datetime], agora: datetime) -> int:
    if inicio is None:
        return 0
    return int((agora - inicio).total_seconds() // 86400)


def instante(agora: Optional[datetime] = None) -> datetime:
    """Relógio injetável: ``agora`` quando informado, senão o instante UTC atual.

    Instantes sem fuso são considerados UTC.
    """
    if agora is None:
        return datetime.now(timezone.utc)
    if agora.tzinfo is None:
        return agora.replace(tzinfo=timezone.utc)
    return agora
