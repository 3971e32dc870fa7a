from datetime import datetime, timedelta, timezone

import pytest

from carteira.domain.errors import InvalidStateError
from carteira.domain.models import ClientStatus, ContractStatus, DistratoStep, PlanStatus
from carteira.domain.policies import (
    TRILHA_COM_CONTRATO,
    TRILHA_SEM_CONTRATO,
    contrato_valido,
    etapa_final,
    etapa_inicial,
    instante,
    plano_atrasado,
    proxima_etapa,
    situacao_contrato,
    status_por_marcos,
)

AGORA = datetime(2024, 6, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "onboarding, campanha, esperado",
    [
        (None, None, ClientStatus.NEW_CLIENT),
        (AGORA, None, ClientStatus.ONBOARDING),
        (None, AGORA, ClientStatus.CAMPAIGN_PUBLISHED),
        (AGORA, AGORA, ClientStatus.CAMPAIGN_PUBLISHED),
    ],
)
def test_status_por_marcos(onboarding, campanha, esperado):
    assert status_por_marcos(onboarding, campanha) == esperado


def test_contrato_valido():
    assert not contrato_valido(None, AGORA)
    assert not contrato_valido(AGORA, AGORA)
    assert not contrato_valido(AGORA - timedelta(days=1), AGORA)
    assert contrato_valido(AGORA + timedelta(seconds=1), AGORA)


def test_etapa_inicial_depende_so_do_contrato():
    assert etapa_inicial(True) == DistratoStep.CHURN_SOLICITADO
    assert etapa_inicial(False) == DistratoStep.SEM_CONTRATO_SOLICITADO


def test_trilha_com_contrato_avanca_em_ordem():
    etapa = TRILHA_COM_CONTRATO[0]
    visitadas = [etapa]
    while not etapa_final(etapa):
        etapa = proxima_etapa(etapa)
        visitadas.append(etapa)
    assert tuple(visitadas) == TRILHA_COM_CONTRATO


def test_trilha_sem_contrato_tem_duas_etapas():
    assert proxima_etapa(DistratoStep.SEM_CONTRATO_SOLICITADO) == DistratoStep.SEM_CONTRATO_EFETIVADO
    assert etapa_final(DistratoStep.SEM_CONTRATO_EFETIVADO)
    assert len(TRILHA_SEM_CONTRATO) == 2


@pytest.mark.parametrize("final", [DistratoStep.DISTRATO_ASSINADO, DistratoStep.SEM_CONTRATO_EFETIVADO])
def test_etapa_final_nao_avanca(final):
    with pytest.raises(InvalidStateError):
        proxima_etapa(final)


def test_situacao_contrato():
    assert situacao_contrato(False, None, AGORA) == (ContractStatus.NOT_SIGNED, None)
    assert situacao_contrato(True, None, AGORA) == (ContractStatus.SIGNED, None)
    assert situacao_contrato(True, AGORA + timedelta(days=10), AGORA) == (ContractStatus.EXPIRING, 10)
    assert situacao_contrato(True, AGORA + timedelta(days=30), AGORA) == (ContractStatus.EXPIRING, 30)
    assert situacao_contrato(True, AGORA + timedelta(days=45), AGORA) == (ContractStatus.SIGNED, 45)
    assert situacao_contrato(True, AGORA - timedelta(days=1), AGORA) == (ContractStatus.EXPIRED, -1)
    # janela configurável
    assert situacao_contrato(True, AGORA + timedelta(days=45), AGORA, dias_aviso=60)[0] == ContractStatus.EXPIRING


def test_plano_atrasado_so_quando_ativo():
    vencido = AGORA - timedelta(days=1)
    assert plano_atrasado(PlanStatus.ACTIVE, vencido, AGORA)
    assert not plano_atrasado(PlanStatus.ACTIVE, AGORA + timedelta(days=1), AGORA)
    assert not plano_atrasado(PlanStatus.COMPLETED, vencido, AGORA)
    assert not plano_atrasado(PlanStatus.CANCELLED, vencido, AGORA)


def test_instante():
    assert instante(AGORA) is AGORA
    ingenuo = datetime(2024, 1, 1, 8, 0)
    assert instante(ingenuo).tzinfo == timezone.utc
    assert instante().tzinfo is not None
