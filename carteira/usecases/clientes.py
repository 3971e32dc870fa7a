# carteira/usecases/clientes.py
"""
UC: cadastro e ciclo de vida do cliente.

- registrar cliente
- marcar marco (onboarding / campanha publicada)
- registrar contrato (registro de clientes ativos)
- restaurar cliente saído do distrato
- situação do contrato
"""
from __future__ import annotations

import sqlite3
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

from carteira.adapters.parsers import parse_data, parse_instante, parse_valor
from carteira.config import DB_PATH, DEFAULTS
from carteira.domain.errors import NotFoundError, ValidationError
from carteira.domain.models import ActiveClientContract, Client, ClientStatus
from carteira.domain.policies import instante, situacao_contrato, status_por_marcos
from carteira.infra.db import connect
from carteira.infra.logger import (
    log_database_operation, log_system_event, log_transaction
)
from carteira.infra.repositories import ClienteRepo, ClientesAtivosRepo, ParamsRepo


MARCOS = {
    "onboarding": ("onboarding_started_at", ClientStatus.ONBOARDING),
    "campaign_published": ("campaign_published_at", ClientStatus.CAMPAIGN_PUBLISHED),
}

# Ordem de avanço do status por marcos
_ORDEM_STATUS = [
    ClientStatus.NEW_CLIENT,
    ClientStatus.ONBOARDING,
    ClientStatus.CAMPAIGN_PUBLISHED,
]


def obter_cliente(c: sqlite3.Connection, client_id: int) -> Client:
    """Carrega o cliente ou levanta NotFoundError."""
    cliente = ClienteRepo(c).get(client_id)
    if cliente is None:
        raise NotFoundError(f"Cliente {client_id} não encontrado.")
    return cliente


def _percentual(v: Any) -> Decimal:
    pct = parse_valor(v)
    if pct is None or pct < 0 or pct > 100:
        raise ValidationError(f"Percentual de vendas inválido: {v!r} (esperado 0 a 100).")
    return pct


def registrar_cliente(
    name: str,
    sales_percentage: Any = 0,
    monthly_value: Any = 0,
    contracted_products: Optional[Iterable[str]] = None,
    entry_date: Any = None,
    db_path: str = DB_PATH,
    agora: Optional[datetime] = None,
) -> Client:
    """Cadastra um cliente novo com status ``new_client``."""
    agora = instante(agora)
    nome = (name or "").strip()
    dados = {"name": nome, "sales_percentage": str(sales_percentage), "monthly_value": str(monthly_value)}
    try:
        if not nome:
            raise ValidationError("Nome do cliente é obrigatório.")
        pct = _percentual(sales_percentage)
        mensal = parse_valor(monthly_value)
        if mensal is None or mensal < 0:
            raise ValidationError(f"Valor mensal inválido: {monthly_value!r}")
        entrada = parse_data(entry_date) if entry_date is not None else agora.date()
        if entry_date is not None and entrada is None:
            raise ValidationError(f"Data de entrada inválida: {entry_date!r}")

        with connect(db_path) as c:
            repo = ClienteRepo(c)
            client_id = repo.insert({
                "name": nome,
                "status": ClientStatus.NEW_CLIENT,
                "contracted_products": [p.strip() for p in (contracted_products or []) if p and p.strip()],
                "sales_percentage": pct,
                "monthly_value": mensal,
                "entry_date": entrada,
                "created_at": agora,
            })
            log_database_operation("clients", "INSERT", 1, client_id=client_id)
            cliente = repo.get(client_id)

        log_transaction("registrar_cliente", dados, result={"client_id": client_id})
        return cliente
    except Exception as e:
        log_transaction("registrar_cliente", dados, error=str(e))
        raise


def marcar_marco(
    client_id: int,
    marco: str,
    db_path: str = DB_PATH,
    agora: Optional[datetime] = None,
) -> Client:
    """Grava o instante do marco e avança o status (nunca retrocede).

    Clientes em churn recebem o carimbo do marco, mas mantêm o status;
    a restauração passa a considerá-lo.
    """
    if marco not in MARCOS:
        raise ValidationError(f"Marco inválido: {marco!r} (use {', '.join(MARCOS)})")
    agora = instante(agora)
    coluna, novo_status = MARCOS[marco]

    with connect(db_path, immediate=True) as c:
        cliente = obter_cliente(c, client_id)
        status = None
        if cliente.status != ClientStatus.CHURNED and \
                _ORDEM_STATUS.index(novo_status) > _ORDEM_STATUS.index(cliente.status):
            status = novo_status
        repo = ClienteRepo(c)
        repo.marcar_marco(client_id, coluna, agora, status)
        log_database_operation("clients", "UPDATE", 1, client_id=client_id, marco=marco)
        cliente = repo.get(client_id)

    log_system_event("marco_registrado", {"client_id": client_id, "marco": marco})
    return cliente


def registrar_contrato(
    client_id: int,
    contract_expires_at: Any,
    monthly_value: Any = None,
    db_path: str = DB_PATH,
) -> ActiveClientContract:
    """Inclui ou atualiza o cliente no registro de clientes ativos."""
    expira = parse_instante(contract_expires_at) if contract_expires_at not in (None, "") else None
    if contract_expires_at not in (None, "") and expira is None:
        raise ValidationError(f"Data de expiração inválida: {contract_expires_at!r}")
    mensal = parse_valor(monthly_value) if monthly_value is not None else None
    if mensal is not None and mensal < 0:
        raise ValidationError(f"Valor mensal inválido: {monthly_value!r}")

    with connect(db_path) as c:
        obter_cliente(c, client_id)
        repo = ClientesAtivosRepo(c)
        repo.upsert(client_id, expira, mensal)
        log_database_operation("financeiro_active_clients", "UPSERT", 1, client_id=client_id)
        return repo.get(client_id)


def restaurar_cliente(
    client_id: int,
    responsavel: Optional[str] = None,
    db_path: str = DB_PATH,
) -> Client:
    """Tira o cliente do distrato/arquivo e recalcula o status pelos marcos."""
    try:
        with connect(db_path, immediate=True) as c:
            cliente = obter_cliente(c, client_id)
            status = status_por_marcos(cliente.onboarding_started_at, cliente.campaign_published_at)
            repo = ClienteRepo(c)
            repo.restaurar(client_id, status)
            log_database_operation("clients", "UPDATE", 1, client_id=client_id, status=status.value)
            restaurado = repo.get(client_id)

        log_transaction(
            "restaurar_cliente",
            {"client_id": client_id, "responsavel": responsavel},
            result={"status": restaurado.status.value},
        )
        return restaurado
    except Exception as e:
        log_transaction("restaurar_cliente", {"client_id": client_id}, error=str(e))
        raise


def situacao_contrato_cliente(
    client_id: int,
    db_path: str = DB_PATH,
    agora: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Situação do contrato: ``not_signed``, ``signed``, ``expiring`` ou ``expired``.

    A janela de aviso vem do parâmetro ``dias_aviso_contrato`` (tabela params),
    com padrão em ``DEFAULTS``.
    """
    agora = instante(agora)
    dias_aviso = ParamsRepo(db_path).get_int("dias_aviso_contrato", DEFAULTS.dias_aviso_contrato)
    with connect(db_path) as c:
        obter_cliente(c, client_id)
        registro = ClientesAtivosRepo(c).get(client_id)

    expira = registro.contract_expires_at if registro else None
    status, dias = situacao_contrato(registro is not None, expira, agora, dias_aviso)
    return {
        "client_id": client_id,
        "status": status,
        "contract_expires_at": expira,
        "dias_para_expirar": dias,
    }
