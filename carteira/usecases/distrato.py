# carteira/usecases/distrato.py
"""
UC: fluxo de churn/distrato.

Dois caminhos independentes:
- global: usa os campos ``distrato_step``/``distrato_entered_at`` do cliente;
- por produto: uma linha em ``client_product_churns`` por (cliente, produto),
  sem tocar no status global.

A trilha (4 ou 2 etapas) é escolhida na abertura pela validade do contrato
e nunca muda depois; as etapas só avançam dentro dela.
"""
from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Any, Optional

from carteira.adapters.parsers import parse_valor
from carteira.config import DB_PATH
from carteira.domain.errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from carteira.domain.models import Client, ProductChurn
from carteira.domain.policies import (
    contrato_valido, etapa_final, etapa_inicial, instante, proxima_etapa
)
from carteira.infra.db import connect
from carteira.infra.logger import (
    log_database_operation, log_operacao, log_system_event, log_transaction
)
from carteira.infra.repositories import (
    ClienteRepo, ClientesAtivosRepo, NotificacaoChurnRepo, ProductChurnRepo
)
from carteira.usecases.clientes import obter_cliente


# ----------------------
# Caminho global
# ----------------------

def iniciar_churn_global(
    client_id: int,
    responsavel: Optional[str] = None,
    db_path: str = DB_PATH,
    agora: Optional[datetime] = None,
) -> Client:
    """Abre o distrato global do cliente.

    Contrato válido (registro de ativos com expiração futura) leva à trilha
    de 4 etapas; caso contrário, à de 2. O cliente sai do registro de ativos
    e uma notificação de churn é emitida.

    Raises:
        NotFoundError: cliente inexistente.
        InvalidStateError: cliente já arquivado.
        ConflictError: já existe distrato em andamento.
    """
    agora = instante(agora)
    dados = {"client_id": client_id, "responsavel": responsavel}
    try:
        with connect(db_path, immediate=True) as c:
            cliente = obter_cliente(c, client_id)
            if cliente.em_distrato:
                raise ConflictError(f"Cliente {client_id} já possui distrato em andamento.")
            if cliente.archived:
                raise InvalidStateError(f"Cliente {client_id} está arquivado; restaure antes.")

            ativos = ClientesAtivosRepo(c)
            registro = ativos.get(client_id)
            valido = registro is not None and contrato_valido(registro.contract_expires_at, agora)
            etapa = etapa_inicial(valido)

            clientes = ClienteRepo(c)
            if clientes.iniciar_distrato(client_id, etapa, agora) == 0:
                raise ConflictError(f"Cliente {client_id} já possui distrato em andamento.")
            removidos = ativos.delete(client_id)
            NotificacaoChurnRepo(c).insert(client_id, cliente.name, agora)
            log_database_operation("clients", "UPDATE", 1, client_id=client_id, distrato_step=etapa.value)
            log_database_operation("financeiro_active_clients", "DELETE", removidos, client_id=client_id)
            atualizado = clientes.get(client_id)

        log_operacao("churn", "iniciar_global", client_id, etapa=etapa.value, contrato_valido=valido)
        log_transaction("iniciar_churn_global", dados, result={"distrato_step": etapa.value})
        return atualizado
    except Exception as e:
        log_transaction("iniciar_churn_global", dados, error=str(e))
        raise


def avancar_etapa_distrato(
    client_id: int,
    responsavel: Optional[str] = None,
    db_path: str = DB_PATH,
) -> Client:
    """Avança o distrato global para a próxima etapa da mesma trilha."""
    with connect(db_path, immediate=True) as c:
        cliente = obter_cliente(c, client_id)
        if not cliente.em_distrato:
            raise InvalidStateError(f"Cliente {client_id} não possui distrato em andamento.")
        if cliente.archived:
            raise InvalidStateError(f"Distrato do cliente {client_id} já foi finalizado.")
        proxima = proxima_etapa(cliente.distrato_step)
        clientes = ClienteRepo(c)
        if clientes.avancar_distrato(client_id, cliente.distrato_step, proxima) == 0:
            raise ConflictError(f"Etapa do cliente {client_id} foi alterada por outra operação.")
        atualizado = clientes.get(client_id)

    log_operacao(
        "churn", "avancar_global", client_id,
        de=cliente.distrato_step.value, para=proxima.value, responsavel=responsavel,
    )
    return atualizado


def finalizar_churn(
    client_id: int,
    responsavel: Optional[str] = None,
    db_path: str = DB_PATH,
    agora: Optional[datetime] = None,
) -> Client:
    """Arquiva o cliente cujo distrato global chegou à etapa final."""
    agora = instante(agora)
    with connect(db_path, immediate=True) as c:
        cliente = obter_cliente(c, client_id)
        if not cliente.em_distrato:
            raise InvalidStateError(f"Cliente {client_id} não possui distrato em andamento.")
        if cliente.archived:
            raise InvalidStateError(f"Distrato do cliente {client_id} já foi finalizado.")
        if not etapa_final(cliente.distrato_step):
            raise InvalidStateError(
                f"Distrato na etapa '{cliente.distrato_step.value}'; avance até a etapa final."
            )
        clientes = ClienteRepo(c)
        clientes.arquivar(client_id, agora)
        ClientesAtivosRepo(c).delete(client_id)
        atualizado = clientes.get(client_id)

    log_operacao("churn", "finalizar_global", client_id, responsavel=responsavel)
    log_system_event("cliente_arquivado", {"client_id": client_id})
    return atualizado


# ----------------------
# Caminho por produto
# ----------------------

def _obter_churn_produto(c: sqlite3.Connection, churn_id: int) -> ProductChurn:
    churn = ProductChurnRepo(c).get(churn_id)
    if churn is None:
        raise NotFoundError(f"Churn de produto {churn_id} não encontrado.")
    return churn


def iniciar_churn_produto(
    client_id: int,
    product_slug: str,
    monthly_value: Any,
    has_valid_contract: bool,
    product_name: Optional[str] = None,
    responsavel: Optional[str] = None,
    db_path: str = DB_PATH,
    agora: Optional[datetime] = None,
) -> ProductChurn:
    """Abre o churn de um produto do cliente; o status global não muda.

    Raises:
        ValidationError: produto vazio ou valor mensal negativo.
        NotFoundError: cliente inexistente.
        ConflictError: já existe churn em aberto para o par (cliente, produto).
    """
    agora = instante(agora)
    slug = (product_slug or "").strip()
    dados = {"client_id": client_id, "product_slug": slug, "has_valid_contract": bool(has_valid_contract)}
    try:
        if not slug:
            raise ValidationError("Produto do churn é obrigatório.")
        mensal = parse_valor(monthly_value) if monthly_value is not None else parse_valor(0)
        if mensal is None or mensal < 0:
            raise ValidationError(f"Valor mensal inválido: {monthly_value!r}")

        with connect(db_path, immediate=True) as c:
            cliente = obter_cliente(c, client_id)
            repo = ProductChurnRepo(c)
            if repo.get_open(client_id, slug) is not None:
                raise ConflictError(f"Cliente {client_id} já possui churn em aberto para '{slug}'.")
            try:
                churn_id = repo.insert({
                    "client_id": client_id,
                    "product_slug": slug,
                    "product_name": product_name,
                    "monthly_value": mensal,
                    "has_valid_contract": bool(has_valid_contract),
                    "distrato_step": etapa_inicial(bool(has_valid_contract)),
                    "initiated_at": agora,
                    "initiated_by": responsavel,
                })
            except sqlite3.IntegrityError as e:
                raise ConflictError(f"Cliente {client_id} já possui churn em aberto para '{slug}'.") from e
            NotificacaoChurnRepo(c).insert(client_id, f"{cliente.name} ({product_name or slug})", agora)
            log_database_operation("client_product_churns", "INSERT", 1, churn_id=churn_id)
            churn = repo.get(churn_id)

        log_operacao("churn", "iniciar_produto", client_id, produto=slug, etapa=churn.distrato_step.value)
        log_transaction("iniciar_churn_produto", dados, result={"churn_id": churn.id})
        return churn
    except Exception as e:
        log_transaction("iniciar_churn_produto", dados, error=str(e))
        raise


def avancar_etapa_churn_produto(
    churn_id: int,
    responsavel: Optional[str] = None,
    db_path: str = DB_PATH,
) -> ProductChurn:
    with connect(db_path, immediate=True) as c:
        churn = _obter_churn_produto(c, churn_id)
        if churn.archived:
            raise InvalidStateError(f"Churn de produto {churn_id} já foi finalizado.")
        proxima = proxima_etapa(churn.distrato_step)
        repo = ProductChurnRepo(c)
        if repo.avancar(churn_id, churn.distrato_step, proxima) == 0:
            raise ConflictError(f"Churn de produto {churn_id} foi alterado por outra operação.")
        atualizado = repo.get(churn_id)

    log_operacao(
        "churn", "avancar_produto", churn.client_id,
        churn_id=churn_id, para=proxima.value, responsavel=responsavel,
    )
    return atualizado


def finalizar_churn_produto(
    churn_id: int,
    responsavel: Optional[str] = None,
    db_path: str = DB_PATH,
    agora: Optional[datetime] = None,
) -> ProductChurn:
    """Arquiva o churn do produto e retira o produto do cliente.

    Quando o cliente fica sem produtos contratados, ele também é arquivado
    e sai do registro de clientes ativos.
    """
    agora = instante(agora)
    with connect(db_path, immediate=True) as c:
        churn = _obter_churn_produto(c, churn_id)
        if churn.archived:
            raise InvalidStateError(f"Churn de produto {churn_id} já foi finalizado.")
        if not etapa_final(churn.distrato_step):
            raise InvalidStateError(
                f"Churn na etapa '{churn.distrato_step.value}'; avance até a etapa final."
            )
        repo = ProductChurnRepo(c)
        if repo.arquivar(churn_id, agora) == 0:
            raise ConflictError(f"Churn de produto {churn_id} foi alterado por outra operação.")

        clientes = ClienteRepo(c)
        cliente = obter_cliente(c, churn.client_id)
        restantes = [p for p in cliente.contracted_products if p != churn.product_slug]
        clientes.set_contracted_products(churn.client_id, restantes)
        if not restantes:
            clientes.arquivar(churn.client_id, agora)
            ClientesAtivosRepo(c).delete(churn.client_id)
            log_system_event("cliente_arquivado", {"client_id": churn.client_id, "churn_id": churn_id})
        atualizado = repo.get(churn_id)

    log_operacao(
        "churn", "finalizar_produto", churn.client_id,
        churn_id=churn_id, produtos_restantes=len(restantes), responsavel=responsavel,
    )
    return atualizado
