# carteira/usecases/vendas.py
"""
UC: Registrar VENDAS (única e em lote), UPSELLS e pagamento de comissão.

Obs.:
- As linhas de comissão são gravadas na mesma transação da venda/upsell;
  qualquer falha desfaz as duas coisas.
- O percentual usado é o do cliente no momento da venda e fica copiado
  na própria venda.
"""
from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional

from carteira.adapters.parsers import converter_enum, parse_data, parse_valor
from carteira.adapters.planilhas import load_vendas_from_xlsx
from carteira.config import DB_PATH
from carteira.domain.errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from carteira.domain.formulas import UPSELL_RATE, sale_commission_shares, upsell_commission
from carteira.domain.models import (
    Commission,
    CommissionStatus,
    CommissionType,
    RecipientRole,
    Sale,
    Upsell,
)
from carteira.domain.policies import instante
from carteira.infra.db import connect
from carteira.infra.logger import (
    log_database_operation, log_file_operation, log_operacao,
    log_system_event, log_transaction
)
from carteira.infra.repositories import ComissaoRepo, UpsellRepo, VendaRepo
from carteira.usecases.clientes import obter_cliente


def _valor_positivo(v: Any, campo: str):
    valor = parse_valor(v)
    if valor is None or valor <= 0:
        raise ValidationError(f"{campo} deve ser maior que zero (recebido {v!r}).")
    return valor


def _gravar_comissoes(c: sqlite3.Connection, rows: List[Dict[str, Any]]) -> None:
    try:
        ComissaoRepo(c).insert_many(rows)
    except sqlite3.IntegrityError as e:
        raise ConflictError(f"Comissão já registrada para esta origem: {e}") from e


def _registrar_venda_em(
    c: sqlite3.Connection,
    client_id: int,
    value: Any,
    sale_date: Any,
    registered_by: Optional[str],
    agora: datetime,
) -> Sale:
    valor = _valor_positivo(value, "Valor da venda")
    data = parse_data(sale_date) if sale_date is not None else agora.date()
    if data is None:
        raise ValidationError(f"Data da venda inválida: {sale_date!r}")

    cliente = obter_cliente(c, client_id)
    vendas = VendaRepo(c)
    sale_id = vendas.insert({
        "client_id": client_id,
        "value": valor,
        "sale_date": data,
        "commission_percentage": cliente.sales_percentage,
        "registered_by": registered_by,
        "created_at": agora,
    })
    log_database_operation("client_sales", "INSERT", 1, client_id=client_id, sale_id=sale_id)

    shares = sale_commission_shares(valor, cliente.sales_percentage)
    _gravar_comissoes(c, [
        {
            "type": CommissionType.SALE,
            "source_id": sale_id,
            "client_id": client_id,
            "value": s.value,
            "recipient_role": s.recipient_role,
            "created_at": agora,
        }
        for s in shares
    ])
    log_database_operation("commissions", "INSERT_MANY", len(shares), sale_id=sale_id)
    log_operacao("vendas", "venda", client_id, sale_id=sale_id, valor=str(valor), comissoes=len(shares))
    return vendas.get(sale_id)


def registrar_venda(
    client_id: int,
    value: Any,
    sale_date: Any = None,
    registered_by: Optional[str] = None,
    db_path: str = DB_PATH,
    agora: Optional[datetime] = None,
) -> Sale:
    """Registra uma venda e suas comissões (0 ou 3 linhas) atomicamente."""
    agora = instante(agora)
    dados = {"client_id": client_id, "value": str(value), "sale_date": str(sale_date)}
    try:
        with connect(db_path, immediate=True) as c:
            sale = _registrar_venda_em(c, client_id, value, sale_date, registered_by, agora)
        log_transaction("registrar_venda", dados, result={"sale_id": sale.id})
        return sale
    except Exception as e:
        log_transaction("registrar_venda", dados, error=str(e))
        raise


def registrar_vendas_lote(
    path: str,
    registered_by: Optional[str] = None,
    db_path: str = DB_PATH,
    agora: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Lê um XLSX de vendas e registra todas as linhas (tudo ou nada)."""
    agora = instante(agora)
    log_system_event("vendas_lote_start", {"file_path": path})
    log_file_operation("import", path)
    try:
        rows = load_vendas_from_xlsx(path)
        log_file_operation("import", path, rows_processed=len(rows))

        sales: List[Sale] = []
        with connect(db_path, immediate=True) as c:
            for row in rows:
                sales.append(_registrar_venda_em(
                    c,
                    row["client_id"],
                    row["value"],
                    row["sale_date"],
                    row.get("registered_by") or registered_by,
                    agora,
                ))

        result = {"arquivo": path, "vendas_registradas": len(sales), "sale_ids": [s.id for s in sales]}
        log_transaction("registrar_vendas_lote", {"file": path, "rows_count": len(rows)}, result=result)
        return result
    except Exception as e:
        log_transaction("registrar_vendas_lote", {"file": path}, error=str(e))
        log_system_event("vendas_lote_error", {"file_path": path, "error": str(e)}, level="error")
        raise


def registrar_upsell(
    client_id: int,
    product_slug: str,
    monthly_value: Any,
    product_name: Optional[str] = None,
    sold_by: Optional[str] = None,
    seller_role: Optional[RecipientRole] = None,
    db_path: str = DB_PATH,
    agora: Optional[datetime] = None,
) -> Upsell:
    """Registra um upsell e a comissão única (7% do valor mensal, pendente).

    O destinatário é ``sucesso_cliente``, salvo quando o papel de quem vendeu
    é informado em ``seller_role``.
    """
    agora = instante(agora)
    slug = (product_slug or "").strip()
    dados = {"client_id": client_id, "product_slug": slug, "monthly_value": str(monthly_value)}
    try:
        if not slug:
            raise ValidationError("Produto do upsell é obrigatório.")
        mensal = _valor_positivo(monthly_value, "Valor mensal do upsell")
        papel = (
            converter_enum(RecipientRole, seller_role, "Papel de quem vendeu")
            if seller_role else RecipientRole.SUCESSO_CLIENTE
        )

        with connect(db_path, immediate=True) as c:
            obter_cliente(c, client_id)
            upsells = UpsellRepo(c)
            upsell_id = upsells.insert({
                "client_id": client_id,
                "product_slug": slug,
                "product_name": product_name,
                "monthly_value": mensal,
                "sold_by": sold_by,
                "created_at": agora,
            })
            _gravar_comissoes(c, [{
                "type": CommissionType.UPSELL,
                "source_id": upsell_id,
                "client_id": client_id,
                "value": upsell_commission(mensal, UPSELL_RATE),
                "recipient_role": papel,
                "recipient": sold_by,
                "created_at": agora,
            }])
            log_database_operation("upsells", "INSERT", 1, upsell_id=upsell_id)
            upsell = upsells.get(upsell_id)

        log_operacao("vendas", "upsell", client_id, upsell_id=upsell.id, produto=slug)
        log_transaction("registrar_upsell", dados, result={"upsell_id": upsell.id})
        return upsell
    except Exception as e:
        log_transaction("registrar_upsell", dados, error=str(e))
        raise


def comissoes_da_origem(tipo: CommissionType, source_id: int, db_path: str = DB_PATH) -> List[Commission]:
    with connect(db_path) as c:
        return ComissaoRepo(c).list_by_source(tipo, source_id)


def marcar_comissao_paga(
    commission_id: int,
    responsavel: Optional[str] = None,
    db_path: str = DB_PATH,
    agora: Optional[datetime] = None,
) -> Commission:
    """Marca como paga uma comissão de upsell pendente.

    Raises:
        NotFoundError: comissão inexistente.
        InvalidStateError: comissão de venda ou já paga.
        ConflictError: outra chamada pagou a comissão entre a leitura e a escrita.
    """
    agora = instante(agora)
    try:
        with connect(db_path, immediate=True) as c:
            repo = ComissaoRepo(c)
            com = repo.get(commission_id)
            if com is None:
                raise NotFoundError(f"Comissão {commission_id} não encontrada.")
            if com.type != CommissionType.UPSELL:
                raise InvalidStateError("Somente comissões de upsell podem ser marcadas como pagas.")
            if com.status != CommissionStatus.PENDING:
                raise InvalidStateError(f"Comissão {commission_id} já está paga.")
            if repo.marcar_paga(commission_id, agora) == 0:
                raise ConflictError(f"Comissão {commission_id} foi alterada por outra operação.")
            log_database_operation("commissions", "UPDATE", 1, commission_id=commission_id, status="paid")
            paga = repo.get(commission_id)

        log_transaction(
            "marcar_comissao_paga",
            {"commission_id": commission_id, "responsavel": responsavel},
            result="paid",
        )
        return paga
    except Exception as e:
        log_transaction("marcar_comissao_paga", {"commission_id": commission_id}, error=str(e))
        raise
