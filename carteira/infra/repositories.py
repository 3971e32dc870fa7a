# carteira/infra/repositories.py
"""
Repositórios (DAO) para acesso e manipulação de dados no SQLite.

Classes:
- ParamsRepo
- ClienteRepo
- ClientesAtivosRepo
- ProductChurnRepo
- VendaRepo
- UpsellRepo
- ComissaoRepo
- PlanoAcaoRepo
- TarefaRepo
- NotificacaoChurnRepo

Com exceção de ParamsRepo, os repositórios recebem uma conexão já aberta
(``carteira.infra.db.connect``): o caso de uso decide onde começa e termina
a transação. As atualizações condicionais devolvem ``rowcount`` para que o
chamador detecte concorrência (0 linhas = condição não satisfeita).
"""

from __future__ import annotations

import json
import sqlite3
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .db import connect
from carteira.adapters.parsers import parse_data, parse_instante
from carteira.domain.models import (
    ActionPlan,
    ActionPlanTask,
    ActiveClientContract,
    ChurnNotification,
    Client,
    ClientStatus,
    Commission,
    CommissionStatus,
    CommissionType,
    DistratoStep,
    PlanStatus,
    ProblemType,
    ProductChurn,
    RecipientRole,
    Sale,
    Severity,
    TaskType,
    Upsell,
)


# -------------------------
# Helpers
# -------------------------

def _iso(v: Any) -> Optional[str]:
    if v is None:
        return None
    if isinstance(v, (datetime, date)):
        return v.isoformat()
    return str(v)


def _dec(v: Any) -> Optional[Decimal]:
    if v is None:
        return None
    return Decimal(str(v))


def _enum_or_none(enum_cls, v):
    return enum_cls(v) if v is not None else None


def _row_to_client(r: sqlite3.Row) -> Client:
    return Client(
        id=r["id"],
        name=r["name"],
        status=ClientStatus(r["status"]),
        archived=bool(r["archived"]),
        archived_at=parse_instante(r["archived_at"]),
        distrato_step=_enum_or_none(DistratoStep, r["distrato_step"]),
        distrato_entered_at=parse_instante(r["distrato_entered_at"]),
        contracted_products=json.loads(r["contracted_products"] or "[]"),
        sales_percentage=_dec(r["sales_percentage"]),
        monthly_value=_dec(r["monthly_value"]),
        entry_date=parse_data(r["entry_date"]),
        onboarding_started_at=parse_instante(r["onboarding_started_at"]),
        campaign_published_at=parse_instante(r["campaign_published_at"]),
        created_at=parse_instante(r["created_at"]),
    )


def _row_to_product_churn(r: sqlite3.Row) -> ProductChurn:
    return ProductChurn(
        id=r["id"],
        client_id=r["client_id"],
        product_slug=r["product_slug"],
        product_name=r["product_name"],
        monthly_value=_dec(r["monthly_value"]),
        has_valid_contract=bool(r["had_valid_contract"]),
        distrato_step=DistratoStep(r["distrato_step"]),
        initiated_at=parse_instante(r["distrato_entered_at"]),
        initiated_by=r["initiated_by"],
        archived=bool(r["archived"]),
        archived_at=parse_instante(r["archived_at"]),
    )


def _row_to_commission(r: sqlite3.Row) -> Commission:
    return Commission(
        id=r["id"],
        type=CommissionType(r["type"]),
        source_id=r["source_id"],
        client_id=r["client_id"],
        value=_dec(r["value"]),
        status=CommissionStatus(r["status"]),
        recipient_role=RecipientRole(r["recipient_role"]),
        recipient=r["recipient"],
        created_at=parse_instante(r["created_at"]),
        paid_at=parse_instante(r["paid_at"]),
    )


def _row_to_plan(r: sqlite3.Row) -> ActionPlan:
    return ActionPlan(
        id=r["id"],
        client_id=r["client_id"],
        problem_type=ProblemType(r["problem_type"]),
        severity=Severity(r["severity"]),
        indicators=json.loads(r["indicators"] or "[]"),
        notes=r["notes"],
        status=PlanStatus(r["status"]),
        due_date=parse_instante(r["due_date"]),
        created_at=parse_instante(r["created_at"]),
        created_by=r["created_by"],
        completed_at=parse_instante(r["completed_at"]),
    )


def _row_to_task(r: sqlite3.Row) -> ActionPlanTask:
    return ActionPlanTask(
        id=r["id"],
        plan_id=r["action_plan_id"],
        title=r["title"],
        task_type=TaskType(r["task_type"]),
        is_completed=bool(r["is_completed"]),
        completed_at=parse_instante(r["completed_at"]),
        completed_by=r["completed_by"],
        position=r["position"],
    )


# -------------------------
# Params
# -------------------------

class ParamsRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def set_many(self, items: Iterable[Tuple[str, str]]) -> None:
        with connect(self.db_path) as c:
            c.executemany(
                """
                INSERT INTO params (chave, valor)
                VALUES (?, ?)
                ON CONFLICT(chave) DO UPDATE SET valor=excluded.valor
                """,
                list(items),
            )

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with connect(self.db_path) as c:
            row = c.execute("SELECT valor FROM params WHERE chave = ?", (key,)).fetchone()
            return row[0] if row else default

    def get_int(self, key: str, default: int) -> int:
        v = self.get(key, None)
        if v is None:
            return default
        try:
            return int(float(v))
        except ValueError:
            return default


# -------------------------
# Clientes
# -------------------------

class ClienteRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.c = conn

    def insert(self, row: Dict[str, Any]) -> int:
        payload = {
            "name": row["name"],
            "status": ClientStatus(row.get("status") or ClientStatus.NEW_CLIENT).value,
            "contracted_products": json.dumps(sorted(set(row.get("contracted_products") or []))),
            "sales_percentage": str(row.get("sales_percentage") or 0),
            "monthly_value": str(row.get("monthly_value") or 0),
            "entry_date": _iso(row.get("entry_date")),
            "created_at": _iso(row["created_at"]),
        }
        cur = self.c.execute(
            """
            INSERT INTO clients
                (name, status, contracted_products, sales_percentage,
                 monthly_value, entry_date, created_at)
            VALUES
                (:name, :status, :contracted_products, :sales_percentage,
                 :monthly_value, :entry_date, :created_at)
            """,
            payload,
        )
        return cur.lastrowid

    def get(self, client_id: int) -> Optional[Client]:
        r = self.c.execute("SELECT * FROM clients WHERE id = ?", (client_id,)).fetchone()
        return _row_to_client(r) if r else None

    def get_all(self) -> List[Client]:
        cur = self.c.execute("SELECT * FROM clients ORDER BY name COLLATE NOCASE, id")
        return [_row_to_client(r) for r in cur.fetchall()]

    def iniciar_distrato(self, client_id: int, step: DistratoStep, entered_at: datetime) -> int:
        """Grava o distrato apenas se não houver outro em andamento."""
        cur = self.c.execute(
            """
            UPDATE clients
               SET status = 'churned',
                   distrato_step = ?,
                   distrato_entered_at = ?
             WHERE id = ?
               AND distrato_step IS NULL
            """,
            (DistratoStep(step).value, _iso(entered_at), client_id),
        )
        return cur.rowcount

    def avancar_distrato(self, client_id: int, atual: DistratoStep, proxima: DistratoStep) -> int:
        cur = self.c.execute(
            "UPDATE clients SET distrato_step = ? WHERE id = ? AND distrato_step = ?",
            (DistratoStep(proxima).value, client_id, DistratoStep(atual).value),
        )
        return cur.rowcount

    def arquivar(self, client_id: int, archived_at: datetime) -> int:
        cur = self.c.execute(
            """
            UPDATE clients
               SET archived = 1, archived_at = ?, status = 'churned'
             WHERE id = ?
            """,
            (_iso(archived_at), client_id),
        )
        return cur.rowcount

    def restaurar(self, client_id: int, status: ClientStatus) -> int:
        cur = self.c.execute(
            """
            UPDATE clients
               SET status = ?,
                   archived = 0,
                   archived_at = NULL,
                   distrato_step = NULL,
                   distrato_entered_at = NULL
             WHERE id = ?
            """,
            (ClientStatus(status).value, client_id),
        )
        return cur.rowcount

    def marcar_marco(self, client_id: int, coluna: str, quando: datetime, status: Optional[ClientStatus]) -> int:
        if coluna not in ("onboarding_started_at", "campaign_published_at"):
            raise ValueError(f"marco desconhecido: {coluna}")
        if status is None:
            cur = self.c.execute(
                f"UPDATE clients SET {coluna} = ? WHERE id = ?",
                (_iso(quando), client_id),
            )
        else:
            cur = self.c.execute(
                f"UPDATE clients SET {coluna} = ?, status = ? WHERE id = ?",
                (_iso(quando), ClientStatus(status).value, client_id),
            )
        return cur.rowcount

    def set_contracted_products(self, client_id: int, products: Iterable[str]) -> int:
        cur = self.c.execute(
            "UPDATE clients SET contracted_products = ? WHERE id = ?",
            (json.dumps(sorted(set(products))), client_id),
        )
        return cur.rowcount


# -------------------------
# Clientes ativos (contratos)
# -------------------------

class ClientesAtivosRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.c = conn

    def upsert(self, client_id: int, contract_expires_at: Optional[datetime], monthly_value: Optional[Decimal]) -> None:
        self.c.execute(
            """
            INSERT INTO financeiro_active_clients (client_id, contract_expires_at, monthly_value)
            VALUES (?, ?, ?)
            ON CONFLICT(client_id) DO UPDATE SET
                contract_expires_at=excluded.contract_expires_at,
                monthly_value=excluded.monthly_value
            """,
            (client_id, _iso(contract_expires_at), _iso(monthly_value)),
        )

    def get(self, client_id: int) -> Optional[ActiveClientContract]:
        r = self.c.execute(
            "SELECT * FROM financeiro_active_clients WHERE client_id = ?", (client_id,)
        ).fetchone()
        if not r:
            return None
        return ActiveClientContract(
            client_id=r["client_id"],
            contract_expires_at=parse_instante(r["contract_expires_at"]),
            monthly_value=_dec(r["monthly_value"]),
        )

    def map_monthly_value(self) -> Dict[int, Decimal]:
        cur = self.c.execute(
            "SELECT client_id, monthly_value FROM financeiro_active_clients WHERE monthly_value IS NOT NULL"
        )
        return {r[0]: _dec(r[1]) for r in cur.fetchall()}

    def delete(self, client_id: int) -> int:
        cur = self.c.execute("DELETE FROM financeiro_active_clients WHERE client_id = ?", (client_id,))
        return cur.rowcount


# -------------------------
# Churn por produto
# -------------------------

class ProductChurnRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.c = conn

    def insert(self, row: Dict[str, Any]) -> int:
        cur = self.c.execute(
            """
            INSERT INTO client_product_churns
                (client_id, product_slug, product_name, monthly_value,
                 had_valid_contract, distrato_step, distrato_entered_at, initiated_by)
            VALUES
                (:client_id, :product_slug, :product_name, :monthly_value,
                 :had_valid_contract, :distrato_step, :distrato_entered_at, :initiated_by)
            """,
            {
                "client_id": row["client_id"],
                "product_slug": row["product_slug"],
                "product_name": row.get("product_name"),
                "monthly_value": str(row.get("monthly_value") or 0),
                "had_valid_contract": 1 if row["has_valid_contract"] else 0,
                "distrato_step": DistratoStep(row["distrato_step"]).value,
                "distrato_entered_at": _iso(row["initiated_at"]),
                "initiated_by": row.get("initiated_by"),
            },
        )
        return cur.lastrowid

    def get(self, churn_id: int) -> Optional[ProductChurn]:
        r = self.c.execute("SELECT * FROM client_product_churns WHERE id = ?", (churn_id,)).fetchone()
        return _row_to_product_churn(r) if r else None

    def get_open(self, client_id: int, product_slug: str) -> Optional[ProductChurn]:
        r = self.c.execute(
            """
            SELECT * FROM client_product_churns
             WHERE client_id = ? AND product_slug = ? AND archived = 0
            """,
            (client_id, product_slug),
        ).fetchone()
        return _row_to_product_churn(r) if r else None

    def list_open(self, product_slug: Optional[str] = None) -> List[ProductChurn]:
        sql = "SELECT * FROM client_product_churns WHERE archived = 0"
        params: Tuple = ()
        if product_slug:
            sql += " AND product_slug = ?"
            params = (product_slug,)
        sql += " ORDER BY distrato_entered_at DESC, id DESC"
        return [_row_to_product_churn(r) for r in self.c.execute(sql, params).fetchall()]

    def list_all(self) -> List[ProductChurn]:
        cur = self.c.execute("SELECT * FROM client_product_churns ORDER BY id")
        return [_row_to_product_churn(r) for r in cur.fetchall()]

    def avancar(self, churn_id: int, atual: DistratoStep, proxima: DistratoStep) -> int:
        cur = self.c.execute(
            """
            UPDATE client_product_churns SET distrato_step = ?
             WHERE id = ? AND distrato_step = ? AND archived = 0
            """,
            (DistratoStep(proxima).value, churn_id, DistratoStep(atual).value),
        )
        return cur.rowcount

    def arquivar(self, churn_id: int, archived_at: datetime) -> int:
        cur = self.c.execute(
            """
            UPDATE client_product_churns SET archived = 1, archived_at = ?
             WHERE id = ? AND archived = 0
            """,
            (_iso(archived_at), churn_id),
        )
        return cur.rowcount


# -------------------------
# Vendas / Upsells
# -------------------------

class VendaRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.c = conn

    def insert(self, row: Dict[str, Any]) -> int:
        cur = self.c.execute(
            """
            INSERT INTO client_sales
                (client_id, sale_value, sale_date, commission_percentage, registered_by, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                row["client_id"],
                str(row["value"]),
                _iso(row["sale_date"]),
                str(row["commission_percentage"]),
                row.get("registered_by"),
                _iso(row["created_at"]),
            ),
        )
        return cur.lastrowid

    def get(self, sale_id: int) -> Optional[Sale]:
        r = self.c.execute("SELECT * FROM client_sales WHERE id = ?", (sale_id,)).fetchone()
        if not r:
            return None
        return Sale(
            id=r["id"],
            client_id=r["client_id"],
            value=_dec(r["sale_value"]),
            sale_date=parse_data(r["sale_date"]),
            commission_percentage=_dec(r["commission_percentage"]),
            registered_by=r["registered_by"],
            created_at=parse_instante(r["created_at"]),
        )

    def totais_por_cliente(self) -> Dict[int, Decimal]:
        out: Dict[int, Decimal] = {}
        for client_id, valor in self.c.execute("SELECT client_id, sale_value FROM client_sales"):
            out[client_id] = out.get(client_id, Decimal("0")) + _dec(valor)
        return out


class UpsellRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.c = conn

    def insert(self, row: Dict[str, Any]) -> int:
        cur = self.c.execute(
            """
            INSERT INTO upsells
                (client_id, product_slug, product_name, monthly_value, sold_by, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                row["client_id"],
                row["product_slug"],
                row.get("product_name"),
                str(row["monthly_value"]),
                row.get("sold_by"),
                _iso(row["created_at"]),
            ),
        )
        return cur.lastrowid

    def get(self, upsell_id: int) -> Optional[Upsell]:
        r = self.c.execute("SELECT * FROM upsells WHERE id = ?", (upsell_id,)).fetchone()
        if not r:
            return None
        return self._to_upsell(r)

    def list_all(self) -> List[Upsell]:
        cur = self.c.execute("SELECT * FROM upsells ORDER BY created_at DESC, id DESC")
        return [self._to_upsell(r) for r in cur.fetchall()]

    @staticmethod
    def _to_upsell(r: sqlite3.Row) -> Upsell:
        return Upsell(
            id=r["id"],
            client_id=r["client_id"],
            product_slug=r["product_slug"],
            product_name=r["product_name"],
            monthly_value=_dec(r["monthly_value"]),
            sold_by=r["sold_by"],
            created_at=parse_instante(r["created_at"]),
        )


# -------------------------
# Comissões
# -------------------------

class ComissaoRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.c = conn

    def insert_many(self, rows: Iterable[Dict[str, Any]]) -> List[int]:
        ids: List[int] = []
        for row in rows:
            cur = self.c.execute(
                """
                INSERT INTO commissions
                    (type, source_id, client_id, value, status, recipient_role, recipient, created_at)
                VALUES (?, ?, ?, ?, 'pending', ?, ?, ?)
                """,
                (
                    CommissionType(row["type"]).value,
                    row["source_id"],
                    row["client_id"],
                    str(row["value"]),
                    RecipientRole(row["recipient_role"]).value,
                    row.get("recipient"),
                    _iso(row["created_at"]),
                ),
            )
            ids.append(cur.lastrowid)
        return ids

    def get(self, commission_id: int) -> Optional[Commission]:
        r = self.c.execute("SELECT * FROM commissions WHERE id = ?", (commission_id,)).fetchone()
        return _row_to_commission(r) if r else None

    def list_by_source(self, tipo: CommissionType, source_id: int) -> List[Commission]:
        cur = self.c.execute(
            "SELECT * FROM commissions WHERE type = ? AND source_id = ? ORDER BY id",
            (CommissionType(tipo).value, source_id),
        )
        return [_row_to_commission(r) for r in cur.fetchall()]

    def marcar_paga(self, commission_id: int, paid_at: datetime) -> int:
        cur = self.c.execute(
            """
            UPDATE commissions SET status = 'paid', paid_at = ?
             WHERE id = ? AND type = 'upsell' AND status = 'pending'
            """,
            (_iso(paid_at), commission_id),
        )
        return cur.rowcount


# -------------------------
# Planos de ação / tarefas
# -------------------------

class PlanoAcaoRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.c = conn

    def insert(self, row: Dict[str, Any]) -> int:
        cur = self.c.execute(
            """
            INSERT INTO cs_action_plans
                (client_id, problem_type, severity, status, indicators, notes,
                 created_by, created_at, due_date)
            VALUES (?, ?, ?, 'active', ?, ?, ?, ?, ?)
            """,
            (
                row["client_id"],
                ProblemType(row["problem_type"]).value,
                Severity(row["severity"]).value,
                json.dumps(list(row["indicators"]), ensure_ascii=False),
                row.get("notes"),
                row.get("created_by"),
                _iso(row["created_at"]),
                _iso(row["due_date"]),
            ),
        )
        return cur.lastrowid

    def get(self, plan_id: int) -> Optional[ActionPlan]:
        r = self.c.execute("SELECT * FROM cs_action_plans WHERE id = ?", (plan_id,)).fetchone()
        return _row_to_plan(r) if r else None

    def list(self, client_id: Optional[int] = None, status: Optional[PlanStatus] = None) -> List[ActionPlan]:
        sql = "SELECT * FROM cs_action_plans WHERE 1=1"
        params: List[Any] = []
        if client_id is not None:
            sql += " AND client_id = ?"
            params.append(client_id)
        if status is not None:
            sql += " AND status = ?"
            params.append(PlanStatus(status).value)
        sql += " ORDER BY created_at DESC, id DESC"
        return [_row_to_plan(r) for r in self.c.execute(sql, params).fetchall()]

    def update_status(self, plan_id: int, status: PlanStatus, completed_at: Optional[datetime]) -> int:
        """Transição otimista: só grava se o plano ainda estiver ativo."""
        cur = self.c.execute(
            """
            UPDATE cs_action_plans SET status = ?, completed_at = ?
             WHERE id = ? AND status = 'active'
            """,
            (PlanStatus(status).value, _iso(completed_at), plan_id),
        )
        return cur.rowcount

    def delete(self, plan_id: int) -> int:
        cur = self.c.execute("DELETE FROM cs_action_plans WHERE id = ?", (plan_id,))
        return cur.rowcount


class TarefaRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.c = conn

    def insert_many(self, plan_id: int, tarefas: Iterable[Tuple[TaskType, str]], start: int = 0) -> None:
        rows = [
            (plan_id, titulo, TaskType(tipo).value, pos)
            for pos, (tipo, titulo) in enumerate(tarefas, start=start)
        ]
        if not rows:
            return
        self.c.executemany(
            """
            INSERT INTO cs_action_plan_tasks (action_plan_id, title, task_type, position)
            VALUES (?, ?, ?, ?)
            """,
            rows,
        )

    def next_position(self, plan_id: int) -> int:
        r = self.c.execute(
            "SELECT COALESCE(MAX(position), -1) + 1 FROM cs_action_plan_tasks WHERE action_plan_id = ?",
            (plan_id,),
        ).fetchone()
        return int(r[0])

    def get(self, task_id: int) -> Optional[ActionPlanTask]:
        r = self.c.execute("SELECT * FROM cs_action_plan_tasks WHERE id = ?", (task_id,)).fetchone()
        return _row_to_task(r) if r else None

    def list_by_plan(self, plan_id: int) -> List[ActionPlanTask]:
        cur = self.c.execute(
            "SELECT * FROM cs_action_plan_tasks WHERE action_plan_id = ? ORDER BY position, id",
            (plan_id,),
        )
        return [_row_to_task(r) for r in cur.fetchall()]

    def set_completed(self, task_id: int, completed: bool, when: Optional[datetime], by: Optional[str]) -> int:
        cur = self.c.execute(
            """
            UPDATE cs_action_plan_tasks
               SET is_completed = ?, completed_at = ?, completed_by = ?
             WHERE id = ?
            """,
            (1 if completed else 0, _iso(when) if completed else None, by if completed else None, task_id),
        )
        return cur.rowcount


# -------------------------
# Notificações de churn
# -------------------------

class NotificacaoChurnRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.c = conn

    def insert(self, client_id: int, client_name: str, created_at: datetime) -> int:
        cur = self.c.execute(
            "INSERT INTO churn_notifications (client_id, client_name, created_at) VALUES (?, ?, ?)",
            (client_id, client_name, _iso(created_at)),
        )
        return cur.lastrowid

    def list_all(self) -> List[ChurnNotification]:
        cur = self.c.execute("SELECT * FROM churn_notifications ORDER BY created_at DESC, id DESC")
        return [
            ChurnNotification(
                id=r["id"],
                client_id=r["client_id"],
                client_name=r["client_name"],
                created_at=parse_instante(r["created_at"]),
            )
            for r in cur.fetchall()
        ]
