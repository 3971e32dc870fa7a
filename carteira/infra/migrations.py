# carteira/infra/migrations.py
"""
Migrações de schema usando PRAGMA user_version.

V1: tabelas base (clientes, contratos, churn por produto, vendas, upsells,
    comissões, planos de ação e notificações)
V2: colunas de pagamento/conclusão e índices únicos de idempotência
"""

from __future__ import annotations

from typing import List
from .db import connect
from .logger import log_database_operation


SCHEMA_V1: List[str] = [
    # Parâmetros K/V
    """
    CREATE TABLE IF NOT EXISTS params (
        chave TEXT PRIMARY KEY,
        valor TEXT
    );
    """,
    # Cadastro de clientes
    """
    CREATE TABLE IF NOT EXISTS clients (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'new_client'
            CHECK (status IN ('new_client', 'onboarding', 'campaign_published', 'churned')),
        archived INTEGER NOT NULL DEFAULT 0,
        archived_at TEXT,
        distrato_step TEXT,
        distrato_entered_at TEXT,
        contracted_products TEXT NOT NULL DEFAULT '[]', -- JSON array de slugs
        sales_percentage TEXT NOT NULL DEFAULT '0',
        monthly_value TEXT NOT NULL DEFAULT '0',
        entry_date TEXT,
        onboarding_started_at TEXT,
        campaign_published_at TEXT,
        created_at TEXT NOT NULL,
        CHECK (archived = 0 OR status = 'churned')
    );
    """,
    # Registro de clientes ativos (contrato assinado)
    """
    CREATE TABLE IF NOT EXISTS financeiro_active_clients (
        client_id INTEGER PRIMARY KEY,
        contract_expires_at TEXT,
        monthly_value TEXT,
        FOREIGN KEY (client_id) REFERENCES clients(id) ON DELETE CASCADE
    );
    """,
    # Churn por produto (independente do distrato global)
    """
    CREATE TABLE IF NOT EXISTS client_product_churns (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        client_id INTEGER NOT NULL,
        product_slug TEXT NOT NULL,
        product_name TEXT,
        monthly_value TEXT NOT NULL DEFAULT '0',
        had_valid_contract INTEGER NOT NULL,
        distrato_step TEXT NOT NULL,
        distrato_entered_at TEXT NOT NULL,
        initiated_by TEXT,
        archived INTEGER NOT NULL DEFAULT 0,
        archived_at TEXT,
        FOREIGN KEY (client_id) REFERENCES clients(id) ON DELETE CASCADE
    );
    """,
    # Vendas
    """
    CREATE TABLE IF NOT EXISTS client_sales (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        client_id INTEGER NOT NULL,
        sale_value TEXT NOT NULL,
        sale_date TEXT NOT NULL,
        commission_percentage TEXT NOT NULL,
        registered_by TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY (client_id) REFERENCES clients(id)
    );
    """,
    # Upsells
    """
    CREATE TABLE IF NOT EXISTS upsells (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        client_id INTEGER NOT NULL,
        product_slug TEXT NOT NULL,
        product_name TEXT,
        monthly_value TEXT NOT NULL,
        sold_by TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY (client_id) REFERENCES clients(id)
    );
    """,
    # Comissões (venda: 3 linhas; upsell: 1 linha)
    """
    CREATE TABLE IF NOT EXISTS commissions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        type TEXT NOT NULL CHECK (type IN ('sale', 'upsell')),
        source_id INTEGER NOT NULL,
        client_id INTEGER NOT NULL,
        value TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'paid')),
        recipient_role TEXT NOT NULL,
        recipient TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY (client_id) REFERENCES clients(id)
    );
    """,
    # Planos de ação (sucesso do cliente)
    """
    CREATE TABLE IF NOT EXISTS cs_action_plans (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        client_id INTEGER NOT NULL,
        problem_type TEXT NOT NULL,
        severity TEXT NOT NULL CHECK (severity IN ('leve', 'moderado', 'critico')),
        status TEXT NOT NULL DEFAULT 'active'
            CHECK (status IN ('active', 'completed', 'cancelled')),
        indicators TEXT NOT NULL, -- JSON array
        notes TEXT,
        created_by TEXT,
        created_at TEXT NOT NULL,
        due_date TEXT NOT NULL,
        FOREIGN KEY (client_id) REFERENCES clients(id) ON DELETE CASCADE
    );
    """,
    # Tarefas do plano
    """
    CREATE TABLE IF NOT EXISTS cs_action_plan_tasks (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        action_plan_id INTEGER NOT NULL,
        title TEXT NOT NULL,
        task_type TEXT NOT NULL CHECK (task_type IN ('action', 'quick_win', 'deliverable')),
        is_completed INTEGER NOT NULL DEFAULT 0,
        completed_at TEXT,
        completed_by TEXT,
        position INTEGER NOT NULL DEFAULT 0,
        FOREIGN KEY (action_plan_id) REFERENCES cs_action_plans(id) ON DELETE CASCADE
    );
    """,
    # Notificações de churn
    """
    CREATE TABLE IF NOT EXISTS churn_notifications (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        client_id INTEGER NOT NULL,
        client_name TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY (client_id) REFERENCES clients(id) ON DELETE CASCADE
    );
    """,
]


def _ensure_column(conn, table: str, column: str, ddl: str) -> None:
    """Adiciona coluna se não existir."""
    cur = conn.execute(f"PRAGMA table_info({table});")
    cols = [r[1] for r in cur.fetchall()]  # r[1] é o nome da coluna
    if column not in cols:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {ddl};")


def _apply_v1(conn) -> None:
    for sql in SCHEMA_V1:
        conn.executescript(sql)


def _apply_v2(conn) -> None:
    _ensure_column(conn, "commissions", "paid_at", "paid_at TEXT")
    _ensure_column(conn, "cs_action_plans", "completed_at", "completed_at TEXT")
    # Uma comissão por (tipo, origem, papel): registrar duas vezes falha
    conn.execute(
        """
        CREATE UNIQUE INDEX IF NOT EXISTS ux_commissions_source
        ON commissions(type, source_id, recipient_role);
        """
    )
    # No máximo um churn em aberto por (cliente, produto)
    conn.execute(
        """
        CREATE UNIQUE INDEX IF NOT EXISTS ux_product_churn_open
        ON client_product_churns(client_id, product_slug)
        WHERE archived = 0;
        """
    )


def apply_migrations(db_path: str) -> None:
    """Aplica migrações incrementais de acordo com PRAGMA user_version."""
    with connect(db_path) as conn:
        ver = conn.execute("PRAGMA user_version;").fetchone()[0] or 0

        if ver < 1:
            _apply_v1(conn)
            conn.execute("PRAGMA user_version = 1;")
            log_database_operation("schema", "MIGRATE", 0, version=1)
            ver = 1

        if ver < 2:
            _apply_v2(conn)
            conn.execute("PRAGMA user_version = 2;")
            log_database_operation("schema", "MIGRATE", 0, version=2)
            ver = 2
