"""
Criação de views auxiliares para consultas frequentes.

Views criadas:
- vw_clientes_distrato:   clientes com distrato global em andamento (não arquivados).
- vw_churns_produto_abertos: churns por produto ainda não finalizados.
- vw_comissoes_mes:       comissões com a coluna ano_mes (YYYY-MM) derivada.

Obs.:
- As views assumem que as migrações V1→V2 já foram aplicadas.
- Um conjunto de índices úteis também é criado, caso não existam.
"""

from __future__ import annotations

from .db import connect


def create_views(db_path: str) -> None:
    with connect(db_path) as c:
        c.executescript(
            """
            DROP VIEW IF EXISTS vw_clientes_distrato;
            CREATE VIEW vw_clientes_distrato AS
            SELECT id, name, distrato_step, distrato_entered_at, created_at
            FROM clients
            WHERE distrato_step IS NOT NULL
              AND archived = 0;

            DROP VIEW IF EXISTS vw_churns_produto_abertos;
            CREATE VIEW vw_churns_produto_abertos AS
            SELECT pc.*, cl.name AS client_name
            FROM client_product_churns pc
            JOIN clients cl ON cl.id = pc.client_id
            WHERE pc.archived = 0;

            DROP VIEW IF EXISTS vw_comissoes_mes;
            CREATE VIEW vw_comissoes_mes AS
            SELECT
                id, type, source_id, client_id, value, status,
                recipient_role, recipient, created_at, paid_at,
                substr(created_at, 1, 7) AS ano_mes
            FROM commissions;
            """
        )

        c.executescript(
            """
            CREATE INDEX IF NOT EXISTS idx_clients_status       ON clients(status);
            CREATE INDEX IF NOT EXISTS idx_product_churn_client ON client_product_churns(client_id);
            CREATE INDEX IF NOT EXISTS idx_product_churn_slug   ON client_product_churns(product_slug);
            CREATE INDEX IF NOT EXISTS idx_sales_client         ON client_sales(client_id);
            CREATE INDEX IF NOT EXISTS idx_commissions_created  ON commissions(created_at);
            CREATE INDEX IF NOT EXISTS idx_plans_client         ON cs_action_plans(client_id, status);
            CREATE INDEX IF NOT EXISTS idx_tasks_plan           ON cs_action_plan_tasks(action_plan_id, position);
            """
        )
