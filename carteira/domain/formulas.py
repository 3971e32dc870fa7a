"""
Commission and deadline formulas.

These functions implement the numeric rules of the engine: the sale
commission total and its split across the three recipient roles, the
fixed-rate upsell commission, the action-plan deadline per severity and
the checklist progress ratio.

All functions are pure: they depend solely on their inputs and do
not modify any external state. Money is handled as ``Decimal`` and
rounded half-up to the cent.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Union

from carteira.domain.models import CommissionShare, RecipientRole, Severity

CENT = Decimal("0.01")

UPSELL_RATE = Decimal("0.07")

# Ordem fixa do rateio; o resto de centavos vai para o primeiro papel.
SALE_COMMISSION_ROLES = (
    RecipientRole.GESTOR_ADS,
    RecipientRole.SUCESSO_CLIENTE,
    RecipientRole.CONSULTOR_COMERCIAL,
)

SEVERITY_DAYS = {
    Severity.LEVE: 30,
    Severity.MODERADO: 60,
    Severity.CRITICO: 90,
}

Number = Union[Decimal, int, str]


def to_money(value: Number) -> Decimal:
    """Round ``value`` half-up to the cent."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def sale_commission_total(value: Number, percentage: Number) -> Decimal:
    """Return ``round(value * percentage / 100)`` to the cent."""
    return to_money(Decimal(str(value)) * Decimal(str(percentage)) / Decimal(100))


def split_evenly(total: Decimal, roles=SALE_COMMISSION_ROLES) -> List[CommissionShare]:
    """Split ``total`` across ``roles`` in integer cents.

    Every role receives ``total // n`` cents; the remainder left by the
    integer division is added to the first role, so the shares always add
    up to ``total`` exactly.
    """
    cents = int(to_money(total) * 100)
    n = len(roles)
    base, remainder = divmod(cents, n)
    shares = []
    for i, role in enumerate(roles):
        part = base + (remainder if i == 0 else 0)
        shares.append(CommissionShare(recipient_role=role, value=to_money(Decimal(part) / 100)))
    return shares


def sale_commission_shares(value: Number, percentage: Number) -> List[CommissionShare]:
    """Commission rows for one sale.

    A zero percentage yields no rows at all (the sale still exists, it
    simply generates no commission).
    """
    if Decimal(str(percentage)) == 0:
        return []
    return split_evenly(sale_commission_total(value, percentage))


def upsell_commission(monthly_value: Number, rate: Number = UPSELL_RATE) -> Decimal:
    """Fixed-rate commission over the upsell monthly value (7% by default)."""
    return to_money(Decimal(str(monthly_value)) * Decimal(str(rate)))


def plan_due_date(created_at: datetime, severity: Severity) -> datetime:
    """Deadline of an action plan: 30/60/90 days after creation."""
    return created_at + timedelta(days=SEVERITY_DAYS[Severity(severity)])


def progress(completed: int, total: int) -> float:
    """Checklist progress in [0, 1]; an empty checklist counts as 0."""
    if total <= 0:
        return 0.0
    return completed / total
