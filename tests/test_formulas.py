from datetime import datetime, timezone
from decimal import Decimal

import pytest

from carteira.domain.formulas import (
    plan_due_date,
    progress,
    sale_commission_shares,
    sale_commission_total,
    split_evenly,
    to_money,
    upsell_commission,
)
from carteira.domain.models import RecipientRole, Severity


def test_venda_30_por_cento_divide_em_tres_partes_iguais():
    shares = sale_commission_shares(Decimal("1000.00"), Decimal("30"))
    assert [s.value for s in shares] == [Decimal("100.00")] * 3
    assert [s.recipient_role for s in shares] == [
        RecipientRole.GESTOR_ADS,
        RecipientRole.SUCESSO_CLIENTE,
        RecipientRole.CONSULTOR_COMERCIAL,
    ]


def test_percentual_zero_nao_gera_comissao():
    assert sale_commission_shares(Decimal("1000.00"), 0) == []


@pytest.mark.parametrize(
    "total, esperado",
    [
        ("100.00", ["33.34", "33.33", "33.33"]),
        ("10.01", ["3.35", "3.33", "3.33"]),
        ("0.01", ["0.01", "0.00", "0.00"]),
        ("99.99", ["33.33", "33.33", "33.33"]),
    ],
)
def test_split_sobra_de_centavos_vai_para_o_primeiro_papel(total, esperado):
    shares = split_evenly(Decimal(total))
    assert [s.value for s in shares] == [Decimal(v) for v in esperado]
    assert sum(s.value for s in shares) == Decimal(total)


def test_total_arredonda_meio_para_cima():
    # 0.05 * 50% = 0.025 -> 0.03
    assert sale_commission_total("0.05", 50) == Decimal("0.03")
    # 333.33 * 10% = 33.333 -> 33.33
    assert sale_commission_total("333.33", 10) == Decimal("33.33")


def test_upsell_sete_por_cento():
    assert upsell_commission(Decimal("500.00")) == Decimal("35.00")
    assert upsell_commission("123.45") == Decimal("8.64")


def test_to_money():
    assert to_money("1.005") == Decimal("1.01")
    assert to_money(3) == Decimal("3.00")


@pytest.mark.parametrize(
    "severidade, dias",
    [(Severity.LEVE, 30), (Severity.MODERADO, 60), (Severity.CRITICO, 90)],
)
def test_prazo_por_severidade(severidade, dias):
    criado = datetime(2024, 5, 10, 9, 30, tzinfo=timezone.utc)
    assert (plan_due_date(criado, severidade) - criado).days == dias


def test_prazo_critico_exemplo():
    criado = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert plan_due_date(criado, Severity.CRITICO).date().isoformat() == "2024-03-31"


def test_progresso():
    assert progress(0, 0) == 0.0
    assert progress(1, 4) == 0.25
    assert progress(3, 3) == 1.0
