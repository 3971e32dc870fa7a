from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from carteira.adapters.parsers import converter_enum, formatar_valor, parse_data, parse_instante, parse_valor
from carteira.domain.errors import ValidationError
from carteira.domain.models import Severity


@pytest.mark.parametrize(
    "entrada, esperado",
    [
        ("R$ 1.234,56", Decimal("1234.56")),
        ("1000.00", Decimal("1000.00")),
        ("35,5", Decimal("35.5")),
        (" 2.000,00 ", Decimal("2000.00")),
        (30, Decimal("30")),
        (Decimal("7.5"), Decimal("7.5")),
        ("", None),
        ("abc", None),
        ("-", None),
        (None, None),
        (float("nan"), None),
        (float("inf"), None),
        (Decimal("-Infinity"), None),
        (Decimal("NaN"), None),
    ],
)
def test_parse_valor(entrada, esperado):
    assert parse_valor(entrada) == esperado


@pytest.mark.parametrize(
    "entrada, esperado",
    [
        ("31/01/2024", date(2024, 1, 31)),
        ("2024-01-31", date(2024, 1, 31)),
        ("2024-01-31 00:00:00", date(2024, 1, 31)),
        (datetime(2024, 1, 31, 10, 0), date(2024, 1, 31)),
        ("31/02/2024", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_data(entrada, esperado):
    assert parse_data(entrada) == esperado


def test_parse_instante_sem_fuso_vira_utc():
    dt = parse_instante("2024-01-01T10:00:00")
    assert dt == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)


def test_parse_instante_data_pura_vira_meia_noite():
    assert parse_instante("31/12/2024") == datetime(2024, 12, 31, tzinfo=timezone.utc)


def test_parse_instante_preserva_fuso():
    dt = parse_instante("2024-01-01T10:00:00-03:00")
    assert dt.utcoffset() == timedelta(hours=-3)


def test_parse_instante_invalido():
    assert parse_instante("ontem") is None
    assert parse_instante("") is None


def test_formatar_valor():
    assert formatar_valor(Decimal("1234.5")) == "R$ 1.234,50"
    assert formatar_valor(Decimal("35")) == "R$ 35,00"
    assert formatar_valor(None) == "-"


def test_converter_enum():
    assert converter_enum(Severity, "critico", "Severidade") is Severity.CRITICO
    assert converter_enum(Severity, Severity.LEVE, "Severidade") is Severity.LEVE
    with pytest.raises(ValidationError, match="Severidade inválido: 'grave'"):
        converter_enum(Severity, "grave", "Severidade")
