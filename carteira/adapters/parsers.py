"""
Utilidades de parsing para valores monetários, datas e instantes.

Este módulo fornece funções para interpretar strings no formato
tipicamente encontrado nas planilhas e formulários do comercial (por
exemplo, "R$ 1.234,56" ou "31/01/2024"), e para reler os instantes ISO
gravados no banco. O objetivo é devolver ``Decimal``/``date``/``datetime``
ou ``None`` quando o valor não pode ser determinado.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from carteira.domain.errors import ValidationError

_MONEY_CLEAN_RE = re.compile(r"[^\d,.\-]")
_BR_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")


def parse_valor(txt: Any) -> Optional[Decimal]:
    """Interpreta um valor monetário.

    Aceita o formato brasileiro (ponto de milhar, vírgula decimal) e o
    formato com ponto decimal. O prefixo "R$" e espaços são ignorados.

    Exemplos:
        "R$ 1.234,56" → Decimal("1234.56")
        "1000.00"     → Decimal("1000.00")
        "35,5"        → Decimal("35.5")

    Args:
        txt: Texto (ou número) a ser interpretado.

    Returns:
        O valor como ``Decimal`` ou ``None`` se não for possível interpretar
        (inclusive NaN e infinito).
    """
    if txt is None:
        return None
    if isinstance(txt, Decimal):
        d = txt
    elif isinstance(txt, (int, float)) and not isinstance(txt, bool):
        d = Decimal(str(txt))
    else:
        s = _MONEY_CLEAN_RE.sub("", str(txt).strip())
        if not s:
            return None
        if "," in s:
            # Formato brasileiro: remove milhar e troca vírgula por ponto
            s = s.replace(".", "").replace(",", ".")
        try:
            d = Decimal(s)
        except InvalidOperation:
            return None
    # NaN e infinito não são valores
    return d if d.is_finite() else None


def parse_data(txt: Any) -> Optional[date]:
    """Converte "YYYY-MM-DD", "DD/MM/AAAA", ``date`` ou ``datetime`` em ``date``."""
    if txt is None:
        return None
    if isinstance(txt, datetime):
        return txt.date()
    if isinstance(txt, date):
        return txt
    s = str(txt).strip()
    if not s:
        return None
    m = _BR_DATE_RE.match(s)
    if m:
        d, mth, y = (int(g) for g in m.groups())
        try:
            return date(y, mth, d)
        except ValueError:
            return None
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        return None


def parse_instante(txt: Any) -> Optional[datetime]:
    """Converte um instante ISO (ou data) em ``datetime`` com fuso.

    Instantes sem fuso são considerados UTC; datas puras viram meia-noite UTC.
    """
    if txt is None or txt == "":
        return None
    if isinstance(txt, datetime):
        dt = txt
    elif isinstance(txt, date):
        dt = datetime(txt.year, txt.month, txt.day)
    else:
        s = str(txt).strip()
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            d = parse_data(s)
            if d is None:
                return None
            dt = datetime(d.year, d.month, d.day)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def formatar_valor(v: Optional[Decimal]) -> str:
    """Formata como moeda brasileira: Decimal("1234.5") → "R$ 1.234,50"."""
    if v is None:
        return "-"
    return "R$ " + f"{v:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")


def converter_enum(enum_cls, valor: Any, campo: str):
    """Converte ``valor`` no membro de ``enum_cls`` ou levanta ``ValidationError``."""
    try:
        return enum_cls(valor)
    except ValueError:
        opcoes = ", ".join(e.value for e in enum_cls)
        raise ValidationError(f"{campo} inválido: {valor!r} (use {opcoes})") from None
