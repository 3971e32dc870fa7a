"""
Loader de planilha (XLSX) de VENDAS.

A função:
- lê a planilha usando pandas;
- normaliza cabeçalhos (acentos, variações, sinônimos);
- devolve uma lista de dicionários prontos para ``registrar_venda``.

Observações:
- Valores monetários aceitam "R$ 1.234,56" ou "1234.56".
- Datas aceitam DD/MM/AAAA ou ISO; células de data do Excel também.
- Linhas totalmente vazias são ignoradas; linhas incompletas geram erro
  com o número da linha da planilha.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List

import pandas as pd

from carteira.adapters.parsers import parse_data, parse_valor
from carteira.domain.errors import ValidationError


# ---------------------------
# utilitários de normalização
# ---------------------------

def _slug(s: str) -> str:
    """Normaliza cabeçalhos: minúsculas, sem acentos, sem não-alfanumérico."""
    if s is None:
        return ""
    s = str(s).strip().lower()
    acentos = dict(zip("áàâãäéèêëíìîïóòôõöúùûüç", "aaaaaeeeeiiiiooooouuuuc"))
    s = "".join(acentos.get(ch, ch) for ch in s)
    s = re.sub(r"[^a-z0-9]+", " ", s)
    return re.sub(r"\s+", " ", s).strip()


def _safe_get(row, key):
    val = row.get(key)
    if val is None or pd.isna(val):
        return None
    val = str(val).strip()
    return val or None


_ALIASES = {
    "cliente": "client_id",
    "id cliente": "client_id",
    "cliente id": "client_id",
    "client id": "client_id",
    "codigo cliente": "client_id",

    "valor": "value",
    "valor venda": "value",
    "valor da venda": "value",
    "venda": "value",

    "data": "sale_date",
    "data venda": "sale_date",
    "data da venda": "sale_date",

    "registrado por": "registered_by",
    "responsavel": "registered_by",
    "vendedor": "registered_by",
}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Renomeia colunas com base em sinônimos/variações."""
    new_cols = {}
    for col in df.columns:
        key = _slug(col)
        new_cols[col] = _ALIASES.get(key, key.replace(" ", "_"))
    return df.rename(columns=new_cols)


def _to_client_id(txt: str, linha: int) -> int:
    try:
        return int(float(txt))
    except ValueError:
        raise ValidationError(f"Linha {linha}: cliente inválido '{txt}'") from None


# ---------------------------
# loader público (XLSX)
# ---------------------------

def load_vendas_from_xlsx(path: str) -> List[Dict[str, Any]]:
    """Lê XLSX de VENDAS.

    Campos de saída (chaves do dict por linha):
      - client_id: int
      - value: Decimal
      - sale_date: date
      - registered_by: str | None

    Raises:
        ValidationError: coluna obrigatória ausente ou linha com cliente,
            valor ou data ilegível.
    """
    df = pd.read_excel(path, dtype="string")
    df = _normalize_columns(df)

    faltando = [c for c in ("client_id", "value", "sale_date") if c not in df.columns]
    if faltando:
        raise ValidationError(f"Planilha sem coluna(s) obrigatória(s): {', '.join(faltando)}")

    out: List[Dict[str, Any]] = []
    for idx, row in df.iterrows():
        linha = int(idx) + 2  # cabeçalho ocupa a linha 1
        cliente = _safe_get(row, "client_id")
        valor_txt = _safe_get(row, "value")
        data_txt = _safe_get(row, "sale_date")
        if cliente is None and valor_txt is None and data_txt is None:
            continue

        valor = parse_valor(valor_txt)
        if valor is None:
            raise ValidationError(f"Linha {linha}: valor ilegível '{valor_txt}'")
        data = parse_data(data_txt)
        if data is None:
            raise ValidationError(f"Linha {linha}: data ilegível '{data_txt}'")
        if cliente is None:
            raise ValidationError(f"Linha {linha}: cliente ausente")

        out.append({
            "client_id": _to_client_id(cliente, linha),
            "value": valor,
            "sale_date": data,
            "registered_by": _safe_get(row, "registered_by"),
        })
    return out
