"""
Testes do loader de planilhas de vendas: normalização de cabeçalhos,
conversão de valores/datas e erros por linha.
"""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pandas as pd
import pytest

from carteira.adapters.planilhas import _normalize_columns, _slug, load_vendas_from_xlsx
from carteira.domain.errors import ValidationError


def _xlsx(tmp_path: Path, df: pd.DataFrame) -> str:
    path = tmp_path / "vendas.xlsx"
    df.to_excel(path, index=False)
    return str(path)


def test_slug_remove_acentos_e_pontuacao():
    assert _slug("  Data da Venda ") == "data da venda"
    assert _slug("Responsável") == "responsavel"
    assert _slug("Valor (R$)") == "valor r"


def test_normalize_columns_sinonimos():
    df = pd.DataFrame({"Cliente": ["1"], "Valor da Venda": ["10"], "Data": ["01/01/2024"], "Vendedor": ["ana"], "Obs": ["x"]})
    cols = list(_normalize_columns(df).columns)
    assert cols == ["client_id", "value", "sale_date", "registered_by", "obs"]


def test_load_vendas(tmp_path):
    df = pd.DataFrame({
        "Cliente": [1, 2],
        "Valor": ["R$ 1.234,56", "99.90"],
        "Data da Venda": ["15/01/2024", "2024-02-01"],
        "Responsável": ["ana", None],
    })
    rows = load_vendas_from_xlsx(_xlsx(tmp_path, df))
    assert rows == [
        {"client_id": 1, "value": Decimal("1234.56"), "sale_date": date(2024, 1, 15), "registered_by": "ana"},
        {"client_id": 2, "value": Decimal("99.90"), "sale_date": date(2024, 2, 1), "registered_by": None},
    ]


def test_load_vendas_ignora_linhas_vazias(tmp_path):
    df = pd.DataFrame({
        "Cliente": [1, None],
        "Valor": ["100", None],
        "Data": ["15/01/2024", None],
    })
    assert len(load_vendas_from_xlsx(_xlsx(tmp_path, df))) == 1


def test_load_vendas_coluna_obrigatoria_ausente(tmp_path):
    df = pd.DataFrame({"Cliente": [1], "Valor": ["100"]})
    with pytest.raises(ValidationError, match="sale_date"):
        load_vendas_from_xlsx(_xlsx(tmp_path, df))


@pytest.mark.parametrize(
    "linha, mensagem",
    [
        ({"Cliente": 1, "Valor": "abc", "Data": "15/01/2024"}, "valor"),
        ({"Cliente": 1, "Valor": "100", "Data": "32/01/2024"}, "data"),
        ({"Cliente": "xyz", "Valor": "100", "Data": "15/01/2024"}, "cliente"),
    ],
)
def test_load_vendas_linha_invalida(tmp_path, linha, mensagem):
    with pytest.raises(ValidationError, match=f"Linha 2: {mensagem}"):
        load_vendas_from_xlsx(_xlsx(tmp_path, pd.DataFrame([linha])))
