from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from carteira.usecases.orquestrador import CicloDeVida

AGORA = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class Relogio:
    """Relógio manual para os testes."""

    def __init__(self, agora: datetime):
        self.agora = agora

    def __call__(self) -> datetime:
        return self.agora

    def avancar(self, **kwargs) -> None:
        self.agora = self.agora + timedelta(**kwargs)


@pytest.fixture
def relogio() -> Relogio:
    return Relogio(AGORA)


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    return str(tmp_path / "carteira_test.sqlite")


@pytest.fixture
def ciclo(db_path: str, relogio: Relogio) -> CicloDeVida:
    return CicloDeVida(db_path, relogio=relogio)
