# carteira/config.py
"""
Configurações globais e valores padrão da carteira de clientes.
"""

import os
from dataclasses import dataclass


# Caminho padrão do banco de dados SQLite (sobrescrito por CARTEIRA_DB)
DB_PATH = os.environ.get("CARTEIRA_DB") or os.path.join(os.getcwd(), "carteira.db")


@dataclass
class DefaultConfig:
    """Valores padrão para parâmetros do sistema."""
    dias_aviso_contrato: int = 30  # Contrato "expirando" a partir de N dias do vencimento


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()
