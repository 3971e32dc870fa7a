"""
Erros de negócio da carteira.

Todos sobem até o chamador; a camada de apresentação decide a mensagem.
"""

from __future__ import annotations


class CarteiraError(Exception):
    """Base para os erros de regra de negócio."""


class ValidationError(CarteiraError):
    """Entrada malformada ou fora do intervalo (ex.: venda com valor <= 0)."""


class ConflictError(CarteiraError):
    """Operação concorrente ou duplicada (ex.: distrato já em andamento)."""


class NotFoundError(CarteiraError):
    """Cliente, plano, tarefa ou comissão inexistente."""


class InvalidStateError(CarteiraError):
    """Transição ilegal para o estado atual da entidade."""
