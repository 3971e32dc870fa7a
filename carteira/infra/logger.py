# carteira/infra/logger.py
"""
Logging em arquivo das operações da carteira.

Cada área de negócio (vendas/comissões, churn/distrato, planos de ação) tem
seu próprio arquivo, além dos logs de transações, banco e sistema. Nada é
gravado a menos que ``CARTEIRA_LOGGING`` esteja ligado.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional


ENABLE_LOGGING = os.environ.get("CARTEIRA_LOGGING", "0").lower() in {"1", "true", "sim"}

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Cria (ou reconfigura) o logger ``name`` gravando em ``log_file``.

    O handler usa ``delay=True``: o arquivo só existe depois da primeira
    mensagem, então importar este módulo não deixa logs vazios para trás.
    """
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handler = logging.FileHandler(log_file, encoding="utf-8", delay=True)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(handler)
    return logger


# CARTEIRA_LOGS_DIR ou ./logs na raiz do projeto
BASE_DIR = Path(__file__).resolve().parent.parent.parent
LOGS_DIR = Path(os.environ.get("CARTEIRA_LOGS_DIR") or (BASE_DIR / "logs"))

LOG_FILES = {
    area: LOGS_DIR / f"{area}.log"
    for area in ("transactions", "vendas", "churn", "planos", "database", "system")
}

transaction_logger = setup_logger("carteira.transactions", str(LOG_FILES["transactions"]))
vendas_logger = setup_logger("carteira.vendas", str(LOG_FILES["vendas"]))
churn_logger = setup_logger("carteira.churn", str(LOG_FILES["churn"]))
planos_logger = setup_logger("carteira.planos", str(LOG_FILES["planos"]))
database_logger = setup_logger("carteira.database", str(LOG_FILES["database"]))
system_logger = setup_logger("carteira.system", str(LOG_FILES["system"]))


def _emit(logger: logging.Logger, message: str, level: str = "info") -> None:
    if ENABLE_LOGGING:
        getattr(logger, level.lower(), logger.info)(message)


def log_transaction(
    operation: str,
    data: Dict[str, Any],
    result: Optional[Any] = None,
    error: Optional[str] = None,
) -> None:
    """
    Registra o desfecho de um comando (``registrar_venda``, ``iniciar_churn_global``...).

    Args:
        operation: nome do caso de uso
        data: parâmetros recebidos
        result: retorno resumido em caso de sucesso
        error: mensagem da exceção em caso de falha
    """
    if error:
        _emit(transaction_logger, f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}", "error")
    else:
        _emit(transaction_logger, f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")


def log_operacao(area: str, action: str, client_id: Any = None, **kwargs) -> None:
    """Evento de negócio no log da área ("vendas", "churn" ou "planos")."""
    logger = {"vendas": vendas_logger, "churn": churn_logger, "planos": planos_logger}.get(area, system_logger)
    payload = {"action": action, "client_id": client_id, **kwargs}
    _emit(logger, f"{area.upper()}_{action.upper()}: {payload}")


def log_database_operation(table: str, operation: str, affected_rows: int = 0, **kwargs) -> None:
    payload = {"table": table, "operation": operation, "affected_rows": affected_rows, **kwargs}
    _emit(database_logger, f"DB_{operation}: {payload}")


def log_system_event(event: str, details: Optional[Dict[str, Any]] = None, level: str = "info") -> None:
    """Eventos fora de uma área específica: migrações, arquivamentos, inicialização."""
    payload = {"event": event, "details": details or {}, "at": datetime.now().isoformat(timespec="seconds")}
    _emit(system_logger, f"SYSTEM_EVENT: {event} - {payload}", level)


def log_file_operation(operation: str, file_path: str, rows_processed: int = 0, **kwargs) -> None:
    """Importação de planilhas."""
    payload = {"operation": operation, "file_path": file_path, "rows_processed": rows_processed, **kwargs}
    _emit(system_logger, f"FILE_{operation.upper()}: {payload}")


def get_log_summary(log_type: str = "transactions", lines: int = 100) -> str:
    """
    Últimas ``lines`` linhas do log ``log_type``.

    Devolve uma mensagem legível (em vez de levantar) quando o log não
    existe ou não pode ser lido, já que o resultado vai direto para o CLI.
    """
    log_file = LOG_FILES.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} não encontrado."
    try:
        conteudo = log_file.read_text(encoding="utf-8").splitlines(keepends=True)
    except OSError as e:
        return f"Erro ao ler log {log_type}: {e}"
    return "".join(conteudo[-lines:])
