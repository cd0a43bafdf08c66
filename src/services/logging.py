"""Logging setup for the ledger API server and the seed command.

Every entry point logs to stdout and to a file. The level comes from the
LOG_LEVEL env var (default INFO). Ledger services log through module loggers
(``logging.getLogger(__name__)``), so records carry the service name, e.g.
``src.services.balance_sheet_service``.

SQL statements are silenced unless LOG_SQL=1.
"""

import logging
import os
import sys
from pathlib import Path

LOG_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")


def get_log_level() -> int:
    """Get logging level from LOG_LEVEL environment variable.

    Returns:
        Logging level constant (default: INFO)
    """
    return LOG_LEVELS.get(os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    return handler


def _quiet_library_loggers(level: int) -> None:
    sql_enabled = os.getenv("LOG_SQL", "0") == "1"
    for name in NOISY_LOGGERS:
        if name == "sqlalchemy.engine" and sql_enabled:
            logging.getLogger(name).setLevel(logging.INFO)
        else:
            logging.getLogger(name).setLevel(max(level, logging.WARNING))


def setup_server_logging(log_file: str = "logs/server.log") -> None:
    """
    Send all ledger logging to stdout and `log_file`.

    Calling it again replaces the handlers, so repeated setup never
    duplicates output.

    Args:
        log_file: Path to log file; parent directories are created
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    level = get_log_level()
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()

    root_logger.addHandler(_handler(logging.StreamHandler(sys.stdout), level))
    root_logger.addHandler(_handler(logging.FileHandler(log_path), level))

    _quiet_library_loggers(level)


def setup_cli_logging(log_file: str = "logs/seed.log") -> logging.Logger:
    """Configure logging for CLI commands and return the CLI logger."""
    setup_server_logging(log_file)
    return logging.getLogger("ledger.cli")
