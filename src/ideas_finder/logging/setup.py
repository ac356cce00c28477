"""Logging setup: JSON run log, JSON model-call ledger, and console output.

This module configures Python's stdlib logging with three handlers:
    1. RotatingFileHandler (root) -- JSON format, DEBUG level, every record
       of the run in ``analysis.log``
    2. RotatingFileHandler (cost ledger) -- JSON format, INFO level, attached
       to ``ideas_finder.analyzer.cost`` only, one line per model call in
       ``model_calls.log`` with ``call_number``, ``stage``, ``total_tokens``
       and ``cost_usd`` fields
    3. StreamHandler (root) -- text format, INFO level, for the operator
       console

Call setup_logging() once at application startup, before any other code runs.
Module code throughout the project uses logging.getLogger(__name__).
"""

import logging
import logging.handlers
from pathlib import Path

from pythonjsonlogger.json import JsonFormatter

LOG_FILE_NAME = "analysis.log"
COST_LOG_FILE_NAME = "model_calls.log"
COST_LOGGER_NAME = "ideas_finder.analyzer.cost"


def _json_formatter() -> JsonFormatter:
    return JsonFormatter(
        fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
        rename_fields={
            "asctime": "timestamp",
            "levelname": "level",
            "name": "component",
        },
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


def _rotating_file(
    path: Path, level: int, max_bytes: int, backup_count: int
) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=str(path),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(_json_formatter())
    return handler


def setup_logging(
    log_dir: str = "logs",
    log_level_file: int = logging.DEBUG,
    log_level_console: int = logging.INFO,
    max_bytes: int = 10_485_760,  # 10MB
    backup_count: int = 5,
) -> None:
    """Configure the run log, the model-call ledger and the console.

    Creates the log directory if it does not exist. Clears any existing
    handlers on the root and cost loggers to prevent duplicate output if
    called multiple times.

    Args:
        log_dir: Directory for log files.
        log_level_file: Logging level for the run log (default DEBUG).
        log_level_console: Logging level for the console handler (default INFO).
        max_bytes: Maximum size per log file before rotation (default 10MB).
        backup_count: Number of rotated backup files to keep (default 5).
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture everything; handlers filter
    root_logger.handlers.clear()

    root_logger.addHandler(
        _rotating_file(log_path / LOG_FILE_NAME, log_level_file, max_bytes, backup_count)
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level_console)
    console_handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(console_handler)

    # Ledger lines still propagate to the run log and console.
    cost_logger = logging.getLogger(COST_LOGGER_NAME)
    for handler in list(cost_logger.handlers):
        cost_logger.removeHandler(handler)
        handler.close()
    cost_logger.addHandler(
        _rotating_file(log_path / COST_LOG_FILE_NAME, logging.INFO, max_bytes, backup_count)
    )

    # httpx logs every request line at INFO (review paging is up to 200 pages)
    logging.getLogger("httpx").setLevel(logging.WARNING)
