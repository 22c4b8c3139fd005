"""Structured logging configuration using structlog."""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor

APP_NAME = "cryptofolio"

# Libraries whose INFO output drowns out ledger and feed events
NOISY_LOGGERS = ("apscheduler", "aiohttp.access", "sqlalchemy.engine", "uvicorn.access")

_SIZE_UNITS = {"KB": 1024, "MB": 1024**2, "GB": 1024**3}


def _app_context(environment: str):
    """Build a processor stamping every event with the app and environment."""

    def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("app", APP_NAME)
        event_dict.setdefault("env", environment)
        return event_dict

    return add_app_context


def setup_logging(
    level: str = "INFO",
    format_type: str = "structured",
    file_enabled: bool = True,
    file_path: str = "data/cryptofolio.log",
    max_file_size: str = "10MB",
    backup_count: int = 5,
    environment: str = "development",
) -> None:
    """
    Set up application logging with structlog.

    Safe to call more than once; the rotating file handler is only
    attached the first time for a given path.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Log format ('structured' or 'plain')
        file_enabled: Whether to write a rotating JSON log file
        file_path: Path to log file
        max_file_size: Maximum size of log file before rotation, e.g. "10MB"
        backup_count: Number of rotated files to keep
        environment: Deployment environment stamped on every event
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    processors: list[Processor] = [
        structlog.processors.TimeStamper(fmt="ISO", utc=True),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _app_context(environment),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if format_type == "structured" and file_enabled:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=format_type == "plain"))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    quiet_level = max(log_level, logging.WARNING)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    if file_enabled:
        _attach_file_handler(Path(file_path), max_file_size, backup_count, log_level)


def _attach_file_handler(
    log_file: Path, max_file_size: str, backup_count: int, log_level: int
) -> None:
    root = logging.getLogger()
    target = str(log_file.resolve())
    for handler in root.handlers:
        if isinstance(handler, logging.handlers.RotatingFileHandler) and (
            handler.baseFilename == target
        ):
            handler.setLevel(log_level)
            return

    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.RotatingFileHandler(
        filename=log_file,
        maxBytes=parse_file_size(max_file_size),
        backupCount=backup_count,
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(file_handler)


def parse_file_size(size_str: str) -> int:
    """Parse a size such as "512KB", "10MB" or "2048" into bytes."""
    size_str = size_str.strip().upper()
    unit = size_str[-2:]
    if unit in _SIZE_UNITS:
        return int(size_str[:-2]) * _SIZE_UNITS[unit]
    return int(size_str)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (defaults to calling module)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def log_audit_event(event: str, owner_id: Optional[str] = None, **context: Any) -> None:
    """
    Record a ledger mutation on the audit logger.

    Args:
        event: What happened, e.g. "buy_executed" or "balance_updated"
        owner_id: Portfolio owner the mutation belongs to
        **context: Trade or balance figures
    """
    get_logger("audit").info("Audit event", event=event, owner_id=owner_id, **context)
