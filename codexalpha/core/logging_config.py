"""
Logging Configuration Module.

Centralized logging for CodeXAlpha. ``setup_logging`` is called once when the
server module is imported; every other module only asks for a named logger
through ``get_logger(__name__)``.

Console output follows ``CODEXALPHA_LOG_LEVEL``. The optional file handler
(``LOG_FILE_DIR/codexalpha.log``) always records DEBUG, which keeps the full
generation trace of background persona runs available after the fact.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional


def _configured_level() -> str:
    # Imported lazily so logging works before the server package is importable
    try:
        from codexalpha.server.core.config import settings

        return settings.log_level.upper()
    except Exception:
        return os.getenv("CODEXALPHA_LOG_LEVEL", "INFO").upper()


LOG_LEVEL = _configured_level()
LOG_FORMAT = os.getenv("LOG_FORMAT", "detailed")
LOG_FILE_DIR = os.getenv("LOG_FILE_DIR", "logs")
ENABLE_FILE_LOGGING = os.getenv("ENABLE_FILE_LOGGING", "true").lower() in ("true", "1", "yes")
LOG_FILE_NAME = "codexalpha.log"


SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"

DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s"

JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
    '"module": "%(filename)s", "function": "%(funcName)s", "line": %(lineno)d, '
    '"message": "%(message)s"}'
)

FORMATS: Dict[str, str] = {"simple": SIMPLE_FORMAT, "detailed": DETAILED_FORMAT, "json": JSON_FORMAT}


# Module-specific log levels
MODULE_LOG_LEVELS = {
    "codexalpha.core": "INFO",
    "codexalpha.core.ai": "DEBUG",
    "codexalpha.core.database": "INFO",
    "codexalpha.server": "INFO",
    "codexalpha.server.api": "DEBUG",
    "codexalpha.server.services": "DEBUG",
    "codexalpha.server.core": "INFO",
    # Third-party noise
    "sqlalchemy": "WARNING",
    "sqlalchemy.engine": "WARNING",
    "sqlalchemy.pool": "WARNING",
    "httpx": "WARNING",
    "asyncio": "WARNING",
    "reportlab": "WARNING",
    "uvicorn": "INFO",
    "uvicorn.access": "INFO",
}


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    enable_file: bool = True,
) -> None:
    """
    Configure the root logger.

    Calling it again replaces the previous handlers, so tests and reloads
    never end up with duplicated output. Unknown formats fall back to the
    detailed one.

    Args:
        log_level: Console level override (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Format override (simple, detailed, json)
        enable_file: Allow the file handler; ``ENABLE_FILE_LOGGING`` must agree
    """
    level = (log_level or LOG_LEVEL).upper()
    fmt = log_format or LOG_FORMAT
    formatter = logging.Formatter(FORMATS.get(fmt, DETAILED_FORMAT), datefmt="%Y-%m-%d %H:%M:%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    handlers[0].setLevel(level)

    file_logging = enable_file and ENABLE_FILE_LOGGING
    if file_logging:
        log_dir = Path(LOG_FILE_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / LOG_FILE_NAME)
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for module_name, module_level in MODULE_LOG_LEVELS.items():
        logging.getLogger(module_name).setLevel(module_level)

    root_logger.info(f"Logging configured: level={level}, format={fmt}, file_logging={file_logging}")


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` (typically ``__name__``)."""
    return logging.getLogger(name)
