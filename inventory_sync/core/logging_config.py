# inventory_sync/core/logging_config.py
"""
Logging setup for the CLI and any host process embedding the engine.

Engine loggers live under "inventory_sync"; the HTTP and database client
libraries are held at WARNING unless DEBUG is on, in which case SQL
statements are logged too.
"""

import logging
from typing import Optional

from inventory_sync.core.config import get_settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy", "asyncpg", "aiosqlite")


def configure_logging(level: Optional[str] = None):
    """
    Configure logging.

    Args:
        level: Overrides LOG_LEVEL from settings (e.g. "DEBUG")
    """
    settings = get_settings()
    log_level = (level or settings.LOG_LEVEL or "INFO").upper()
    numeric_level = getattr(logging, log_level, logging.INFO)

    logging.basicConfig(level=numeric_level, format=LOG_FORMAT, handlers=[logging.StreamHandler()])

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if settings.DEBUG:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

    logging.getLogger("inventory_sync").setLevel(numeric_level)
    logging.getLogger(__name__).debug(f"Logging configured at level: {log_level}")
