"""
timebudget core - Shared services for all modules.

Usage:
    from timebudget.core import get_db, get_config, get_logger, transaction
"""

from timebudget.core.config import get_config, get_config_value, TB_PATHS
from timebudget.core.db import get_db, migrate_all, transaction
from timebudget.core.logging import get_logger

__all__ = [
    "get_config",
    "get_config_value",
    "TB_PATHS",
    "get_db",
    "migrate_all",
    "transaction",
    "get_logger",
]
