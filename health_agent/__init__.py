"""
Health Agent Package

Re-exports the public API used by modal_agent.py and the tests.
"""

# Config and constants
from health_agent.config import (
    DATA_DIR,
    DATABASE_URL,
    TIMEZONE,
    ROLLOVER_CRON,
    ROLLOVER_MODE,
    logger,
)

# Utilities
from health_agent.utils import (
    now_local,
    today_str,
)

# Storage
from health_agent.storage import (
    Database,
    get_database,
    Progress,
    load_history,
)

# Counter update API
from health_agent.counters import (
    ValidationError,
    ensure_user,
    add_water,
    set_steps,
    set_weight,
    get_progress,
)

# Daily rollover
from health_agent.rollover import (
    RolloverJob,
    RolloverResult,
)

# Telegram
from health_agent.telegram import (
    send_telegram,
    get_bot_info,
    handle_command,
    parse_update,
    HELP_TEXT,
)

# Single writer used by the Modal app
from health_agent.service import LedgerService

__all__ = [
    # Config
    "DATA_DIR",
    "DATABASE_URL",
    "TIMEZONE",
    "ROLLOVER_CRON",
    "ROLLOVER_MODE",
    "logger",
    # Utils
    "now_local",
    "today_str",
    # Storage
    "Database",
    "get_database",
    "Progress",
    "load_history",
    # Counters
    "ValidationError",
    "ensure_user",
    "add_water",
    "set_steps",
    "set_weight",
    "get_progress",
    # Rollover
    "RolloverJob",
    "RolloverResult",
    # Telegram
    "send_telegram",
    "get_bot_info",
    "handle_command",
    "parse_update",
    "HELP_TEXT",
    # Service
    "LedgerService",
]
