"""Storage modules for the user ledger and the daily stats archive."""

from health_agent.storage.database import (
    Database,
    get_database,
)
from health_agent.storage.ledger import (
    Progress,
    Counters,
    ensure_user,
    increment_water,
    replace_steps,
    replace_weight,
    load_progress,
    load_all_counters,
    list_user_ids,
    reset_all_counters,
)
from health_agent.storage.history import (
    append_daily_stat,
    archive_and_reset_user,
    count_for_date,
    load_history,
)

__all__ = [
    # Database
    "Database",
    "get_database",
    # Ledger
    "Progress",
    "Counters",
    "ensure_user",
    "increment_water",
    "replace_steps",
    "replace_weight",
    "load_progress",
    "load_all_counters",
    "list_user_ids",
    "reset_all_counters",
    # History
    "append_daily_stat",
    "archive_and_reset_user",
    "count_for_date",
    "load_history",
]
