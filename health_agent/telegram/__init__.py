"""Telegram client and command dispatch."""

from health_agent.telegram.client import (
    send_telegram,
    get_bot_info,
    get_webhook_info,
    set_webhook,
    delete_webhook,
)
from health_agent.telegram.commands import (
    HELP_TEXT,
    handle_command,
    parse_update,
)

__all__ = [
    "send_telegram",
    "get_bot_info",
    "get_webhook_info",
    "set_webhook",
    "delete_webhook",
    "HELP_TEXT",
    "handle_command",
    "parse_update",
]
