"""
Command dispatch for inbound Telegram messages.

Routes /start, /help, /log_water, /steps, /weight and /progress to the
counter API and returns the reply text. Validation failures become a
reply; storage failures are logged and reported as a generic notice.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from health_agent import counters
from health_agent.config import logger
from health_agent.counters import ValidationError
from health_agent.storage.database import Database


GREETING_TEXT = (
    "Hi! I'll help you keep track of water, weight and steps. "
    "Send /help for the list of commands."
)

HELP_TEXT = """Commands:
/log_water <ml> - Add water you drank
/steps <count> - Set today's step count
/weight <kg> - Set your current weight
/progress - Show today's progress
/help - Show this

Water and steps reset once a day after being saved to your history."""

UNKNOWN_COMMAND_TEXT = "Unknown command. Try /help"
NOT_A_COMMAND_TEXT = "I only understand commands. Send /help to see them."
NO_DATA_TEXT = "No data yet. Log some water, steps or weight first!"


@dataclass(frozen=True)
class IncomingMessage:
    user_id: int
    chat_id: int
    text: str


def parse_update(body: dict) -> Optional[IncomingMessage]:
    """Extract sender, chat and text from a Telegram update, or None to ignore it."""
    message = body.get("message") or body.get("edited_message") or {}
    text = message.get("text", "")
    user_id = message.get("from", {}).get("id")
    chat_id = message.get("chat", {}).get("id")

    if user_id is None or chat_id is None or not text.strip():
        return None
    return IncomingMessage(user_id=int(user_id), chat_id=int(chat_id), text=text)


def _split_command(text: str):
    """'/log_water@my_bot 250 ml' -> ('/log_water', '250')"""
    parts = text.strip().split()
    command = parts[0].split("@", 1)[0].lower()
    argument = parts[1] if len(parts) > 1 else None
    return command, argument


def _format_weight(weight: float) -> str:
    return f"{weight:g}"


def _start(db: Database, user_id: int, argument: Optional[str]) -> str:
    counters.ensure_user(db, user_id)
    return GREETING_TEXT


def _help(db: Database, user_id: int, argument: Optional[str]) -> str:
    return HELP_TEXT


def _log_water(db: Database, user_id: int, argument: Optional[str]) -> str:
    if argument is None:
        return "Usage: /log_water <ml>\nExample: /log_water 250"
    amount = counters.parse_non_negative_int(argument, "Water amount")
    total = counters.add_water(db, user_id, amount)
    return f"Added {amount} ml of water (total today: {total} ml)."


def _steps(db: Database, user_id: int, argument: Optional[str]) -> str:
    if argument is None:
        return "Usage: /steps <count>\nExample: /steps 8000"
    count = counters.set_steps(db, user_id, argument)
    return f"Steps updated: {count}"


def _weight(db: Database, user_id: int, argument: Optional[str]) -> str:
    if argument is None:
        return "Usage: /weight <kg>\nExample: /weight 72.5"
    weight = counters.set_weight(db, user_id, argument)
    return f"Weight updated: {_format_weight(weight)} kg"


def _progress(db: Database, user_id: int, argument: Optional[str]) -> str:
    progress = counters.get_progress(db, user_id)
    if progress is None:
        return NO_DATA_TEXT

    weight = f"{_format_weight(progress.weight)} kg" if progress.weight is not None else "not set"
    return "\n".join([
        "Progress:",
        f"  • Weight: {weight}",
        f"  • Water: {progress.water} ml",
        f"  • Steps: {progress.steps}",
    ])


COMMANDS: dict = {
    "/start": _start,
    "/help": _help,
    "/log_water": _log_water,
    "/steps": _steps,
    "/weight": _weight,
    "/progress": _progress,
}

_FAILURE_TEXT = {
    "/start": "Sorry, I couldn't register you. Please try again later.",
    "/log_water": "Sorry, I couldn't save your water. Please try again later.",
    "/steps": "Sorry, I couldn't update your steps. Please try again later.",
    "/weight": "Sorry, I couldn't update your weight. Please try again later.",
    "/progress": "Sorry, I couldn't load your progress. Please try again later.",
}


def handle_command(db: Database, user_id: int, text: str) -> Optional[str]:
    """Run one chat command for user_id and return the reply text."""
    text = (text or "").strip()
    if not text:
        return None

    if not text.startswith("/"):
        return NOT_A_COMMAND_TEXT

    command, argument = _split_command(text)
    handler: Callable = COMMANDS.get(command)
    if handler is None:
        return UNKNOWN_COMMAND_TEXT

    try:
        return handler(db, user_id, argument)
    except ValidationError as e:
        return str(e)
    except SQLAlchemyError as e:
        logger.error(f"Storage error in {command} for user {user_id}: {e}")
        return _FAILURE_TEXT.get(command, "Sorry, something went wrong. Please try again later.")
