"""
Counter update API: validated water/steps/weight updates and progress lookup.

Arguments arrive as free text from chat commands, so every operation
validates its own input and raises ValidationError before touching storage.
Storage errors (SQLAlchemyError) propagate to the caller.
"""

import math
import re
from typing import Optional

from health_agent.config import MAX_COUNTER_VALUE, MAX_WEIGHT_KG
from health_agent.storage import ledger
from health_agent.storage.database import Database
from health_agent.storage.ledger import Progress

_INTEGER_RE = re.compile(r"^[+-]?\d+$")


class ValidationError(ValueError):
    """A command argument was missing, malformed, or out of range."""


def parse_non_negative_int(value, name: str) -> int:
    """Coerce value to a non-negative integer or raise ValidationError."""
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a whole number.")

    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and _INTEGER_RE.match(value.strip()):
        try:
            number = int(value.strip())
        except (ValueError, OverflowError):
            # int() refuses very long digit strings
            raise ValidationError(f"{name} is too large.") from None
    elif value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"Please provide {name}.")
    else:
        raise ValidationError(f"{name} must be a whole number, got {value!r}.")

    if number < 0:
        raise ValidationError(f"{name} cannot be negative.")
    if number > MAX_COUNTER_VALUE:
        raise ValidationError(f"{name} is too large.")
    return number


def parse_weight(value) -> float:
    """Coerce value to a finite positive weight in kg or raise ValidationError."""
    if isinstance(value, bool):
        raise ValidationError("Weight must be a number.")

    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("Please provide your weight.")

    if isinstance(value, (int, float)):
        try:
            weight = float(value)
        except OverflowError:
            raise ValidationError("Weight is out of range.") from None
    elif isinstance(value, str):
        try:
            # Accept "72,5" as well as "72.5"
            weight = float(value.strip().replace(",", "."))
        except (ValueError, OverflowError):
            raise ValidationError(f"Weight must be a number, got {value!r}.") from None
    else:
        raise ValidationError(f"Weight must be a number, got {value!r}.")

    if not math.isfinite(weight):
        raise ValidationError("Weight must be a finite number.")
    if weight <= 0:
        raise ValidationError("Weight must be greater than zero.")
    if weight > MAX_WEIGHT_KG:
        raise ValidationError("Weight is out of range.")
    return weight


def ensure_user(db: Database, user_id: int) -> bool:
    """Create the user's ledger row with zero defaults if missing (idempotent)."""
    return ledger.ensure_user(db, user_id)


def add_water(db: Database, user_id: int, amount) -> int:
    """Atomically add amount (ml) to today's water. Returns the new total."""
    amount = parse_non_negative_int(amount, "Water amount")
    ledger.ensure_user(db, user_id)
    return ledger.increment_water(db, user_id, amount)


def set_steps(db: Database, user_id: int, count) -> int:
    """Replace today's step count (last write wins)."""
    count = parse_non_negative_int(count, "Step count")
    ledger.ensure_user(db, user_id)
    ledger.replace_steps(db, user_id, count)
    return count


def set_weight(db: Database, user_id: int, value) -> float:
    """Replace the latest weight (last write wins)."""
    weight = parse_weight(value)
    ledger.ensure_user(db, user_id)
    ledger.replace_weight(db, user_id, weight)
    return weight


def get_progress(db: Database, user_id: int) -> Optional[Progress]:
    """Current (weight, steps, water), or None if the user has never been seen."""
    return ledger.load_progress(db, user_id)
