"""
User ledger: per-user running counters for the current day.

Every mutation is a single UPDATE/INSERT statement committed before the
function returns, so concurrent callers never lose each other's writes.
"""

from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from health_agent.storage.database import Database
from health_agent.storage.models import User


@dataclass(frozen=True)
class Progress:
    """Latest snapshot of one user's ledger row."""

    weight: Optional[float]
    steps: int
    water: int


@dataclass(frozen=True)
class Counters:
    user_id: int
    water: int
    steps: int


def ensure_user(db: Database, user_id: int) -> bool:
    """Insert a zeroed row for user_id if absent. Returns True if created.

    Idempotent: an existing row is never modified. A concurrent first insert
    of the same id (possible on non-SQLite backends) counts as "already there".
    """
    try:
        with db.session() as session:
            if session.get(User, user_id) is not None:
                return False
            session.add(User(id=user_id, weight=None, steps=0, water=0))
    except IntegrityError:
        return False

    return True


def increment_water(db: Database, user_id: int, amount: int) -> Optional[int]:
    """Add amount to water in one statement. Returns new total, None if no row."""
    with db.session() as session:
        session.execute(
            update(User).where(User.id == user_id).values(water=User.water + amount)
        )
        return session.scalar(select(User.water).where(User.id == user_id))


def replace_steps(db: Database, user_id: int, count: int) -> bool:
    with db.session() as session:
        result = session.execute(update(User).where(User.id == user_id).values(steps=count))
        return result.rowcount == 1


def replace_weight(db: Database, user_id: int, value: float) -> bool:
    with db.session() as session:
        result = session.execute(update(User).where(User.id == user_id).values(weight=value))
        return result.rowcount == 1


def load_progress(db: Database, user_id: int) -> Optional[Progress]:
    """Return the user's row as Progress, or None if the user was never seen."""
    with db.session() as session:
        row = session.execute(
            select(User.weight, User.steps, User.water).where(User.id == user_id)
        ).first()

    if row is None:
        return None
    return Progress(weight=row.weight, steps=row.steps, water=row.water)


def load_all_counters(db: Database) -> List[Counters]:
    """Read (id, water, steps) for every user."""
    with db.session() as session:
        rows = session.execute(select(User.id, User.water, User.steps).order_by(User.id)).all()
    return [Counters(user_id=r.id, water=r.water, steps=r.steps) for r in rows]


def list_user_ids(db: Database) -> List[int]:
    with db.session() as session:
        return list(session.scalars(select(User.id).order_by(User.id)))


def reset_all_counters(db: Database) -> int:
    """Zero water and steps for every user. Returns number of rows touched."""
    with db.session() as session:
        result = session.execute(update(User).values(water=0, steps=0))
        return result.rowcount
