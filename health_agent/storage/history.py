"""
Daily stats archive (append-only).

The rollover job is the only writer. Rows are never updated or deleted.
"""

from typing import List, Optional

from sqlalchemy import func, select, update

from health_agent.storage.database import Database
from health_agent.storage.ledger import Counters
from health_agent.storage.models import DailyStat, User


def append_daily_stat(db: Database, user_id: int, date: str, water: int, steps: int):
    """Write one history row in its own transaction."""
    with db.session() as session:
        session.add(DailyStat(user_id=user_id, date=date, water=water, steps=steps))


def archive_and_reset_user(db: Database, user_id: int, date: str) -> Optional[Counters]:
    """Snapshot one user's counters into history and zero them, atomically.

    Read, insert and reset share a single transaction holding the row lock,
    so an increment can land either before (archived today) or after
    (counted tomorrow) but never in between. Returns the archived counters,
    or None if the user row disappeared.
    """
    with db.session() as session:
        row = session.execute(
            select(User.water, User.steps).where(User.id == user_id).with_for_update()
        ).first()
        if row is None:
            return None

        session.add(DailyStat(user_id=user_id, date=date, water=row.water, steps=row.steps))
        session.execute(update(User).where(User.id == user_id).values(water=0, steps=0))

    return Counters(user_id=user_id, water=row.water, steps=row.steps)


def count_for_date(db: Database, date: str) -> int:
    """Number of history rows already written for a date."""
    with db.session() as session:
        return session.scalar(select(func.count(DailyStat.id)).where(DailyStat.date == date))


def load_history(db: Database, user_id: int = None, date: str = None) -> List[dict]:
    """Load archived rows, optionally filtered by user and/or date, oldest first."""
    stmt = select(DailyStat).order_by(DailyStat.date, DailyStat.id)
    if user_id is not None:
        stmt = stmt.where(DailyStat.user_id == user_id)
    if date is not None:
        stmt = stmt.where(DailyStat.date == date)

    with db.session() as session:
        return [stat.to_dict() for stat in session.scalars(stmt)]
