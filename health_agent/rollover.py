"""
Daily rollover: archive every user's water/steps into daily_stats, then zero them.

Two modes:
- atomic: per user, read + archive + reset in one locked transaction.
  Updates racing with the job land either in today's archive or in
  tomorrow's counters.
- snapshot: read all rows, archive each, then one unconditional bulk
  reset. Updates accepted between the read and the reset are dropped from
  both days.

There is no catch-up: a day whose trigger was missed is never archived.
"""

import threading
from dataclasses import dataclass, field
from typing import List

from sqlalchemy.exc import SQLAlchemyError

from health_agent.config import (
    ROLLOVER_MODE,
    ROLLOVER_MODE_ATOMIC,
    ROLLOVER_MODE_SNAPSHOT,
    logger,
)
from health_agent.storage import history, ledger
from health_agent.storage.database import Database
from health_agent.utils import today_str

STATUS_COMPLETED = "completed"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"


@dataclass
class RolloverResult:
    date: str
    status: str
    archived: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)
    reset: bool = False
    reason: str = ""

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "status": self.status,
            "archived": len(self.archived),
            "failed": self.failed,
            "reset": self.reset,
            "reason": self.reason,
        }


class RolloverJob:
    """Serialized daily archive-and-reset over the user ledger."""

    # Shared by every job in the process: triggers build a fresh job each time
    _lock = threading.Lock()

    def __init__(self, db: Database, mode: str = ROLLOVER_MODE):
        if mode not in (ROLLOVER_MODE_ATOMIC, ROLLOVER_MODE_SNAPSHOT):
            raise ValueError(f"Unknown rollover mode: {mode}")
        self.db = db
        self.mode = mode

    def run(self, date: str = None, force: bool = False) -> RolloverResult:
        """Run one rollover for date (defaults to today).

        Skips if another run is in progress in this process, or if history
        rows already exist for date (unless force=True).
        """
        date = date or today_str()

        if not self._lock.acquire(blocking=False):
            logger.warning(f"Rollover for {date} skipped: another run is in progress")
            return RolloverResult(date=date, status=STATUS_SKIPPED, reason="already_running")

        try:
            if not force:
                try:
                    existing = history.count_for_date(self.db, date)
                except SQLAlchemyError as e:
                    logger.error(f"Rollover {date}: failed to check existing history: {e}")
                    return RolloverResult(date=date, status=STATUS_FAILED, reason="read_failed")
                if existing:
                    logger.warning(f"Rollover for {date} skipped: {existing} history rows already exist")
                    return RolloverResult(date=date, status=STATUS_SKIPPED, reason="already_archived")

            logger.info(f"Starting {self.mode} rollover for {date}")
            if self.mode == ROLLOVER_MODE_ATOMIC:
                result = self._run_atomic(date)
            else:
                result = self._run_snapshot(date)

            logger.info(
                f"Rollover for {date} {result.status}: archived {len(result.archived)} users, "
                f"{len(result.failed)} failed, reset={result.reset}"
            )
            return result
        finally:
            self._lock.release()

    def _run_atomic(self, date: str) -> RolloverResult:
        result = RolloverResult(date=date, status=STATUS_COMPLETED)

        try:
            user_ids = ledger.list_user_ids(self.db)
        except SQLAlchemyError as e:
            logger.error(f"Rollover {date}: failed to list users: {e}")
            result.status = STATUS_FAILED
            result.reason = "read_failed"
            return result

        for user_id in user_ids:
            try:
                if history.archive_and_reset_user(self.db, user_id, date) is not None:
                    result.archived.append(user_id)
            except SQLAlchemyError as e:
                # Rolled back: this user's counters carry over to tomorrow
                logger.error(f"Rollover {date}: archive failed for user {user_id}: {e}")
                result.failed.append(user_id)

        # Failed users were rolled back and keep their counters
        result.reset = not result.failed
        return result

    def _run_snapshot(self, date: str) -> RolloverResult:
        result = RolloverResult(date=date, status=STATUS_COMPLETED)

        try:
            rows = ledger.load_all_counters(self.db)
        except SQLAlchemyError as e:
            logger.error(f"Rollover {date}: failed to read user counters: {e}")
            result.status = STATUS_FAILED
            result.reason = "read_failed"
            return result

        for row in rows:
            try:
                history.append_daily_stat(self.db, row.user_id, date, row.water, row.steps)
                result.archived.append(row.user_id)
            except SQLAlchemyError as e:
                logger.error(f"Rollover {date}: failed to save stats for user {row.user_id}: {e}")
                result.failed.append(row.user_id)

        try:
            touched = ledger.reset_all_counters(self.db)
            result.reset = True
            logger.info(f"Rollover {date}: reset water and steps for {touched} users")
        except SQLAlchemyError as e:
            logger.error(f"Rollover {date}: failed to reset water and steps: {e}")
            result.status = STATUS_FAILED
            result.reason = "reset_failed"

        return result
