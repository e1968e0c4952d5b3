"""
Single writer for the health database.

Chat commands and rollovers both run through a LedgerService. On Modal the
SQLite file lives on a volume, and volume commits are last-writer-wins per
file, so only the one container hosting this service may open it. Each call
reloads the volume, does its work, releases the file and commits.
"""

import threading
from contextlib import contextmanager
from typing import Optional

from health_agent.config import ROLLOVER_MODE, logger
from health_agent.rollover import RolloverJob
from health_agent.storage.database import get_database
from health_agent.telegram import commands


class LedgerService:
    """Runs storage work one call at a time against a (possibly volume-backed) database."""

    # One storage call at a time per process
    _lock = threading.Lock()

    def __init__(self, volume=None, open_database=get_database):
        self.volume = volume
        self._open_database = open_database

    def _reload_volume(self):
        """Reload volume to see the last commit before touching the file."""
        if self.volume is None:
            return
        try:
            self.volume.reload()
        except RuntimeError:
            pass  # Running locally, not in Modal

    def _commit_volume(self):
        if self.volume is not None:
            self.volume.commit()

    @contextmanager
    def _storage(self):
        with self._lock:
            self._reload_volume()
            db = self._open_database()
            try:
                yield db
            finally:
                # SQLite handles must be closed before the volume is committed
                db.dispose()
                self._commit_volume()

    def handle_command(self, user_id: int, text: str) -> Optional[str]:
        """Run one chat command and return the reply text."""
        with self._storage() as db:
            return commands.handle_command(db, user_id, text)

    def run_rollover(self, date: str = None, force: bool = False, mode: str = ROLLOVER_MODE) -> dict:
        """Archive and reset every user's counters; returns the result as a dict."""
        with self._storage() as db:
            result = RolloverJob(db, mode=mode).run(date=date, force=force)
        logger.info(f"Rollover result: {result.to_dict()}")
        return result.to_dict()
