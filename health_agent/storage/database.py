"""
Storage handle: owns the SQLAlchemy engine and session factory.

One Database is built per process and passed into every ledger, history
and rollover call.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from health_agent.config import DATABASE_URL, STORAGE_TIMEOUT_SECONDS, logger
from health_agent.storage.models import Base


def _configure_sqlite(engine: Engine):
    """Serialize writers: every transaction starts with BEGIN IMMEDIATE.

    pysqlite's own implicit BEGIN is disabled so that a read followed by a
    write in one transaction holds the write lock from the start and never
    hits a lock-upgrade deadlock. Waiting writers block up to the busy
    timeout passed in connect_args.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """Process-wide storage handle for the ledger and history tables."""

    def __init__(self, url: str = DATABASE_URL, timeout: float = STORAGE_TIMEOUT_SECONDS):
        self.url = make_url(url)
        self.is_sqlite = self.url.get_backend_name() == "sqlite"

        if self.is_sqlite:
            database = self.url.database
            if database and database != ":memory:":
                Path(database).parent.mkdir(parents=True, exist_ok=True)
            self.engine = create_engine(
                self.url,
                connect_args={"timeout": timeout, "check_same_thread": False},
            )
            _configure_sqlite(self.engine)
        else:
            self.engine = create_engine(self.url, pool_timeout=timeout, pool_pre_ping=True)

        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_schema(self):
        """Create the users and daily_stats tables if missing."""
        Base.metadata.create_all(self.engine)
        logger.info(f"Storage ready at {self.url.render_as_string(hide_password=True)}")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Session scoped to one transaction: commit on success, rollback on error."""
        with self.session_factory() as session:
            with session.begin():
                yield session

    def dispose(self):
        self.engine.dispose()


_database: Optional[Database] = None


def get_database() -> Database:
    """Build the process storage handle on first use.

    Raises whatever the driver raises when storage cannot be opened; callers
    must not start serving traffic in that case.
    """
    global _database
    if _database is None:
        db = Database()
        db.create_schema()
        _database = db
    return _database
