"""
SQLite access for the reference tables.

The compliance engine only ever reads these tables: a snapshot load opens a
session, selects every row and closes it again. Writes happen when the
tables are seeded or updated by an import job.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

logger = logging.getLogger(__name__)


DEFAULT_DB_PATH = "data/ingredient_reference.db"


class DatabaseManager:
    """
    Engine and session factory for one reference database.

    A manager opened with ``read_only=True`` sets ``PRAGMA query_only`` on
    every connection, so SQLite itself rejects writes. Snapshot suppliers in
    production should be given such a manager.
    """

    def __init__(self, db_path: Optional[str] = None, echo: bool = False,
                 read_only: bool = False):
        """
        Args:
            db_path: SQLite file path, or ":memory:"
            echo: Log emitted SQL
            read_only: Reject writes on every connection
        """
        self.db_path = db_path or DEFAULT_DB_PATH
        self.read_only = read_only
        self.in_memory = ":memory:" in self.db_path

        engine_kwargs = dict(echo=echo, connect_args={"check_same_thread": False})
        if self.in_memory:
            # One shared connection keeps the in-memory database alive
            engine_kwargs["poolclass"] = StaticPool
        else:
            if read_only and not Path(self.db_path).exists():
                raise FileNotFoundError(f"Reference database not found: {self.db_path}")
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            engine_kwargs["pool_pre_ping"] = True

        self.database_url = f"sqlite:///{self.db_path}"
        self.engine = create_engine(self.database_url, **engine_kwargs)
        self._configure_sqlite()

        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )
        mode = "read-only" if read_only else "read-write"
        logger.debug(f"Database manager created for {self.database_url} ({mode})")

    def _configure_sqlite(self) -> None:
        in_memory = self.in_memory
        read_only = self.read_only

        @event.listens_for(self.engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            if not in_memory and not read_only:
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.execute("PRAGMA synchronous=NORMAL")
            if read_only:
                cursor.execute("PRAGMA query_only=ON")
            cursor.close()

    def create_all_tables(self) -> None:
        """Create the reference tables if they do not exist."""
        if self.read_only:
            raise RuntimeError("Cannot create tables through a read-only database manager")
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Transactional scope for seeding or updating reference rows.

        Commits on success, rolls back on any exception.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def read_scope(self) -> Generator[Session, None, None]:
        """
        Session for reading reference rows. Never commits.

        Usage:
            with db_manager.read_scope() as session:
                rows = session.execute(select(GrasIngredient)).scalars().all()
        """
        session = self.SessionLocal()
        try:
            yield session
        finally:
            session.rollback()
            session.close()

    def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        self.engine.dispose()


def create_test_db() -> DatabaseManager:
    """In-memory database with the reference tables created."""
    db = DatabaseManager(db_path=":memory:")
    db.create_all_tables()
    return db
