"""SQLite engine and sessions backing the student store."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from examwatch.student_store.models import Base

if TYPE_CHECKING:
    from sqlalchemy import Engine

MEMORY_PATH = ":memory:"


def _enable_wal(dbapi_connection: object, _connection_record: object) -> None:
    cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def _build_engine(db_path: str) -> Engine:
    """Create the engine for a database file or the in-memory database.

    Connections may be used from the API worker threadpool, so SQLite's
    same-thread check is off. The in-memory database lives in a single
    shared connection; a second connection would see an empty database.
    """
    connect_args = {"check_same_thread": False}
    if db_path == MEMORY_PATH:
        engine = create_engine(
            "sqlite://", connect_args=connect_args, poolclass=StaticPool
        )
    else:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(f"sqlite:///{db_path}", connect_args=connect_args)
    event.listen(engine, "connect", _enable_wal)
    return engine


class Database:
    """Lazily opened SQLite database holding the students and activity_events tables.

    Writers run in WAL mode so the admin dashboard's reads never block a
    student's sync. In-memory databases silently stay in "memory" journal mode.
    """

    def __init__(self, db_path: str = "examwatch.db") -> None:
        """Initialize without connecting.

        Args:
            db_path: SQLite file, created with its parent directories on first
                use, or ":memory:".
        """
        self.db_path = db_path
        self._engine: Engine | None = None
        self._sessions: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = _build_engine(self.db_path)
        return self._engine

    def create_tables(self) -> None:
        """Create missing tables; existing data is kept."""
        Base.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        """Open a session. Loaded objects stay usable after commit."""
        if self._sessions is None:
            self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)
        return self._sessions()

    def is_wal_mode(self) -> bool:
        with self.engine.connect() as conn:
            return conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"

    def close(self) -> None:
        """Dispose of the engine. The next use reopens it."""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._sessions = None
