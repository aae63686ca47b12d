"""
Tagcache — Metrics Database Manager

Handles SQLite database connection, initialization, and session management.
"""

import threading
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from .db_models import Base


class MetricsDatabase:
    """
    SQLite database manager for metrics storage.

    Provides:
    - Automatic schema creation
    - Session management
    - Graceful shutdown
    """

    def __init__(self, db_path: str = "./data/metrics.db"):
        """
        Initialize metrics database.

        Args:
            db_path: Path to SQLite database file (relative or absolute)
        """
        self.db_path = Path(db_path).resolve()
        self.db_url = f"sqlite:///{self.db_path}"

        self.engine: Engine = create_engine(
            self.db_url,
            echo=False,
            connect_args={"check_same_thread": False},
        )

        self.session_factory: sessionmaker[Session] = sessionmaker(
            self.engine,
            expire_on_commit=False,
        )

        self._initialized = False
        self._initialization_lock = threading.Lock()

    def initialize(self) -> None:
        """
        Initialize database schema.

        Creates all tables if they don't exist. Safe to call multiple times.
        """
        with self._initialization_lock:
            if self._initialized:
                return

            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            Base.metadata.create_all(self.engine)

            self._initialized = True

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """
        Get database session (context manager).

        Usage:
            with db.get_session() as session:
                session.execute(...)
                session.commit()
        """
        if not self._initialized:
            self.initialize()

        with self.session_factory() as session:
            yield session

    def close(self) -> None:
        """Close database connections gracefully."""
        self.engine.dispose()
        self._initialized = False
