"""
Database connectivity for the configuration editor
"""
import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.core.database import build_engine
from app.services.settings_store import SqlAlchemyStore

logger = logging.getLogger(__name__)


class Connection:
    """Opens, probes and closes one database handle"""

    def __init__(self):
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self.last_error: Optional[str] = None

    @property
    def engine(self) -> Optional[Engine]:
        return self._engine

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    def try_open(self, database_url: str) -> bool:
        """
        Open a connection to ``database_url``.

        Returns:
            True on success; on failure ``last_error`` holds the reason
        """
        self.last_error = None
        database_url = (database_url or "").strip()

        if not database_url:
            self.last_error = "Connection string is empty."
            return False
        if database_url.isdigit():
            self.last_error = "This doesn't look like a valid connection string."
            return False

        self.close()

        try:
            engine = build_engine(database_url)
        except (ArgumentError, ImportError, ValueError) as e:
            self.last_error = str(e)
            return False

        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            engine.dispose()
            self.last_error = str(e)
            logger.error(f"Failed to connect: {e}")
            return False

        self._engine = engine
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        logger.info(f"Connected to {engine.url.render_as_string(hide_password=True)}")
        return True

    def active_store(self) -> Optional[SqlAlchemyStore]:
        """Store bound to the open handle, or None when disconnected."""
        if self._session_factory is None:
            return None
        return SqlAlchemyStore(self._session_factory)

    def close(self):
        if self._engine is not None:
            try:
                self._engine.dispose()
            finally:
                self._engine = None
                self._session_factory = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
