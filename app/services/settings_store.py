"""
SQLAlchemy-backed store for configuration settings
"""
import logging
from contextlib import contextmanager
from decimal import Decimal
from typing import Iterable, Iterator, List

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.errors import ConnectivityError, PersistenceError
from app.models.configuration_setting import ConfigurationSetting
from app.services.baseline_store import SettingRow

logger = logging.getLogger(__name__)


class StoreTransaction:
    """One open transaction; updates are invisible to readers until commit"""

    def __init__(self, session: Session):
        self.session = session
        self.finished = False

    def update_value(self, key: str, value: Decimal) -> int:
        """Update the row whose key equals ``key``; returns rows affected."""
        stmt = (
            update(ConfigurationSetting)
            .where(ConfigurationSetting.key == key)
            .values(value=value)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Update failed for '{key}': {e}", key=key) from e
        return result.rowcount

    def commit(self):
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Commit failed: {e}") from e
        self.finished = True

    def rollback(self):
        try:
            self.session.rollback()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Rollback failed: {e}") from e
        finally:
            self.finished = True

    def close(self):
        self.session.close()


class SqlAlchemyStore:
    """Store reading and writing the configuration_settings table"""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def query(self) -> List[SettingRow]:
        """Return every setting ordered by the row sequence."""
        stmt = select(ConfigurationSetting).order_by(ConfigurationSetting.id)
        try:
            with self.session_factory() as db:
                return [SettingRow(key=row.key, value=row.value) for row in db.scalars(stmt)]
        except SQLAlchemyError as e:
            raise ConnectivityError(f"Failed to load configuration settings: {e}") from e

    def begin_transaction(self) -> StoreTransaction:
        try:
            session = self.session_factory()
            session.begin()
        except SQLAlchemyError as e:
            raise ConnectivityError(f"Failed to begin transaction: {e}") from e
        return StoreTransaction(session)

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        """
        Scoped transaction.

        Anything not committed by the caller is rolled back on exit, including
        every error path.
        """
        tx = self.begin_transaction()
        try:
            yield tx
        except Exception:
            if not tx.finished:
                # the error already in flight is the one reported
                try:
                    tx.rollback()
                except PersistenceError as e:
                    logger.error(e.message)
                else:
                    logger.info("Settings transaction rolled back")
            raise
        else:
            if not tx.finished:
                tx.rollback()
                logger.info("Settings transaction rolled back")
        finally:
            tx.close()

    def seed(self, rows: Iterable[SettingRow]) -> int:
        """Insert rows whose key is not stored yet; returns how many were added."""
        added = 0
        with self.session_factory() as db:
            existing = set(db.scalars(select(ConfigurationSetting.key)))
            for row in rows:
                if row.key in existing:
                    continue
                db.add(ConfigurationSetting(key=row.key, value=Decimal(str(row.value))))
                existing.add(row.key)
                added += 1
            db.commit()
        return added
