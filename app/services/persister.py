"""
Atomic persistence of reconciled configuration settings
"""
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from app.core.errors import ConfigEditorError, ConnectivityError, PersistenceError, ValidationError
from app.services.baseline_store import SettingRow
from app.services.value_validator import validate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PersistResult:
    """Result of one batch write"""
    ok: bool
    updated: int = 0
    error: Optional[ConfigEditorError] = None

    @property
    def key(self) -> Optional[str]:
        return self.error.key if self.error is not None else None

    @property
    def reason(self) -> Optional[str]:
        return self.error.message if self.error is not None else None


class TransactionalPersister:
    """Writes a whole batch of settings in one transaction, matching rows by key"""

    def persist(self, store, rows: Sequence[SettingRow]) -> PersistResult:
        """
        Write every row or none of them.

        Args:
            store: Store exposing ``transaction()``
            rows: Reconciled rows; values may still be raw text

        Returns:
            PersistResult; errors are returned, never raised
        """
        try:
            with store.transaction() as tx:
                for row in rows:
                    result = validate(row.value)
                    if not result.ok:
                        raise ValidationError(result.error, key=row.key)

                    affected = tx.update_value(row.key, result.value)
                    if affected != 1:
                        raise PersistenceError(
                            f"Update for '{row.key}' affected {affected} rows, expected 1",
                            key=row.key,
                        )
                tx.commit()
        except ValidationError as e:
            logger.warning(f"Rejected batch on invalid value for '{e.key}': {e.message}")
            return PersistResult(ok=False, error=e)
        except (PersistenceError, ConnectivityError) as e:
            logger.error(f"Settings batch rolled back: {e.message}")
            return PersistResult(ok=False, error=e)

        logger.info(f"Committed {len(rows)} configuration settings")
        return PersistResult(ok=True, updated=len(rows))
