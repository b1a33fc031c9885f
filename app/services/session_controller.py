"""
Session controller orchestrating load, reconcile, validate and persist
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from app.core.errors import ConnectivityError, PersistenceError, StructuralMismatchError, ValidationError
from app.services.baseline_store import Baseline, SettingRow, capture
from app.services.connection import Connection
from app.services.edit_reconciler import EditReconciler, PAIR_BY_KEY
from app.services.outcomes import (
    Accepted,
    NotConnected,
    PersistenceFailed,
    RenameRejected,
    StructuralMismatch,
    SubmitOutcome,
    ValidationRejected,
)
from app.services.persister import TransactionalPersister
from app.services.value_validator import validate

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Editor session states"""
    DISCONNECTED = "disconnected"
    LOADED = "loaded"
    EDITING = "editing"
    SUBMITTING = "submitting"


@dataclass
class SessionContext:
    """Per-session state: the connection and the baseline captured from it"""
    connection: Connection = field(default_factory=Connection)
    baseline: Optional[Baseline] = None
    state: SessionState = SessionState.DISCONNECTED


class SessionController:
    """Only component that talks to both the editing surface and the store"""

    def __init__(self, pairing: str = PAIR_BY_KEY, persister: Optional[TransactionalPersister] = None):
        self.reconciler = EditReconciler(pairing)
        self.persister = persister or TransactionalPersister()

    def connect(self, ctx: SessionContext, database_url: str) -> Baseline:
        """
        Open ``database_url`` and load the settings.

        Raises:
            ConnectivityError: if the connection cannot be opened or read
        """
        if not ctx.connection.try_open(database_url):
            ctx.baseline = None
            ctx.state = SessionState.DISCONNECTED
            raise ConnectivityError(ctx.connection.last_error or "Failed to connect.")
        return self.load(ctx)

    def load(self, ctx: SessionContext) -> Baseline:
        """
        Read every setting and capture a fresh baseline.

        Raises:
            ConnectivityError: if no store handle is open or the read fails
            PersistenceError: if the store holds the same key more than once
        """
        store = ctx.connection.active_store()
        if store is None:
            ctx.state = SessionState.DISCONNECTED
            raise ConnectivityError("Database connection is not open.")

        rows = store.query()
        try:
            ctx.baseline = capture(rows)
        except ValueError as e:
            ctx.baseline = None
            raise PersistenceError(str(e)) from e
        ctx.state = SessionState.LOADED
        logger.info(f"Loaded {len(ctx.baseline)} configuration settings")
        return ctx.baseline

    def begin_edit(self, ctx: SessionContext):
        if ctx.state == SessionState.LOADED:
            ctx.state = SessionState.EDITING

    def submit(self, ctx: SessionContext, candidates: Iterable[SettingRow]) -> SubmitOutcome:
        """
        Reconcile, validate and persist an edited set of settings.

        Every rejection comes back as a typed outcome; nothing is raised.
        """
        if ctx.connection.active_store() is None:
            ctx.state = SessionState.DISCONNECTED
            return NotConnected()

        candidates = list(candidates)
        ctx.state = SessionState.SUBMITTING
        try:
            return self._submit(ctx, candidates)
        finally:
            if ctx.state == SessionState.SUBMITTING:
                connected = ctx.connection.active_store() is not None
                ctx.state = SessionState.LOADED if connected else SessionState.DISCONNECTED

    def _submit(self, ctx: SessionContext, candidates) -> SubmitOutcome:
        try:
            reconciled = self.reconciler.reconcile(ctx.baseline, candidates)
        except StructuralMismatchError as e:
            logger.warning(f"Discarding local edits: {e.message}")
            try:
                return StructuralMismatch(baseline=self.load(ctx))
            except (ConnectivityError, PersistenceError) as reload_error:
                logger.error(f"Reload after structural mismatch failed: {reload_error.message}")
                ctx.baseline = None
                return StructuralMismatch(baseline=None)

        if reconciled.keys_were_reverted:
            return RenameRejected(corrected=reconciled.rows)

        for row in reconciled.rows:
            result = validate(row.value)
            if not result.ok:
                logger.warning(f"Invalid value for '{row.key}': {result.error}")
                return ValidationRejected(key=row.key, reason=result.error)

        store = ctx.connection.active_store()
        persisted = self.persister.persist(store, reconciled.rows)
        if not persisted.ok:
            if isinstance(persisted.error, ValidationError):
                return ValidationRejected(key=persisted.key, reason=persisted.reason)
            return PersistenceFailed(reason=persisted.reason, key=persisted.key)

        # New baseline always comes from a fresh read of the store.
        try:
            return Accepted(baseline=self.load(ctx))
        except (ConnectivityError, PersistenceError) as e:
            ctx.baseline = None
            return PersistenceFailed(reason=f"Settings saved but reload failed: {e.message}")
