"""
Typed outcomes returned by a settings submission
"""
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from app.services.baseline_store import Baseline, SettingRow


@dataclass(frozen=True)
class Accepted:
    baseline: Baseline
    kind: str = "accepted"


@dataclass(frozen=True)
class RenameRejected:
    """Keys were reverted; ``corrected`` is shown back for resubmission"""
    corrected: Tuple[SettingRow, ...]
    kind: str = "rename_rejected"


@dataclass(frozen=True)
class ValidationRejected:
    key: str
    reason: str = ""
    kind: str = "validation_rejected"


@dataclass(frozen=True)
class StructuralMismatch:
    """Local edits were discarded; ``baseline`` is the freshly reloaded set (None if the reload failed)"""
    baseline: Optional[Baseline] = None
    kind: str = "structural_mismatch"


@dataclass(frozen=True)
class PersistenceFailed:
    reason: str
    key: Optional[str] = None
    kind: str = "persistence_failed"


@dataclass(frozen=True)
class NotConnected:
    reason: str = "Database connection is not open."
    kind: str = "not_connected"


SubmitOutcome = Union[
    Accepted, RenameRejected, ValidationRejected, StructuralMismatch, PersistenceFailed, NotConnected
]
