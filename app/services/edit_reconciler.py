"""
Reconciliation of edited settings against the loaded baseline
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from app.core.errors import StructuralMismatchError
from app.services.baseline_store import Baseline, SettingRow, compare, same_cardinality

logger = logging.getLogger(__name__)

PAIR_BY_KEY = "key"
PAIR_BY_POSITION = "positional"


@dataclass(frozen=True)
class ReconcileResult:
    """Reconciled rows plus whether any key had to be reverted"""
    rows: Tuple[SettingRow, ...]
    keys_were_reverted: bool
    reverted: Tuple[Tuple[str, str], ...] = ()  # (attempted key, restored key)


class EditReconciler:
    """Reverts key changes so a setting's identity never changes from the editor"""

    def __init__(self, pairing: str = PAIR_BY_KEY):
        if pairing not in (PAIR_BY_KEY, PAIR_BY_POSITION):
            raise ValueError(f"Unknown pairing mode: {pairing}")
        self.pairing = pairing

    def reconcile(self, baseline: Optional[Baseline], candidates: Sequence[SettingRow]) -> ReconcileResult:
        """
        Compare candidates with the baseline and revert disallowed key edits.

        Values pass through untouched.

        Raises:
            StructuralMismatchError: if the row counts differ
        """
        if not same_cardinality(baseline, candidates):
            expected = len(baseline) if baseline is not None else None
            raise StructuralMismatchError(
                f"Expected {expected} settings, received {len(candidates)}"
            )

        if self.pairing == PAIR_BY_POSITION:
            result = self._reconcile_positional(baseline, candidates)
        else:
            result = self._reconcile_by_key(baseline, candidates)

        for attempted, restored in result.reverted:
            logger.warning(f"Reverted key change '{attempted}' -> '{restored}'")
        return result

    def _reconcile_positional(self, baseline: Baseline, candidates: Sequence[SettingRow]) -> ReconcileResult:
        rows: List[SettingRow] = []
        reverted: List[Tuple[str, str]] = []
        for index, candidate in enumerate(candidates):
            original = compare(baseline, candidate.key, index)
            if original is not None:
                reverted.append((candidate.key, original))
                candidate = SettingRow(key=original, value=candidate.value)
            rows.append(candidate)
        return ReconcileResult(tuple(rows), bool(reverted), tuple(reverted))

    def _reconcile_by_key(self, baseline: Baseline, candidates: Sequence[SettingRow]) -> ReconcileResult:
        # Pass 1: rows whose key sits at the same position keep it.
        # Pass 2: other known keys not yet claimed keep it (reordered rows).
        # Pass 3: unknown or duplicate keys take an unclaimed baseline key,
        # preferring the one at their own position.
        assigned: Dict[int, str] = {}
        claimed = set()

        for index, candidate in enumerate(candidates):
            if compare(baseline, candidate.key, index) is None:
                assigned[index] = candidate.key
                claimed.add(candidate.key)

        for index, candidate in enumerate(candidates):
            if index in assigned:
                continue
            if baseline.position_of(candidate.key) is not None and candidate.key not in claimed:
                assigned[index] = candidate.key
                claimed.add(candidate.key)

        unclaimed = [key for key in baseline.keys if key not in claimed]
        reverted: List[Tuple[str, str]] = []
        rows: List[SettingRow] = []
        for index, candidate in enumerate(candidates):
            key = assigned.get(index)
            if key is None:
                positional = baseline.rows[index].key
                key = positional if positional in unclaimed else unclaimed[0]
                unclaimed.remove(key)
                reverted.append((candidate.key, key))
            rows.append(SettingRow(key=key, value=candidate.value))
        return ReconcileResult(tuple(rows), bool(reverted), tuple(reverted))
