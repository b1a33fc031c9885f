"""
Baseline snapshots of configuration settings as last loaded from the store
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple


@dataclass(frozen=True)
class SettingRow:
    """One setting as seen by the editing surface; value may still be raw text"""
    key: str
    value: Any


@dataclass(frozen=True)
class Baseline:
    """Ordered, immutable snapshot of the settings matching the store"""
    rows: Tuple[SettingRow, ...] = ()
    _index: Dict[str, int] = field(default_factory=dict, compare=False, repr=False)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self):
        return iter(self.rows)

    @property
    def keys(self) -> Tuple[str, ...]:
        return tuple(row.key for row in self.rows)

    def position_of(self, key: str) -> Optional[int]:
        return self._index.get(key)


def capture(rows: Iterable[Any]) -> Baseline:
    """
    Snapshot rows verbatim.

    Rows are copied into new immutable SettingRow objects, so later edits to
    the caller's objects never reach the baseline.
    """
    copied = tuple(SettingRow(key=row.key, value=row.value) for row in rows)
    index: Dict[str, int] = {}
    for position, row in enumerate(copied):
        if row.key in index:
            raise ValueError(f"Duplicate setting key in baseline: '{row.key}'")
        index[row.key] = position
    return Baseline(rows=copied, _index=index)


def compare(baseline: Baseline, candidate_key: str, index: int) -> Optional[str]:
    """
    Return the original key at ``index`` when the candidate key differs from it.

    None means the key is unchanged (or the position does not exist).
    """
    if index < 0 or index >= len(baseline.rows):
        return None
    original = baseline.rows[index].key
    return None if original == candidate_key else original


def same_cardinality(baseline: Optional[Baseline], candidates: Sequence[Any]) -> bool:
    """A missing baseline never matches, forcing a reload."""
    return baseline is not None and len(baseline.rows) == len(candidates)
