"""
Snapshot dataclass and the saved/current snapshot store.

A Snapshot is the complete set of field values at one point in time. The
SnapshotStore keeps two of them:

- saved: the last committed values (replaced only by commit / open)
- current: the live values, replaced on every edit

Design Philosophy: Correct by Construction
- Immutable snapshots (frozen dataclass, read-only mapping)
- Registry-complete key set: missing values are recorded as "", never omitted
- Equality is structural over values only (id/timestamp/label are metadata)
"""
from dataclasses import dataclass, field
import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Set
import time
import uuid

from formlock.field_registry import FieldRegistry

logger = logging.getLogger(__name__)


def normalize_value(value: Any) -> str:
    """Field values are strings; None means empty."""
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


@dataclass(frozen=True)
class Snapshot:
    """Immutable, registry-complete mapping of field id to value."""
    values: Mapping[str, str]
    id: str = field(default_factory=lambda: str(uuid.uuid4()), compare=False)
    timestamp: float = field(default_factory=time.time, compare=False)
    label: str = field(default="", compare=False)

    __hash__ = None  # values is a mapping

    @classmethod
    def create(
        cls,
        registry: FieldRegistry,
        values: Optional[Mapping[str, Any]] = None,
        label: str = "",
        timestamp: Optional[float] = None,
    ) -> 'Snapshot':
        """Build a snapshot over the full registry key set.

        Unknown keys in `values` are dropped. Missing keys and value-less
        (action) fields are recorded as "".
        """
        values = values or {}
        complete: Dict[str, str] = {}
        for fid in registry.list_fields():
            if registry.holds_value(fid):
                complete[fid] = normalize_value(values.get(fid))
            else:
                complete[fid] = ""
        return cls(
            values=MappingProxyType(complete),
            timestamp=time.time() if timestamp is None else timestamp,
            label=label,
        )

    def get(self, field_id: str, default: Optional[str] = None) -> Optional[str]:
        return self.values.get(field_id, default)

    def with_values(
        self,
        updates: Mapping[str, str],
        label: str = "",
        timestamp: Optional[float] = None,
    ) -> 'Snapshot':
        """Copy with some values replaced. Unknown keys are ignored."""
        merged = dict(self.values)
        for fid, value in updates.items():
            if fid in merged:
                merged[fid] = normalize_value(value)
        return Snapshot(
            values=MappingProxyType(merged),
            timestamp=time.time() if timestamp is None else timestamp,
            label=label or self.label,
        )

    def diff(self, other: 'Snapshot') -> Set[str]:
        """Field ids whose values differ between the two snapshots."""
        return {
            k for k in (self.values.keys() | other.values.keys())
            if self.values.get(k) != other.values.get(k)
        }

    def to_dict(self) -> Dict[str, str]:
        return dict(self.values)


class SnapshotStore:
    """Saved vs current snapshots and the derived dirty flag."""

    def __init__(self, registry: FieldRegistry, clock: Callable[[], float] = time.time):
        self.registry = registry
        self._clock = clock
        empty = Snapshot.create(registry, label="empty", timestamp=clock())
        self.saved: Snapshot = empty
        self.current: Snapshot = empty

    def load(self, values: Optional[Mapping[str, Any]]) -> Snapshot:
        """Read initial values: current and saved both become this snapshot."""
        snap = Snapshot.create(self.registry, values, label="open", timestamp=self._clock())
        self.current = snap
        self.saved = snap
        return snap

    def set_value(self, field_id: str, value: Any) -> bool:
        """Fold a single edit into the current snapshot. Returns True if it changed."""
        if not self.registry.holds_value(field_id):
            return False
        value = normalize_value(value)
        if self.current.values[field_id] == value:
            return False
        self.current = self.current.with_values(
            {field_id: value}, label=f"edit {field_id}", timestamp=self._clock()
        )
        return True

    def commit(self, label: str = "commit") -> Snapshot:
        """saved := copy of current."""
        self.saved = Snapshot(
            values=MappingProxyType(dict(self.current.values)),
            timestamp=self._clock(),
            label=label,
        )
        return self.saved

    def revert(self) -> Set[str]:
        """current := copy of saved. Returns the field ids that changed."""
        changed = self.current.diff(self.saved)
        self.current = Snapshot(
            values=MappingProxyType(dict(self.saved.values)),
            timestamp=self._clock(),
            label="revert",
        )
        return changed

    def dirty_fields(self) -> Set[str]:
        """Fields where current != saved."""
        dirty = self.current.diff(self.saved)
        if dirty:
            logger.debug(f"DIRTY_FIELDS: {sorted(dirty)}")
        return dirty

    @property
    def is_dirty(self) -> bool:
        # Full-mapping structural comparison, not per-field bookkeeping
        return self.current != self.saved
