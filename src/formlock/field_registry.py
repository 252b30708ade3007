"""
Field catalog for a lock-state form.

The registry is the single source of truth for which field ids exist. It is
fixed at construction and never mutated afterwards. Every other component
(lock store, snapshots, transition table) keys off the ids listed here, and
treats anything outside this set as absent.
"""
from dataclasses import dataclass
from enum import Enum
import logging
from typing import Dict, Iterable, Iterator, Optional, Tuple

logger = logging.getLogger(__name__)


class FieldKind(Enum):
    """Semantic kind of a form field."""
    TEXT = "text"
    DATE = "date"
    CHOICE = "choice"
    # Button-like control: has a lock state, never holds a value
    ACTION = "action"


@dataclass(frozen=True)
class Field:
    """Identity of one form field. Pure data, no logic."""
    id: str
    kind: FieldKind = FieldKind.TEXT
    label: str = ""

    @property
    def display_label(self) -> str:
        return self.label or self.id.replace("_", " ")


class FieldRegistry:
    """Ordered, immutable catalog of fields.

    Lookups by unknown id return None / False instead of raising, so that
    partial field sets (a screen that omits some controls) work unchanged.
    """

    def __init__(self, fields: Iterable[Field]):
        self._fields: Dict[str, Field] = {}
        for f in fields:
            if not isinstance(f, Field):
                raise TypeError(f"FieldRegistry expects Field instances, got {type(f).__name__}")
            if f.id in self._fields:
                raise ValueError(f"Duplicate field id: {f.id!r}")
            self._fields[f.id] = f
        self._ids: Tuple[str, ...] = tuple(self._fields)
        logger.debug(f"FieldRegistry: {len(self._ids)} fields registered")

    def list_fields(self) -> Tuple[str, ...]:
        """Field ids in declaration order."""
        return self._ids

    def get(self, field_id: str) -> Optional[Field]:
        return self._fields.get(field_id)

    def holds_value(self, field_id: str) -> bool:
        """True if the field exists and can carry a user-entered value."""
        f = self._fields.get(field_id)
        return f is not None and f.kind is not FieldKind.ACTION

    def __contains__(self, field_id: object) -> bool:
        return field_id in self._fields

    def __iter__(self) -> Iterator[Field]:
        return iter(self._fields.values())

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:
        return f"FieldRegistry({list(self._ids)!r})"
