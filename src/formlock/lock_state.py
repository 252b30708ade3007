"""
Per-field lock state.

Each registered field is either locked (does not accept edits) or unlocked.
The resting configuration of a form is "everything locked", with two kinds of
exception:

- static exceptions passed to lock_all() (fields that always stay editable)
- ConditionalUnlock rules: a control that is unlocked only while another
  field holds a specific value (e.g. the BCF number button is enabled only
  when the proposal prefix is "BCF")

Conditional rules are evaluated against the values passed to each lock_all()
call. Nothing is cached between calls.
"""
from dataclasses import dataclass
import logging
from typing import Dict, Iterable, Mapping, Tuple

from formlock.field_registry import FieldRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConditionalUnlock:
    """Unlock `control` in the resting state iff `prefix_field == trigger_value`."""
    control: str
    prefix_field: str
    trigger_value: str

    def is_satisfied(self, values: Mapping[str, str]) -> bool:
        return values.get(self.prefix_field) == self.trigger_value


class LockStateStore:
    """Holds the locked flag for every field in a registry.

    Invariant: the key set of the internal mapping equals the registry's id
    set. Operations on unknown ids are no-ops.
    """

    def __init__(
        self,
        registry: FieldRegistry,
        conditionals: Iterable[ConditionalUnlock] = (),
    ):
        self.registry = registry
        self._locked: Dict[str, bool] = {fid: True for fid in registry.list_fields()}
        self.conditionals: Tuple[ConditionalUnlock, ...] = tuple(conditionals)

    def set_locked(self, field_id: str, locked: bool) -> bool:
        """Set one field's lock state. Returns True if the state changed."""
        if field_id not in self._locked:
            logger.debug(f"set_locked: ignoring unknown field {field_id!r}")
            return False
        locked = bool(locked)
        if self._locked[field_id] == locked:
            return False
        self._locked[field_id] = locked
        logger.debug(f"{'LOCK' if locked else 'UNLOCK'}: {field_id}")
        return True

    def is_locked(self, field_id: str) -> bool:
        # An absent control never accepts edits
        return self._locked.get(field_id, True)

    def lock_all(
        self,
        values: Mapping[str, str],
        exceptions: Iterable[str] = (),
    ) -> Dict[str, bool]:
        """Return the form to its resting lock configuration.

        Args:
            values: Current field values, used to evaluate conditional unlocks.
            exceptions: Fields that stay unlocked in the resting state.

        Returns:
            The resulting lock-state mapping.
        """
        keep_open = {fid for fid in exceptions if fid in self._locked}
        for fid in self._locked:
            self._locked[fid] = fid not in keep_open

        for rule in self.conditionals:
            if rule.control not in self._locked:
                continue
            unlocked = rule.is_satisfied(values)
            self._locked[rule.control] = not unlocked
            logger.debug(
                f"LOCK_ALL: {rule.control} {'unlocked' if unlocked else 'locked'} "
                f"({rule.prefix_field}={values.get(rule.prefix_field)!r}, needs {rule.trigger_value!r})"
            )

        logger.debug(f"LOCK_ALL: unlocked={sorted(self.unlocked_fields())}")
        return self.as_dict()

    def unlocked_fields(self) -> Tuple[str, ...]:
        return tuple(fid for fid, locked in self._locked.items() if not locked)

    def as_dict(self) -> Dict[str, bool]:
        return dict(self._locked)

    def restore(self, state: Mapping[str, bool]) -> None:
        """Restore a mapping previously returned by as_dict()."""
        for fid in self._locked:
            self._locked[fid] = bool(state.get(fid, True))

    def diff(self, before: Mapping[str, bool]) -> Dict[str, bool]:
        """Fields whose lock state differs from `before`, with their new state."""
        return {
            fid: locked for fid, locked in self._locked.items()
            if before.get(fid, True) != locked
        }
