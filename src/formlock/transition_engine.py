"""
Transition engine: trigger -> rules -> plan -> lock/value mutations.

The engine owns the rule table of one form. Resolving a trigger is split in
two phases so the session can keep each dispatch atomic:

1. plan(): pure. Checks guards against the current lock state and computes
   every delta the matching rules would produce.
2. apply(): mutates the lock store and the current snapshot from a plan.

Rules that mention field ids outside the registry have those ids skipped.
"""
from dataclasses import dataclass, field
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from formlock.field_registry import FieldRegistry
from formlock.lock_state import LockStateStore
from formlock.snapshot_model import SnapshotStore
from formlock.transition_rules import COMMIT_CONTROL, TransitionRule

logger = logging.getLogger(__name__)


@dataclass
class Plan:
    """Deltas computed from a set of rules, not yet applied."""
    rules: Tuple[TransitionRule, ...]
    unlock: List[str] = field(default_factory=list)
    lock: List[str] = field(default_factory=list)
    lock_all: bool = False
    value_changes: Dict[str, str] = field(default_factory=dict)
    focus: Optional[str] = None
    notifications: List[str] = field(default_factory=list)
    dialogs: List[str] = field(default_factory=list)
    # (rule name, locked field) of the first failed guard
    blocked_by: Optional[Tuple[str, str]] = None

    @property
    def blocked(self) -> bool:
        return self.blocked_by is not None


class TransitionEngine:
    """Looks up and evaluates the TransitionRule table of one form."""

    def __init__(
        self,
        registry: FieldRegistry,
        rules: Iterable[TransitionRule],
        commit_control: str = "Save",
    ):
        self.registry = registry
        self.rules: Tuple[TransitionRule, ...] = tuple(rules)
        self.commit_control = commit_control

        self._by_trigger: Dict[str, List[TransitionRule]] = {}
        self._by_change: Dict[str, List[TransitionRule]] = {}
        for rule in self.rules:
            if rule.trigger is not None:
                self._by_trigger.setdefault(rule.trigger, []).append(rule)
            elif rule.on_change in registry:
                self._by_change.setdefault(rule.on_change, []).append(rule)
            else:
                logger.debug(f"Rule {rule.name!r} watches unknown field {rule.on_change!r}, skipped")

    def rules_for_trigger(self, trigger: str) -> Tuple[TransitionRule, ...]:
        return tuple(self._by_trigger.get(trigger, ()))

    def rules_for_change(self, field_id: str) -> Tuple[TransitionRule, ...]:
        return tuple(self._by_change.get(field_id, ()))

    def _known(self, field_ids: Iterable[str]) -> List[str]:
        return [fid for fid in field_ids if fid in self.registry]

    def resolve_focus(self, target: Optional[str]) -> Optional[str]:
        """Map a rule's focus target to a concrete id (None if absent)."""
        if target is None:
            return None
        if target == COMMIT_CONTROL:
            return self.commit_control
        if target in self.registry:
            return target
        logger.debug(f"Focus target {target!r} not in registry, ignored")
        return None

    def plan(
        self,
        rules: Iterable[TransitionRule],
        values: Mapping[str, str],
        locks: LockStateStore,
    ) -> Plan:
        """Compute the deltas for `rules` without mutating anything.

        Guards are checked against the lock state before any rule runs. If
        one fails, the plan is blocked and carries no deltas.
        """
        rules = tuple(rules)
        plan = Plan(rules=rules)

        for rule in rules:
            for fid in self._known(rule.requires_unlocked):
                if locks.is_locked(fid):
                    plan.blocked_by = (rule.name, fid)
                    logger.debug(f"BLOCKED: rule {rule.name!r} requires {fid!r} unlocked")
                    return plan

        for rule in rules:
            plan.unlock.extend(self._known(rule.unlock))
            plan.lock.extend(self._known(rule.lock))
            plan.lock_all = plan.lock_all or rule.lock_all

            vr = rule.value_rule
            if vr is not None and values.get(vr.when_field) == vr.equals:
                if self.registry.holds_value(vr.target):
                    plan.value_changes[vr.target] = vr.value
                focus = self.resolve_focus(vr.focus)
                if focus is not None:
                    plan.focus = focus

            focus = self.resolve_focus(rule.focus)
            if focus is not None:
                plan.focus = focus
            if rule.notification:
                plan.notifications.append(rule.notification)
            if rule.dialog:
                plan.dialogs.append(rule.dialog)

        return plan

    def apply(
        self,
        plan: Plan,
        locks: LockStateStore,
        snapshots: SnapshotStore,
        resting_unlocked: Iterable[str] = (),
    ) -> None:
        """Apply a plan: values first, then lock deltas, then lock_all.

        Values go first so that a lock_all in the same plan evaluates
        conditional unlocks against the new values.
        """
        if plan.blocked:
            raise ValueError(f"Cannot apply blocked plan (rule {plan.blocked_by[0]!r})")

        for fid, value in plan.value_changes.items():
            snapshots.set_value(fid, value)
        for fid in plan.unlock:
            locks.set_locked(fid, False)
        for fid in plan.lock:
            locks.set_locked(fid, True)
        if plan.lock_all:
            self.rest(locks, snapshots, resting_unlocked)

        logger.debug(f"APPLY: rules={[r.name for r in plan.rules]} values={plan.value_changes}")

    def rest(
        self,
        locks: LockStateStore,
        snapshots: SnapshotStore,
        resting_unlocked: Iterable[str] = (),
    ) -> Dict[str, bool]:
        """Return to the resting lock configuration using current values."""
        return locks.lock_all(snapshots.current.values, exceptions=resting_unlocked)
