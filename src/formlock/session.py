"""
FormSession: the controller that owns one open form.

Lifecycle:
- Created with a FormDefinition and the UI capabilities (confirm, notify,
  focus, dialog). Nothing is locked or loaded yet.
- open(): reads initial values (or, on a re-open without values, keeps the
  current ones), saved := current, returns to the resting lock configuration.
- dispatch() / update_value(): every user action. Each call is atomic: it
  either applies completely or leaves the session exactly as it was.
- quit: ends the session (guarded by a confirmation when dirty).

The session never raises out of dispatch(). Every outcome, including errors,
is reported in the returned Effects.
"""
from contextlib import contextmanager
from enum import Enum
import logging
import time
from typing import Any, Callable, Dict, Generator, List, Mapping, Optional, Tuple

from formlock.config import FormConfig, get_default_form_config
from formlock.effects import ConfirmationRequest, Effects, Outcome
from formlock.forms import FormDefinition
from formlock.lock_state import LockStateStore
from formlock.snapshot_model import Snapshot, SnapshotStore, normalize_value
from formlock.transition_engine import TransitionEngine
from formlock.transition_rules import Trigger

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[str], Any]
SinkFn = Callable[[str], None]

# (lock state, current snapshot, saved snapshot, lifecycle, last committed at)
_Checkpoint = Tuple[Dict[str, bool], Snapshot, Snapshot, 'SessionState', Optional[float]]


class SessionState(Enum):
    NEW = "new"
    OPEN = "open"
    ENDED = "ended"


class FormSession:
    """Orchestrates open / commit / undo / quit and the rule table of one form.

    Capabilities (all optional):
        confirm: prompt -> bool. May also return a future-like object with a
            blocking result(); the dispatch waits for it before mutating.
            A missing provider declines every confirmation.
        notify: message sink (toasts).
        focus: receives the id of the control that should take focus.
        dialog: receives the name of a side dialog to open.
    """

    def __init__(
        self,
        form: FormDefinition,
        confirm: Optional[ConfirmFn] = None,
        notify: Optional[SinkFn] = None,
        focus: Optional[SinkFn] = None,
        dialog: Optional[SinkFn] = None,
        config: Optional[FormConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.form = form
        self.config = config if config is not None else get_default_form_config()
        self.registry = form.registry
        self.locks = LockStateStore(form.registry, form.conditionals)
        self.snapshots = SnapshotStore(form.registry, clock=clock)
        self.engine = TransitionEngine(form.registry, form.rules, commit_control=self.config.commit_control)

        self._confirm = confirm
        self._notify = notify
        self._focus = focus
        self._dialog = dialog
        self._clock = clock

        self._state = SessionState.NEW
        self._last_committed_at: Optional[float] = None
        self._dirty = False
        self._on_dirty_changed_callbacks: List[Callable[[bool], None]] = []

    # ==================== QUERIES ====================

    @property
    def is_open(self) -> bool:
        return self._state is SessionState.OPEN

    @property
    def is_ended(self) -> bool:
        return self._state is SessionState.ENDED

    def is_dirty(self) -> bool:
        return self.snapshots.is_dirty

    def is_locked(self, field_id: str) -> bool:
        return self.locks.is_locked(field_id)

    def lock_states(self) -> Dict[str, bool]:
        return self.locks.as_dict()

    def current_values(self) -> Dict[str, str]:
        return self.snapshots.current.to_dict()

    def saved_values(self) -> Dict[str, str]:
        return self.snapshots.saved.to_dict()

    def last_committed_at(self) -> Optional[float]:
        """Timestamp of the last commit in this session, None before the first."""
        return self._last_committed_at

    # ==================== DIRTY SUBSCRIPTION ====================

    def on_dirty_changed(self, callback: Callable[[bool], None]) -> None:
        """Subscribe to dirty flag flips (the form's dirty indicator)."""
        if callback not in self._on_dirty_changed_callbacks:
            self._on_dirty_changed_callbacks.append(callback)

    def off_dirty_changed(self, callback: Callable[[bool], None]) -> None:
        if callback in self._on_dirty_changed_callbacks:
            self._on_dirty_changed_callbacks.remove(callback)

    def _sync_dirty(self) -> None:
        dirty = self.snapshots.is_dirty
        if dirty == self._dirty:
            return
        self._dirty = dirty
        for callback in list(self._on_dirty_changed_callbacks):
            try:
                callback(dirty)
            except Exception as e:
                logger.warning(f"Error in dirty_changed callback: {e}")

    # ==================== ATOMICITY ====================

    def _checkpoint(self) -> _Checkpoint:
        return (
            self.locks.as_dict(),
            self.snapshots.current,
            self.snapshots.saved,
            self._state,
            self._last_committed_at,
        )

    def _restore(self, checkpoint: _Checkpoint) -> None:
        locks, current, saved, state, committed_at = checkpoint
        self.locks.restore(locks)
        self.snapshots.current = current
        self.snapshots.saved = saved
        self._state = state
        self._last_committed_at = committed_at

    @contextmanager
    def _atomic(self, label: str) -> Generator[_Checkpoint, None, None]:
        """Restore the session if the block raises.

        Snapshots are immutable, so the checkpoint holds references rather
        than copies.
        """
        checkpoint = self._checkpoint()
        try:
            yield checkpoint
        except Exception:
            self._restore(checkpoint)
            logger.debug(f"ROLLBACK: '{label}'")
            raise

    def _run(self, trigger: str, step: Callable[[Effects], None]) -> Effects:
        """Run one dispatch step atomically and deliver its side effects.

        Steps that end in a non-mutating outcome (declined, blocked,
        rejected...) are rolled back too, so anything they folded in before
        deciding does not leak.
        """
        effects = Effects(trigger=trigger)
        try:
            with self._atomic(trigger) as checkpoint:
                step(effects)
                if not effects.outcome.mutated:
                    self._restore(checkpoint)
                    effects.focus = None
                    effects.dialogs.clear()
                else:
                    effects.lock_changes = self.locks.diff(checkpoint[0])
                    changed = self.snapshots.current.diff(checkpoint[1])
                    effects.value_changes = {
                        fid: self.snapshots.current.values[fid]
                        for fid in self.registry.list_fields() if fid in changed
                    }
        except Exception as e:
            logger.exception(f"DISPATCH: '{trigger}' failed, session rolled back")
            effects = Effects(trigger=trigger, outcome=Outcome.FAILED, error=str(e))

        effects.dirty = self.snapshots.is_dirty
        self._sync_dirty()
        self._deliver(effects)
        return effects

    # ==================== CAPABILITIES ====================

    def _ask(self, prompt: str) -> bool:
        """Synchronous yes/no gate. Runs before any mutation of the step."""
        if self._confirm is None:
            logger.warning(f"No confirmation provider; declining {prompt!r}")
            return False
        try:
            answer = self._confirm(prompt)
            # Future-like answers: wait for the resolution
            result = getattr(answer, "result", None)
            if callable(result):
                answer = result()
            return bool(answer)
        except Exception as e:
            logger.warning(f"Confirmation provider failed, treating as decline: {e}")
            return False

    def _deliver(self, effects: Effects) -> None:
        """Hand focus, dialogs and notifications to the UI sinks (best effort)."""
        calls: List[Tuple[Optional[SinkFn], str]] = []
        if effects.focus is not None:
            calls.append((self._focus, effects.focus))
        calls.extend((self._dialog, name) for name in effects.dialogs)
        calls.extend((self._notify, message) for message in effects.notifications)
        for sink, arg in calls:
            if sink is None:
                continue
            try:
                sink(arg)
            except Exception as e:
                logger.warning(f"Error in UI sink for '{effects.trigger}' ({arg!r}): {e}")

    # ==================== OPERATIONS ====================

    def _rest(self) -> None:
        self.engine.rest(self.locks, self.snapshots, self.form.resting_unlocked)

    def open(self, initial_values: Optional[Mapping[str, Any]] = None) -> Effects:
        """Open (or re-open) the form with the values currently rendered.

        Without initial_values a session that was opened before keeps its
        current values and adopts them as the saved snapshot.
        """
        def step(effects: Effects) -> None:
            if initial_values is None and self._state is not SessionState.NEW:
                self.snapshots.commit("open")
            else:
                self.snapshots.load(initial_values)
            self._rest()
            self._state = SessionState.OPEN
            self._last_committed_at = None
            logger.info(
                f"OPEN: form={self.form.name!r} fields={len(self.registry)} "
                f"unlocked={list(self.locks.unlocked_fields())}"
            )

        return self._run(Trigger.OPEN, step)

    def dispatch(self, trigger: str, payload: Optional[Mapping[str, Any]] = None) -> Effects:
        """Single entry point for named user actions.

        Args:
            trigger: Session trigger (open/commit/undo/quit) or a rule trigger.
            payload: Optional {"values": {field_id: value}} folded in, as raw
                edits, before the trigger's rule runs.

        Returns:
            Effects describing the outcome and the UI side effects.
        """
        if not isinstance(trigger, str):
            logger.debug(f"DISPATCH: ignoring non-string trigger {trigger!r}")
            return Effects(trigger=repr(trigger), outcome=Outcome.IGNORED, dirty=self.snapshots.is_dirty)
        payload = payload if payload is not None else {}
        values = payload.get("values") if isinstance(payload, Mapping) else payload
        if values is not None and not isinstance(values, Mapping):
            logger.debug(f"DISPATCH: '{trigger}' ignored, malformed payload {payload!r}")
            return Effects(trigger=trigger, outcome=Outcome.IGNORED, dirty=self.snapshots.is_dirty)

        if trigger == Trigger.OPEN:
            return self.open(values)

        if not self.is_open:
            logger.debug(f"DISPATCH: '{trigger}' ignored, session is {self._state.value}")
            return Effects(trigger=trigger, outcome=Outcome.IGNORED, dirty=self.snapshots.is_dirty)

        handlers: Dict[str, Callable[[Effects], None]] = {
            Trigger.COMMIT: self._commit,
            Trigger.UNDO: self._undo,
            Trigger.QUIT: self._quit,
        }
        handler = handlers.get(trigger)
        rules = self.engine.rules_for_trigger(trigger)
        if handler is None and not rules:
            logger.debug(f"DISPATCH: unknown trigger '{trigger}' ignored")
            return Effects(trigger=trigger, outcome=Outcome.IGNORED, dirty=self.snapshots.is_dirty)

        values = values or {}

        def step(effects: Effects) -> None:
            for field_id, value in values.items():
                self._fold(field_id, value, effects)
                if not effects.outcome.mutated:
                    return
            if handler is not None:
                handler(effects)
            else:
                self._apply_rules(rules, effects)

        return self._run(trigger, step)

    def update_value(self, field_id: str, value: Any) -> Effects:
        """Raw edit from the UI: fold into the current snapshot, fire change rules."""
        trigger = f"change:{field_id}"
        if not isinstance(field_id, str):
            logger.debug(f"update_value: ignoring non-string field id {field_id!r}")
            return Effects(trigger=trigger, outcome=Outcome.IGNORED, dirty=self.snapshots.is_dirty)
        if not self.is_open:
            return Effects(trigger=trigger, outcome=Outcome.IGNORED, dirty=self.snapshots.is_dirty)
        if not self.registry.holds_value(field_id):
            logger.debug(f"update_value: ignoring {field_id!r} (unknown or value-less)")
            return Effects(trigger=trigger, outcome=Outcome.IGNORED, dirty=self.snapshots.is_dirty)
        return self._run(trigger, lambda effects: self._fold(field_id, value, effects))

    # ==================== STEPS ====================

    def _fold(self, field_id: str, value: Any, effects: Effects) -> None:
        if not self.registry.holds_value(field_id):
            logger.debug(f"FOLD: ignoring {field_id!r} (unknown or value-less)")
            return
        if self.config.enforce_locks and self.locks.is_locked(field_id):
            logger.debug(f"FOLD: rejected edit to locked field {field_id!r}")
            effects.outcome = Outcome.REJECTED
            return
        if not self.snapshots.set_value(field_id, value):
            return
        logger.debug(f"FOLD: {field_id}={normalize_value(value)!r}")
        rules = self.engine.rules_for_change(field_id)
        if rules:
            self._apply_rules(rules, effects)

    def _apply_rules(self, rules, effects: Effects) -> None:
        plan = self.engine.plan(rules, self.snapshots.current.values, self.locks)
        if plan.blocked:
            effects.outcome = Outcome.BLOCKED
            return
        self.engine.apply(plan, self.locks, self.snapshots, self.form.resting_unlocked)
        if plan.focus is not None:
            effects.focus = plan.focus
        effects.notifications.extend(plan.notifications)
        effects.dialogs.extend(plan.dialogs)

    def _commit(self, effects: Effects) -> None:
        self._rest()
        self.snapshots.commit()
        self._last_committed_at = self._clock()
        effects.notifications.append(self.config.saved_message)
        logger.info(f"COMMIT: form={self.form.name!r} at={self._last_committed_at}")

    def _undo(self, effects: Effects) -> None:
        if not self.snapshots.is_dirty:
            effects.outcome = Outcome.NOTHING_TO_UNDO
            effects.notifications.append(self.config.nothing_to_undo_message)
            return

        prompt = self.config.undo_prompt
        answer = self._ask(prompt)
        effects.confirmation = ConfirmationRequest(prompt=prompt, answer=answer)
        if not answer:
            effects.outcome = Outcome.DECLINED
            return

        changed = self.snapshots.revert()
        self._rest()
        effects.notifications.append(self.config.reverted_message)
        logger.info(f"REVERT: form={self.form.name!r} fields={sorted(changed)}")

    def _quit(self, effects: Effects) -> None:
        if self.snapshots.is_dirty:
            prompt = self.config.quit_prompt
            answer = self._ask(prompt)
            effects.confirmation = ConfirmationRequest(prompt=prompt, answer=answer)
            if not answer:
                effects.outcome = Outcome.DECLINED
                return

        self._state = SessionState.ENDED
        effects.outcome = Outcome.ENDED
        effects.session_ended = True
        effects.notifications.append(self.config.quit_message)
        logger.info(f"QUIT: form={self.form.name!r}")
