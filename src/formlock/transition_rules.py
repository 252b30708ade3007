"""
Declarative transition rules.

A TransitionRule is pure data: which trigger (or which field's value change)
it answers to, an optional guard, and the lock/value/focus/notification deltas
it produces. Adding a new user action to a form means adding a rule, not new
control flow.

Session-level triggers (open, commit, undo, quit) are not table rules; the
session controller owns them because they involve the saved snapshot and
confirmation gates.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

# Reserved focus target: resolved to the configured commit control at plan time
COMMIT_CONTROL = "@commit"


class Trigger:
    """Names of the session-level triggers."""
    OPEN = "open"
    COMMIT = "commit"
    UNDO = "undo"
    QUIT = "quit"

    ALL = (OPEN, COMMIT, UNDO, QUIT)


@dataclass(frozen=True)
class ValueRule:
    """Derived default: when `when_field == equals`, set `target := value`.

    The condition is checked against current values after the triggering
    edit has been folded in.
    """
    when_field: str
    equals: str
    target: str
    value: str
    # Focus transfer that only happens when the condition holds
    focus: Optional[str] = None


@dataclass(frozen=True)
class TransitionRule:
    """One row of the trigger -> effect table.

    Exactly one of `trigger` / `on_change` is set:
    - trigger: named user action (button click, focus gain)
    - on_change: field id whose committed value change fires the rule
    """
    name: str
    trigger: Optional[str] = None
    on_change: Optional[str] = None

    # Guard: every listed field must be unlocked for the rule to apply
    requires_unlocked: Tuple[str, ...] = ()

    unlock: Tuple[str, ...] = ()
    lock: Tuple[str, ...] = ()
    # Return to the resting lock configuration (runs after unlock/lock deltas)
    lock_all: bool = False

    value_rule: Optional[ValueRule] = None

    focus: Optional[str] = None
    notification: Optional[str] = None
    # External side dialog to open (out of core)
    dialog: Optional[str] = None

    def __post_init__(self):
        if (self.trigger is None) == (self.on_change is None):
            raise ValueError(f"Rule {self.name!r} needs exactly one of trigger / on_change")
        if self.trigger in Trigger.ALL:
            raise ValueError(f"Rule {self.name!r} uses reserved session trigger {self.trigger!r}")
        overlap = set(self.unlock) & set(self.lock)
        if overlap:
            raise ValueError(f"Rule {self.name!r} both locks and unlocks {sorted(overlap)}")
