"""
Side-effect descriptor returned by every FormSession call.

The core never touches a rendering surface. Instead each dispatch reports what
the UI collaborator should do (focus, toasts, dialogs) and what happened to
the session (lock/value deltas, dirty flag, outcome).
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class Outcome(Enum):
    """Terminal outcome of a single dispatch."""
    APPLIED = "applied"
    # Confirmation was asked and declined; nothing changed
    DECLINED = "declined"
    NOTHING_TO_UNDO = "nothing_to_undo"
    # A rule guard failed (e.g. the control is locked)
    BLOCKED = "blocked"
    # Raw edit to a locked field
    REJECTED = "rejected"
    # Unknown trigger / field, or session not open
    IGNORED = "ignored"
    ENDED = "ended"
    # Unexpected error; session rolled back
    FAILED = "failed"

    @property
    def mutated(self) -> bool:
        return self in (Outcome.APPLIED, Outcome.ENDED)


@dataclass(frozen=True)
class ConfirmationRequest:
    """A yes/no gate that was put to the confirmation provider."""
    prompt: str
    answer: bool


@dataclass
class Effects:
    """What one dispatch did and what the UI should do next."""
    trigger: str
    outcome: Outcome = Outcome.APPLIED
    focus: Optional[str] = None
    notifications: List[str] = field(default_factory=list)
    confirmation: Optional[ConfirmationRequest] = None
    dialogs: List[str] = field(default_factory=list)
    lock_changes: Dict[str, bool] = field(default_factory=dict)
    value_changes: Dict[str, str] = field(default_factory=dict)
    dirty: bool = False
    session_ended: bool = False
    error: Optional[str] = None

    @property
    def notification(self) -> Optional[str]:
        """Last notification, the one a single toast would show."""
        return self.notifications[-1] if self.notifications else None
