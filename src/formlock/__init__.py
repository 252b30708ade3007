"""
Field lock-state workflow engine for data-entry forms.

Fields start locked. Named user actions unlock specific fields, edits are
tracked against the last committed snapshot, and the user can commit (save)
or revert (undo) at any time.

Key Features:
- Fixed field registry; unknown ids are ignored, never fatal
- Per-field lock state with a resting "all locked" configuration and
  value-dependent conditional unlocks
- Declarative trigger table (TransitionRule): a new action is a data change
- Saved/current snapshots with structural dirty detection
- Atomic dispatch: every action applies completely or not at all
- Injected UI capabilities (confirm, notify, focus, dialog)

Quick Start:
    >>> from formlock import FormSession, proposal_form
    >>>
    >>> session = FormSession(proposal_form(), confirm=lambda prompt: True)
    >>> _ = session.open({"Proposal_Prefix": "BCF"})
    >>> session.is_locked("BCF_Number")
    False
    >>> session.dispatch("bcf_number").focus
    'Proposal_Number'
    >>> session.update_value("Proposal_Number", "1042").value_changes
    {'Proposal_Number': '1042', 'Temp_ID': 'N/A'}
    >>> session.dispatch("commit").dirty
    False

Modules:
    - field_registry: Field catalog
    - lock_state: Lock-state store and conditional unlocks
    - snapshot_model: Immutable snapshots, saved/current store
    - transition_rules: Rule dataclasses and session trigger names
    - transition_engine: Rule lookup, guards, planning and application
    - effects: Side-effect descriptor returned by every dispatch
    - session: FormSession controller
    - forms: Form definitions (proposal tracking form)
    - notifications: Toast notification sink
    - config: Messages, prompts and switches
"""

# Registry and stores
from formlock.field_registry import Field, FieldKind, FieldRegistry
from formlock.lock_state import ConditionalUnlock, LockStateStore
from formlock.snapshot_model import Snapshot, SnapshotStore

# Rules and engine
from formlock.transition_rules import COMMIT_CONTROL, Trigger, TransitionRule, ValueRule
from formlock.transition_engine import Plan, TransitionEngine

# Session
from formlock.effects import ConfirmationRequest, Effects, Outcome
from formlock.session import FormSession, SessionState

# Forms
from formlock.forms import FormDefinition, make_form, proposal_form

# Notifications
from formlock.notifications import ToastNotifier

# Configuration
from formlock.config import (
    FormConfig,
    set_default_form_config,
    get_default_form_config,
    reset_default_form_config,
)

__all__ = [
    # Registry and stores
    'Field',
    'FieldKind',
    'FieldRegistry',
    'ConditionalUnlock',
    'LockStateStore',
    'Snapshot',
    'SnapshotStore',
    # Rules and engine
    'COMMIT_CONTROL',
    'Trigger',
    'TransitionRule',
    'ValueRule',
    'Plan',
    'TransitionEngine',
    # Session
    'ConfirmationRequest',
    'Effects',
    'Outcome',
    'FormSession',
    'SessionState',
    # Forms
    'FormDefinition',
    'make_form',
    'proposal_form',
    # Notifications
    'ToastNotifier',
    # Configuration
    'FormConfig',
    'set_default_form_config',
    'get_default_form_config',
    'reset_default_form_config',
]

__version__ = '1.0.0'
__description__ = 'Field lock-state workflow engine for data-entry forms'
