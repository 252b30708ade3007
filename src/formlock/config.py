"""
Form session configuration.

FormConfig carries the user-facing strings and the few behavioral switches a
session needs. A process-wide default can be installed once at startup; a
session uses its explicit config if given, else the default.
"""
from dataclasses import dataclass, replace
from typing import Any, Optional


@dataclass(frozen=True)
class FormConfig:
    """Messages, prompts and switches for a FormSession."""
    # Control that receives focus after a field is confirmed
    commit_control: str = "Save"

    # Reject raw edits to locked fields
    enforce_locks: bool = True

    # Seconds a toast stays visible
    toast_duration: float = 3.2

    undo_prompt: str = "Undo changes? (Revert to last saved state)"
    quit_prompt: str = "You have unsaved changes. Quit anyway?"

    saved_message: str = "Saved."
    reverted_message: str = "Reverted to last saved state."
    nothing_to_undo_message: str = "Nothing to undo."
    quit_message: str = "Quit."

    def with_overrides(self, **overrides: Any) -> 'FormConfig':
        return replace(self, **overrides)


_default_form_config: Optional[FormConfig] = None


def set_default_form_config(config: FormConfig) -> None:
    """Install the process-wide default config.

    Called at app startup, or by tests that need different messages.
    """
    global _default_form_config
    if not isinstance(config, FormConfig):
        raise TypeError(f"Expected FormConfig, got {type(config).__name__}")
    _default_form_config = config


def get_default_form_config() -> FormConfig:
    """Get the default config, creating the built-in one on first use."""
    global _default_form_config
    if _default_form_config is None:
        _default_form_config = FormConfig()
    return _default_form_config


def reset_default_form_config() -> None:
    global _default_form_config
    _default_form_config = None
