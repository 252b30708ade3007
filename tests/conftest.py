"""Pytest configuration and shared fixtures."""
import pytest

from formlock import (
    COMMIT_CONTROL,
    ConditionalUnlock,
    Field,
    FieldKind,
    FormSession,
    TransitionRule,
    make_form,
    proposal_form,
)
import formlock.config as config_module


class RecordingUI:
    """Test double for the UI collaborator: records every capability call."""

    def __init__(self, answers=()):
        # Queued confirmation answers; True once exhausted
        self.answers = list(answers)
        self.prompts = []
        self.focused = []
        self.notifications = []
        self.dialogs = []

    def confirm(self, prompt):
        self.prompts.append(prompt)
        return self.answers.pop(0) if self.answers else True

    def notify(self, message):
        self.notifications.append(message)

    def focus(self, target):
        self.focused.append(target)

    def dialog(self, name):
        self.dialogs.append(name)

    def session(self, form, **kwargs):
        return FormSession(
            form,
            confirm=self.confirm,
            notify=self.notify,
            focus=self.focus,
            dialog=self.dialog,
            **kwargs,
        )


@pytest.fixture(autouse=True)
def reset_default_config():
    """Restore the module-level default config after each test."""
    original = config_module._default_form_config
    yield
    config_module._default_form_config = original


@pytest.fixture
def ui():
    """Recording UI that answers yes to every confirmation."""
    return RecordingUI()


@pytest.fixture
def small_form():
    """Two value fields A/B, a prefix field and a conditional control."""
    return make_form(
        name="Small",
        fields=[
            Field("A", FieldKind.TEXT),
            Field("B", FieldKind.DATE),
            Field("Prefix", FieldKind.CHOICE),
            Field("Special", FieldKind.ACTION),
        ],
        rules=[
            TransitionRule(
                name="unlock_a",
                trigger="unlock_a",
                unlock=("A",),
                focus="A",
                notification="A unlocked.",
            ),
            TransitionRule(
                name="a_set",
                on_change="A",
                lock=("A", "B"),
                focus=COMMIT_CONTROL,
            ),
            TransitionRule(
                name="unlock_b",
                trigger="unlock_b",
                unlock=("B",),
                focus="B",
            ),
        ],
        conditionals=[ConditionalUnlock("Special", "Prefix", "BCF")],
    )


@pytest.fixture
def form():
    """The proposal tracking form."""
    return proposal_form()


@pytest.fixture
def session(ui, form):
    """Proposal form session, opened with a non-BCF prefix."""
    s = ui.session(form)
    s.open({
        "Proposal_Prefix": "PRJ",
        "cmbInitiator": "Engineering",
        "Date_Entered": "2024-03-01",
        "Description": "Pole replacement",
    })
    return s


@pytest.fixture
def bcf_session(ui, form):
    """Proposal form session, opened with the BCF prefix."""
    s = ui.session(form)
    s.open({"Proposal_Prefix": "BCF", "Date_Entered": "2024-03-01"})
    return s
