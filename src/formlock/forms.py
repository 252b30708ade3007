"""
Form definitions: registry + rule table + resting configuration.

A FormDefinition is everything that differs between two lock-state forms.
Sessions are generic; the proposal-tracking form below is one definition.
"""
from dataclasses import dataclass
import logging
from typing import Iterable, Tuple

from formlock.field_registry import Field, FieldKind, FieldRegistry
from formlock.lock_state import ConditionalUnlock
from formlock.transition_rules import COMMIT_CONTROL, TransitionRule, ValueRule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormDefinition:
    """Static description of one form.

    Attributes:
        name: Display name (the form pill in the header).
        registry: Field catalog.
        rules: Trigger table.
        conditionals: Controls whose resting lock state depends on a value.
        resting_unlocked: Fields that stay editable in the resting state.
    """
    name: str
    registry: FieldRegistry
    rules: Tuple[TransitionRule, ...] = ()
    conditionals: Tuple[ConditionalUnlock, ...] = ()
    resting_unlocked: Tuple[str, ...] = ()

    def __post_init__(self):
        # Accept any iterable, store tuples
        object.__setattr__(self, 'rules', tuple(self.rules))
        object.__setattr__(self, 'conditionals', tuple(self.conditionals))
        object.__setattr__(self, 'resting_unlocked', tuple(self.resting_unlocked))
        for fid in self.unknown_references():
            logger.debug(f"Form {self.name!r} references unknown field {fid!r}; it will be ignored")

    def unknown_references(self) -> Tuple[str, ...]:
        """Field ids mentioned by rules/conditionals but absent from the registry."""
        mentioned = list(self.resting_unlocked)
        for rule in self.rules:
            mentioned.extend(rule.unlock)
            mentioned.extend(rule.lock)
            mentioned.extend(rule.requires_unlocked)
            if rule.on_change:
                mentioned.append(rule.on_change)
            if rule.value_rule:
                mentioned.extend((rule.value_rule.when_field, rule.value_rule.target))
        for cond in self.conditionals:
            mentioned.extend((cond.control, cond.prefix_field))
        seen = []
        for fid in mentioned:
            if fid not in self.registry and fid not in seen:
                seen.append(fid)
        return tuple(seen)


def make_form(
    name: str,
    fields: Iterable[Field],
    rules: Iterable[TransitionRule] = (),
    conditionals: Iterable[ConditionalUnlock] = (),
    resting_unlocked: Iterable[str] = (),
) -> FormDefinition:
    return FormDefinition(
        name=name,
        registry=FieldRegistry(fields),
        rules=tuple(rules),
        conditionals=tuple(conditionals),
        resting_unlocked=tuple(resting_unlocked),
    )


# ==================== PROPOSAL TRACKING FORM ====================

BCF_PREFIX = "BCF"
TEMP_ID_PLACEHOLDER = "N/A"

PROPOSAL_FIELDS = (
    Field("Proposal_Prefix", FieldKind.CHOICE, "Prefix"),
    Field("cmbInitiator", FieldKind.CHOICE, "Initiator"),
    Field("Combo37", FieldKind.CHOICE, "Type"),
    Field("Proposal_Number", FieldKind.TEXT, "Proposal Number"),
    Field("Temp_ID", FieldKind.TEXT, "Temp ID"),
    Field("Date_Entered", FieldKind.DATE, "Date Entered"),
    Field("CFES_Date", FieldKind.DATE, "CFES Date"),
    Field("Utility_Date", FieldKind.DATE, "Utility Date"),
    Field("Ameritech_File_Number", FieldKind.TEXT, "Ameritech File Number"),
    Field("Combo9", FieldKind.CHOICE, "Completed By"),
    Field("Date_Completed", FieldKind.DATE, "Date Completed"),
    Field("Description", FieldKind.TEXT, "Description"),
    Field("BCF_Number", FieldKind.ACTION, "BCF Number"),
)

PROPOSAL_RULES = (
    TransitionRule(
        name="answered",
        trigger="answered",
        unlock=("CFES_Date",),
        focus="CFES_Date",
        notification="CFES Date unlocked.",
    ),
    TransitionRule(
        name="cfes_date_set",
        on_change="CFES_Date",
        lock=("CFES_Date", "Utility_Date"),
        focus=COMMIT_CONTROL,
        notification="CFES Date set.",
    ),
    TransitionRule(
        name="unlock_utility",
        trigger="unlock_utility",
        unlock=("Utility_Date", "Ameritech_File_Number"),
        focus="Utility_Date",
        notification="Utility fields unlocked.",
    ),
    TransitionRule(
        name="ameritech_file_number_set",
        on_change="Ameritech_File_Number",
        focus=COMMIT_CONTROL,
    ),
    TransitionRule(
        name="bcf_number",
        trigger="bcf_number",
        requires_unlocked=("BCF_Number",),
        unlock=("Proposal_Number", "Temp_ID"),
        focus="Proposal_Number",
        notification="Proposal fields unlocked.",
    ),
    TransitionRule(
        name="proposal_number_set",
        on_change="Proposal_Number",
        value_rule=ValueRule(
            when_field="Proposal_Prefix",
            equals=BCF_PREFIX,
            target="Temp_ID",
            value=TEMP_ID_PLACEHOLDER,
            focus=COMMIT_CONTROL,
        ),
    ),
    TransitionRule(
        name="completion",
        trigger="completion",
        unlock=("Combo9", "Date_Completed"),
        dialog="dateCompletedDialog",
        notification="Completion fields unlocked.",
    ),
    TransitionRule(
        name="date_completed_set",
        on_change="Date_Completed",
        lock=("Combo9", "Date_Completed"),
        focus=COMMIT_CONTROL,
        notification="Completion date set.",
    ),
    TransitionRule(
        name="edit_description",
        trigger="edit_description",
        unlock=("Description",),
        focus="Description",
        notification="Description unlocked.",
    ),
    TransitionRule(
        name="description_set",
        on_change="Description",
        lock=("Description",),
        focus=COMMIT_CONTROL,
        notification="Description updated.",
    ),
    TransitionRule(
        name="gain_focus_commit",
        trigger="gain_focus_commit",
        lock_all=True,
    ),
    TransitionRule(
        name="prefix_changed",
        on_change="Proposal_Prefix",
        lock_all=True,
    ),
    TransitionRule(
        name="help",
        trigger="help",
        notification="Help: Use the action buttons to unlock fields, then click Save.",
    ),
)


def proposal_form() -> FormDefinition:
    """The proposal tracking form: BCF number button enabled only for BCF proposals."""
    return make_form(
        name="Proposal Tracking",
        fields=PROPOSAL_FIELDS,
        rules=PROPOSAL_RULES,
        conditionals=(ConditionalUnlock("BCF_Number", "Proposal_Prefix", BCF_PREFIX),),
        resting_unlocked=("Proposal_Prefix",),
    )
