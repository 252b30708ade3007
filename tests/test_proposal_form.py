"""Tests for the proposal tracking form's rule table."""
import pytest

from formlock import FormConfig, Outcome

from conftest import RecordingUI


def unlocked(session):
    return {fid for fid, locked in session.lock_states().items() if not locked}


class TestRestingState:

    def test_only_prefix_editable_for_non_bcf(self, session):
        assert unlocked(session) == {"Proposal_Prefix"}

    def test_bcf_number_enabled_for_bcf_prefix(self, bcf_session):
        assert unlocked(bcf_session) == {"Proposal_Prefix", "BCF_Number"}

    def test_prefix_change_reevaluates_immediately(self, session):
        """Changing the prefix re-evaluates the BCF number button at once."""
        effects = session.update_value("Proposal_Prefix", "BCF")
        assert effects.lock_changes == {"BCF_Number": False}
        assert session.is_locked("BCF_Number") is False

        session.update_value("Proposal_Prefix", "OTHER")
        assert session.is_locked("BCF_Number") is True

    def test_prefix_change_relocks_open_fields(self, session):
        session.dispatch("edit_description")
        session.update_value("Proposal_Prefix", "BCF")
        assert unlocked(session) == {"Proposal_Prefix", "BCF_Number"}

    def test_gain_focus_on_save_returns_to_rest(self, session):
        session.dispatch("answered")
        session.dispatch("unlock_utility")
        effects = session.dispatch("gain_focus_commit")
        assert effects.outcome is Outcome.APPLIED
        assert unlocked(session) == {"Proposal_Prefix"}

    def test_reopen_keeps_rendered_values(self, session):
        """Opening again without values saves what the form currently shows."""
        session.update_value("Proposal_Prefix", "BCF")
        effects = session.dispatch("open")
        assert effects.outcome is Outcome.APPLIED
        assert session.current_values()["Proposal_Prefix"] == "BCF"
        assert session.current_values()["Description"] == "Pole replacement"
        assert session.is_dirty() is False
        assert unlocked(session) == {"Proposal_Prefix", "BCF_Number"}


class TestCfesWorkflow:

    def test_answered_unlocks_cfes_date(self, session, ui):
        effects = session.dispatch("answered")
        assert effects.focus == "CFES_Date"
        assert effects.notification == "CFES Date unlocked."
        assert session.is_locked("CFES_Date") is False
        assert ui.notifications == ["CFES Date unlocked."]

    def test_cfes_date_set_relocks_and_focuses_save(self, session, ui):
        session.dispatch("answered")
        session.dispatch("unlock_utility")
        effects = session.update_value("CFES_Date", "2024-04-02")
        assert effects.focus == "Save"
        assert effects.notification == "CFES Date set."
        assert session.is_locked("CFES_Date") is True
        assert session.is_locked("Utility_Date") is True
        # Ameritech file number is not part of the CFES rule
        assert session.is_locked("Ameritech_File_Number") is False
        assert session.is_dirty() is True


class TestUtilityWorkflow:

    def test_unlock_utility_fields(self, session):
        effects = session.dispatch("unlock_utility")
        assert effects.focus == "Utility_Date"
        assert effects.notification == "Utility fields unlocked."
        assert {"Utility_Date", "Ameritech_File_Number"} <= unlocked(session)

    def test_ameritech_number_focuses_save_without_locking(self, session, ui):
        session.dispatch("unlock_utility")
        effects = session.update_value("Ameritech_File_Number", "AFN-7")
        assert effects.focus == "Save"
        assert effects.notifications == []
        assert session.is_locked("Ameritech_File_Number") is False


class TestBcfWorkflow:

    def test_bcf_button_blocked_when_prefix_not_bcf(self, session, ui):
        effects = session.dispatch("bcf_number")
        assert effects.outcome is Outcome.BLOCKED
        assert session.is_locked("Proposal_Number") is True
        assert ui.notifications == []

    def test_bcf_button_unlocks_proposal_fields(self, bcf_session):
        effects = bcf_session.dispatch("bcf_number")
        assert effects.outcome is Outcome.APPLIED
        assert effects.focus == "Proposal_Number"
        assert effects.notification == "Proposal fields unlocked."
        assert {"Proposal_Number", "Temp_ID"} <= unlocked(bcf_session)

    def test_proposal_number_fills_temp_id_for_bcf(self, bcf_session, ui):
        bcf_session.dispatch("bcf_number")
        effects = bcf_session.update_value("Proposal_Number", "1042")
        assert effects.value_changes == {"Proposal_Number": "1042", "Temp_ID": "N/A"}
        assert effects.focus == "Save"
        assert ui.focused[-1] == "Save"

    def test_proposal_number_leaves_temp_id_for_other_prefix(self, form):
        ui = RecordingUI()
        s = ui.session(form, config=FormConfig(enforce_locks=False))
        s.open({"Proposal_Prefix": "PRJ", "Temp_ID": "T-9"})
        effects = s.update_value("Proposal_Number", "77")
        assert effects.value_changes == {"Proposal_Number": "77"}
        assert effects.focus is None
        assert s.current_values()["Temp_ID"] == "T-9"


class TestCompletionWorkflow:

    def test_completion_unlocks_and_requests_dialog(self, session, ui):
        effects = session.dispatch("completion")
        assert effects.dialogs == ["dateCompletedDialog"]
        assert ui.dialogs == ["dateCompletedDialog"]
        assert effects.notification == "Completion fields unlocked."
        assert {"Combo9", "Date_Completed"} <= unlocked(session)

    def test_date_completed_relocks_both(self, session):
        session.dispatch("completion")
        session.update_value("Combo9", "J. Rivera")
        effects = session.update_value("Date_Completed", "2024-06-30")
        assert effects.focus == "Save"
        assert effects.notification == "Completion date set."
        assert session.is_locked("Combo9") is True
        assert session.is_locked("Date_Completed") is True


class TestDescriptionWorkflow:

    def test_edit_then_update_description(self, session):
        effects = session.dispatch("edit_description")
        assert effects.focus == "Description"
        assert effects.notification == "Description unlocked."

        effects = session.update_value("Description", "Pole replacement, phase 2")
        assert effects.focus == "Save"
        assert effects.notification == "Description updated."
        assert session.is_locked("Description") is True


def test_help_notification(session, ui):
    effects = session.dispatch("help")
    assert effects.notification == "Help: Use the action buttons to unlock fields, then click Save."
    assert effects.lock_changes == {}


def test_full_session_save_then_undo(session, ui):
    """Edit, save, edit again, undo: back to the saved (not the opened) values."""
    session.dispatch("edit_description")
    session.update_value("Description", "Saved text")
    session.dispatch("commit")
    assert session.is_dirty() is False
    assert unlocked(session) == {"Proposal_Prefix"}

    session.dispatch("edit_description")
    session.update_value("Description", "Unsaved text")
    effects = session.dispatch("undo")
    assert effects.outcome is Outcome.APPLIED
    assert session.current_values()["Description"] == "Saved text"
    assert session.is_dirty() is False


@pytest.mark.parametrize("trigger", ["answered", "unlock_utility", "completion", "edit_description"])
def test_commit_after_any_unlock_rests(session, trigger):
    session.dispatch(trigger)
    session.dispatch("commit")
    assert unlocked(session) == {"Proposal_Prefix"}
