"""
Console walkthrough of the proposal tracking form.

Plays a short editing session against FormSession with console-backed UI
capabilities, printing what a real form would render after each action.
"""

import logging

from formlock import FormConfig, FormSession, ToastNotifier, proposal_form


def console_confirm(prompt: str) -> bool:
    answer = input(f"{prompt} [y/N] ")
    return answer.strip().lower() in ("y", "yes")


def show(session: FormSession, label: str, effects) -> None:
    unlocked = [fid for fid, locked in session.lock_states().items() if not locked]
    print(f"\n== {label}: {effects.outcome.value}")
    print(f"   unlocked: {', '.join(unlocked) or '-'}")
    print(f"   dirty:    {'Yes' if effects.dirty else 'No'}")
    if effects.focus:
        print(f"   focus:    {effects.focus}")
    for message in effects.notifications:
        print(f"   toast:    {message}")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s %(message)s")

    config = FormConfig(toast_duration=5.0)
    toast = ToastNotifier(duration=config.toast_duration)
    session = FormSession(
        proposal_form(),
        config=config,
        confirm=console_confirm,
        notify=toast,
        dialog=lambda name: print(f"   [dialog {name} opened]"),
    )

    show(session, "open", session.open({
        "Proposal_Prefix": "BCF",
        "cmbInitiator": "Engineering",
        "Date_Entered": "2024-03-01",
    }))
    show(session, "BCF Number", session.dispatch("bcf_number"))
    show(session, "Proposal_Number=1042", session.update_value("Proposal_Number", "1042"))
    show(session, "Save got focus", session.dispatch("gain_focus_commit"))
    show(session, "Save", session.dispatch("commit"))
    show(session, "Completion", session.dispatch("completion"))
    show(session, "Date_Completed", session.update_value("Date_Completed", "2024-06-30"))
    show(session, "Undo", session.dispatch("undo"))
    show(session, "Quit", session.dispatch("quit"))


if __name__ == "__main__":
    main()
