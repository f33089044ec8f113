"""Minimal end-to-end self-check: drive one session through every mode."""

from __future__ import annotations

import sys
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from services.document_store import UnsupportedType
from services.question_answerer import Category
from services.session_machine import Mode, SessionStateMachine, challenge_results
from utils.scheduling import ManualScheduler


def check_upload_rejection(machine: SessionStateMachine) -> None:
    try:
        machine.upload(b"\x89PNG", mime_type="image/png", file_name="pic.png")
    except UnsupportedType:
        pass
    else:
        raise AssertionError("image/png upload was accepted")
    assert machine.state.mode is Mode.INITIAL, "rejected upload changed mode"


def check_pdf_upload(machine: SessionStateMachine, scheduler: ManualScheduler) -> None:
    machine.upload(b"%PDF-1.4", mime_type="application/pdf", file_name="paper.pdf")
    assert scheduler.run_pending() == 1, "expected exactly one processing completion"
    state = machine.state
    assert state.mode is Mode.MAIN, f"expected main, got {state.mode.value}"
    assert state.document is not None and state.document.is_placeholder, "PDF should use placeholder corpus"
    assert len(state.document.summary.split()) == 100, "summary should be capped at 100 words"


def check_ask_anything(machine: SessionStateMachine) -> None:
    machine.open_ask()
    machine.submit_question("What ethical concerns are highlighted?")
    machine.submit_question("   ")
    history = machine.state.history
    assert len(history) == 1, "blank question should be ignored"
    assert history[0].category is Category.ETHICS, f"unexpected category {history[0].category.value}"
    machine.back()


def check_challenge(machine: SessionStateMachine) -> None:
    machine.open_challenge()
    for answer in ("medical images", "no idea", "transparency"):
        machine.submit_challenge_answer(answer)
        machine.next_challenge()
    assert machine.state.mode is Mode.CHALLENGE_RESULTS
    correct, total = challenge_results(machine.state)
    assert (correct, total) == (2, 3), f"unexpected results {correct}/{total}"
    machine.back_to_main()


def main() -> int:
    scheduler = ManualScheduler()
    machine = SessionStateMachine(scheduler=scheduler, processing_delay_s=0)
    check_upload_rejection(machine)
    check_pdf_upload(machine, scheduler)
    check_ask_anything(machine)
    check_challenge(machine)
    machine.reset()
    assert machine.state.mode is Mode.INITIAL and machine.state.document is None
    print("self_check: OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
