"""Shared pytest fixtures for the Smart Research Assistant test suite."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure src/ is on the path so all service imports resolve.
SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from services.session_machine import Mode, SessionStateMachine  # noqa: E402
from utils.scheduling import ManualScheduler  # noqa: E402


def make_words(count: int, prefix: str = "w") -> str:
    """Space-separated text of *count* distinct words."""
    return " ".join(f"{prefix}{i}" for i in range(count))


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def machine(scheduler) -> SessionStateMachine:
    """Fresh session whose processing delay fires only via scheduler.run_pending()."""
    return SessionStateMachine(scheduler=scheduler, processing_delay_s=0)


@pytest.fixture
def loaded_machine(machine, scheduler) -> SessionStateMachine:
    """Session in MAIN mode with a small plain-text document loaded."""
    machine.upload(b"AI is changing diagnostics and drug discovery.", mime_type="text/plain", file_name="notes.txt")
    scheduler.run_pending()
    assert machine.state.mode is Mode.MAIN
    return machine
