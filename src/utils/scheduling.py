"""
Delayed-callback scheduling used for the simulated processing delay.
"""

from __future__ import annotations

import threading
from typing import Callable, Protocol


class ScheduledHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay_s: float, callback: Callable[[], None]) -> ScheduledHandle: ...


class ThreadingScheduler:
    """Runs callbacks on a daemon ``threading.Timer``."""

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(max(0.0, float(delay_s)), callback)
        timer.daemon = True
        timer.start()
        return timer


class _PendingCall:
    def __init__(self, delay_s: float, callback: Callable[[], None]) -> None:
        self.delay_s = delay_s
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """
    Collects callbacks and runs them only when ``run_pending`` is called.

    Used by tests and the self-check script to fire completions at a
    deterministic point.
    """

    def __init__(self) -> None:
        self.calls: list[_PendingCall] = []

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> _PendingCall:
        call = _PendingCall(delay_s, callback)
        self.calls.append(call)
        return call

    @property
    def pending(self) -> list[_PendingCall]:
        return [c for c in self.calls if not c.cancelled]

    def run_pending(self) -> int:
        """Fire every non-cancelled call once. Returns the number fired."""
        due = self.pending
        self.calls = []
        for call in due:
            call.callback()
        return len(due)
