"""Deferred callbacks used for timed session transitions."""

from __future__ import annotations

from threading import Timer
from typing import Callable, Protocol


class ScheduledCall(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Runs a callback once after a delay given in seconds."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall: ...


class TimerScheduler:
    """Scheduler backed by daemon ``threading.Timer`` instances."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Timer:
        timer = Timer(delay, callback)
        timer.name = "QuizFeedbackTimer"
        timer.daemon = True
        timer.start()
        return timer
