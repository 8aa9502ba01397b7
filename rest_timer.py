"""
rest_timer.py — Countdown between sets.
Remaining time is worked out from a start timestamp rather than decremented,
so the timer keeps counting across Streamlit reruns.
"""

import time
from typing import Callable, Optional

from errors import ValidationError
from fitness_logic import format_time

PRESETS = {
    "30 s": 30,
    "1 min": 60,
    "2 min": 120,
    "3 min": 180,
    "5 min": 300,
}


class RestTimer:
    def __init__(self, seconds: int = 60, clock: Callable[[], float] = time.monotonic,
                 on_complete: Optional[Callable[[], None]] = None):
        if seconds <= 0:
            raise ValidationError("Rest time must be longer than zero")
        self.clock = clock
        self.on_complete = on_complete
        self.initial = seconds
        self._base = seconds            # remaining when last started/paused
        self._started_at: Optional[float] = None

    @property
    def remaining(self) -> int:
        if self._started_at is None:
            return self._base
        elapsed = int(self.clock() - self._started_at)
        return max(0, self._base - elapsed)

    @property
    def running(self) -> bool:
        return self._started_at is not None and self.remaining > 0

    def start(self):
        if self._started_at is not None or self._base <= 0:
            return
        self._started_at = self.clock()

    def pause(self):
        if self._started_at is None:
            return
        self._base = self.remaining
        self._started_at = None

    def reset(self):
        self._started_at = None
        self._base = self.initial

    def set_time(self, seconds: int):
        """Pick a preset or custom length; stops the timer."""
        if seconds <= 0:
            raise ValidationError("Rest time must be longer than zero")
        self.initial = seconds
        self.reset()

    def set_custom(self, minutes: int, seconds: int):
        self.set_time(minutes * 60 + seconds)

    def tick(self) -> int:
        """Poll once a second. Fires on_complete the moment time runs out."""
        remaining = self.remaining
        if self._started_at is not None and remaining == 0:
            self._started_at = None
            self._base = 0
            if self.on_complete:
                self.on_complete()
        return remaining

    @property
    def progress(self) -> float:
        return (self.initial - self.remaining) / self.initial * 100

    def display(self) -> str:
        return format_time(self.remaining)
