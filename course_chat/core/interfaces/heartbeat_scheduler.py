# course_chat/core/interfaces/heartbeat_scheduler.py
from __future__ import annotations

from typing import Callable, Protocol


class ScheduledTask(Protocol):
    def cancel(self) -> None:
        ...

    @property
    def cancelled(self) -> bool:
        ...


class HeartbeatScheduler(Protocol):
    def every(self, interval_seconds: float, fn: Callable[[], None]) -> ScheduledTask:
        """Runs `fn` every `interval_seconds` until the returned task is cancelled."""
        ...
