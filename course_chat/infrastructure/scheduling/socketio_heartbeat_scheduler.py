# course_chat/infrastructure/scheduling/socketio_heartbeat_scheduler.py
from __future__ import annotations

import logging
from typing import Callable

from flask_socketio import SocketIO

from course_chat.core.interfaces.heartbeat_scheduler import HeartbeatScheduler, ScheduledTask

logger = logging.getLogger(__name__)

# upper bound on how long a cancelled loop keeps its green thread
_POLL_SECONDS = 1.0


class _BackgroundTask(ScheduledTask):
    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class SocketIOHeartbeatScheduler(HeartbeatScheduler):
    """Recurring tasks on the Socket.IO async backend (eventlet green threads)."""

    def __init__(self, server: SocketIO) -> None:
        self._server = server

    def every(self, interval_seconds: float, fn: Callable[[], None]) -> ScheduledTask:
        task = _BackgroundTask()

        def _loop() -> None:
            while True:
                waited = 0.0
                while waited < interval_seconds:
                    step = min(_POLL_SECONDS, interval_seconds - waited)
                    self._server.sleep(step)
                    waited += step
                    if task.cancelled:
                        return
                try:
                    fn()
                except Exception as e:
                    logger.warning("recurring task failed: %s", e)

        self._server.start_background_task(_loop)
        return task
