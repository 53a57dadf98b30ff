# course_chat/infrastructure/realtime/after_commit_notifier.py
from __future__ import annotations

import logging
from typing import Callable

from sqlalchemy import event as sa_event
from sqlalchemy.orm import Session

from course_chat.core.interfaces.chat_notifier import (
    ChatNotifier,
    MessagesChangedEvent,
    PresenceChangedEvent,
    TypingChangedEvent,
)

logger = logging.getLogger(__name__)


class AfterCommitNotifier(ChatNotifier):
    """Holds events until `session` commits.

    Subscribers reload snapshots through their own sessions, so publishing
    before commit would push stale data. Rolled back events are dropped.
    """

    def __init__(self, session: Session, inner: ChatNotifier) -> None:
        self._session = session
        self._inner = inner
        self._pending: list[Callable[[], None]] = []
        sa_event.listen(session, "after_commit", self._flush)
        sa_event.listen(session, "after_rollback", self._discard)

    def _flush(self, _session: Session) -> None:
        pending, self._pending = self._pending, []
        # the data is already committed; a failing push must not reach commit()
        for send in pending:
            try:
                send()
            except Exception:
                logger.exception("change notification failed after commit")

    def _discard(self, _session: Session) -> None:
        self._pending = []

    def notify_messages_changed(self, event: MessagesChangedEvent) -> None:
        self._pending.append(lambda: self._inner.notify_messages_changed(event))

    def notify_typing_changed(self, event: TypingChangedEvent) -> None:
        self._pending.append(lambda: self._inner.notify_typing_changed(event))

    def notify_presence_changed(self, event: PresenceChangedEvent) -> None:
        self._pending.append(lambda: self._inner.notify_presence_changed(event))
