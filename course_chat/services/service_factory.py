# course_chat/services/service_factory.py
from __future__ import annotations

from sqlalchemy.orm import Session

from course_chat.config.settings import Settings
from course_chat.core.clock import Clock
from course_chat.core.interfaces.chat_notifier import ChatNotifier
from course_chat.infrastructure.realtime.after_commit_notifier import AfterCommitNotifier
from course_chat.repositories.channel_repository import ChannelRepository
from course_chat.repositories.message_reaction_repository import MessageReactionRepository
from course_chat.repositories.message_read_repository import MessageReadRepository
from course_chat.repositories.message_repository import MessageRepository
from course_chat.repositories.typing_indicator_repository import TypingIndicatorRepository
from course_chat.repositories.user_presence_repository import UserPresenceRepository
from course_chat.services.message_service import MessageService
from course_chat.services.presence_service import PresenceService
from course_chat.services.receipt_service import ReceiptService
from course_chat.services.typing_service import TypingService
from course_chat.services.unread_service import UnreadService


class ServiceFactory:
    """Centralizes building session-bound services, so routes, sockets and
    subscriptions wire them the same way."""

    def __init__(self, *, notifier: ChatNotifier, clock: Clock, settings: Settings) -> None:
        self._notifier = notifier
        self._clock = clock
        self._settings = settings

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def notifier(self) -> ChatNotifier:
        return self._notifier

    @property
    def settings(self) -> Settings:
        return self._settings

    def _notifier_for(self, session: Session) -> ChatNotifier:
        return AfterCommitNotifier(session, self._notifier)

    def messages(self, session: Session) -> MessageService:
        return MessageService(
            channel_repo=ChannelRepository(session),
            msg_repo=MessageRepository(session),
            read_repo=MessageReadRepository(session),
            reaction_repo=MessageReactionRepository(session),
            typing_repo=TypingIndicatorRepository(session),
            notifier=self._notifier_for(session),
            clock=self._clock,
            max_message_length=self._settings.max_message_length,
        )

    def receipts(self, session: Session) -> ReceiptService:
        return ReceiptService(
            msg_repo=MessageRepository(session),
            read_repo=MessageReadRepository(session),
            reaction_repo=MessageReactionRepository(session),
            notifier=self._notifier_for(session),
            clock=self._clock,
        )

    def typing(self, session: Session) -> TypingService:
        return TypingService(
            typing_repo=TypingIndicatorRepository(session),
            notifier=self._notifier_for(session),
            clock=self._clock,
            ttl_seconds=self._settings.typing_ttl_seconds,
        )

    def presence(self, session: Session) -> PresenceService:
        return PresenceService(
            presence_repo=UserPresenceRepository(session),
            notifier=self._notifier_for(session),
            clock=self._clock,
            stale_seconds=self._settings.presence_stale_seconds,
        )

    def unread(self, session: Session) -> UnreadService:
        return UnreadService(MessageReadRepository(session))
