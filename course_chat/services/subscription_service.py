# course_chat/services/subscription_service.py
from __future__ import annotations

from typing import Callable

from course_chat.core.channels import normalize_channel_code
from course_chat.entities.chat import ChatMessage, PresenceFilter, TypingIndicator
from course_chat.infrastructure.database.session import SessionScope
from course_chat.infrastructure.realtime.subscription_hub import (
    PRESENCE_TOPIC,
    Subscription,
    SubscriptionHub,
    messages_topic,
    typing_topic,
)
from course_chat.services.service_factory import ServiceFactory


class SubscriptionService:
    """Live subscriptions: initial snapshot immediately, then a full
    reconstructed snapshot on every change until `cancel()`."""

    def __init__(self, *, hub: SubscriptionHub, session_scope: SessionScope, factory: ServiceFactory) -> None:
        self._hub = hub
        self._session_scope = session_scope
        self._factory = factory

    def subscribe_messages(
        self,
        *,
        channel_code: str,
        on_update: Callable[[list[ChatMessage]], None],
    ) -> Subscription:
        channel_code = normalize_channel_code(channel_code)

        def load() -> list[ChatMessage]:
            with self._session_scope() as session:
                return self._factory.messages(session).list_messages(channel_code=channel_code)

        return self._hub.subscribe(messages_topic(channel_code), loader=load, callback=on_update, empty=list)

    def subscribe_typing(
        self,
        *,
        channel_code: str,
        exclude_user_id: str | None,
        on_update: Callable[[list[TypingIndicator]], None],
    ) -> Subscription:
        channel_code = normalize_channel_code(channel_code)

        def load() -> list[TypingIndicator]:
            with self._session_scope() as session:
                return self._factory.typing(session).active_typers(
                    channel_code=channel_code,
                    exclude_user_id=exclude_user_id,
                )

        return self._hub.subscribe(typing_topic(channel_code), loader=load, callback=on_update, empty=list)

    def subscribe_online_count(
        self,
        *,
        presence_filter: PresenceFilter | None,
        on_update: Callable[[int], None],
    ) -> Subscription:
        f = presence_filter or PresenceFilter()

        def load() -> int:
            with self._session_scope() as session:
                return self._factory.presence(session).count_online(presence_filter=f)

        return self._hub.subscribe(PRESENCE_TOPIC, loader=load, callback=on_update, empty=int)
