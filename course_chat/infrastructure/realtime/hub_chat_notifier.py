# course_chat/infrastructure/realtime/hub_chat_notifier.py
from __future__ import annotations

from course_chat.core.interfaces.chat_notifier import (
    ChatNotifier,
    MessagesChangedEvent,
    PresenceChangedEvent,
    TypingChangedEvent,
)
from course_chat.infrastructure.realtime.subscription_hub import (
    PRESENCE_TOPIC,
    SubscriptionHub,
    messages_topic,
    typing_topic,
)


class HubChatNotifier(ChatNotifier):
    """Turns change events into snapshot pushes for every live subscription."""

    def __init__(self, hub: SubscriptionHub) -> None:
        self._hub = hub

    def notify_messages_changed(self, event: MessagesChangedEvent) -> None:
        self._hub.publish(messages_topic(event.channel_code))

    def notify_typing_changed(self, event: TypingChangedEvent) -> None:
        self._hub.publish(typing_topic(event.channel_code))

    def notify_presence_changed(self, event: PresenceChangedEvent) -> None:
        self._hub.publish(PRESENCE_TOPIC)
