# course_chat/core/interfaces/chat_notifier.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class MessagesChangedEvent:
    channel_code: str
    change_kind: str  # "created" | "edited" | "deleted" | "read" | "reaction" | "delivered"
    message_ids: tuple[int, ...] = ()
    actor_id: str | None = None

    # only filled on "created", for channel list previews
    preview: dict[str, Any] | None = None


@dataclass(frozen=True)
class TypingChangedEvent:
    channel_code: str
    user_id: str
    is_typing: bool


@dataclass(frozen=True)
class PresenceChangedEvent:
    user_id: str
    is_online: bool


class ChatNotifier(Protocol):
    def notify_messages_changed(self, event: MessagesChangedEvent) -> None:
        ...

    def notify_typing_changed(self, event: TypingChangedEvent) -> None:
        ...

    def notify_presence_changed(self, event: PresenceChangedEvent) -> None:
        ...
