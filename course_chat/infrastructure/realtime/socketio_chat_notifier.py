# course_chat/infrastructure/realtime/socketio_chat_notifier.py
from __future__ import annotations

from course_chat.core.interfaces.chat_notifier import MessagesChangedEvent, PresenceChangedEvent
from course_chat.infrastructure.realtime.hub_chat_notifier import HubChatNotifier
from course_chat.infrastructure.realtime.socketio_server import socketio


class SocketIOChatNotifier(HubChatNotifier):
    """Hub pushes plus lightweight broadcasts for screens without an open channel."""

    def notify_messages_changed(self, event: MessagesChangedEvent) -> None:
        super().notify_messages_changed(event)

        payload = {
            "channel": event.channel_code,
            "change": event.change_kind,
            "message_ids": list(event.message_ids),
            "actor_id": event.actor_id,
        }
        if event.preview is not None:
            payload["preview"] = event.preview

        # ✅ global: channel list badges/previews don't join channel rooms
        socketio.emit("channel:activity", payload)

    def notify_presence_changed(self, event: PresenceChangedEvent) -> None:
        super().notify_presence_changed(event)
        socketio.emit("presence:changed", {"user_id": event.user_id, "is_online": event.is_online})
