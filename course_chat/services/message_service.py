# course_chat/services/message_service.py

from __future__ import annotations

from datetime import datetime

from course_chat.core.channels import normalize_channel_code
from course_chat.core.clock import Clock
from course_chat.core.exceptions import NotFoundError, PermissionDeniedError, UnauthenticatedError, ValidationError
from course_chat.core.freshness import as_utc
from course_chat.core.interfaces.chat_notifier import ChatNotifier, MessagesChangedEvent, TypingChangedEvent
from course_chat.entities.chat import (
    ChannelPreview,
    ChannelStats,
    ChatMessage,
    DeliveryStatus,
    MessageType,
    ReplyRef,
)
from course_chat.entities.user import Role, UserProfile
from course_chat.infrastructure.database.models.channel_model import ChannelModel
from course_chat.infrastructure.database.models.message_model import MessageModel
from course_chat.repositories.channel_repository import ChannelRepository
from course_chat.repositories.message_reaction_repository import MessageReactionRepository
from course_chat.repositories.message_read_repository import MessageReadRepository
from course_chat.repositories.message_repository import MessageRepository
from course_chat.repositories.typing_indicator_repository import TypingIndicatorRepository


def to_chat_message(
    msg: MessageModel,
    readers: set[str] | None = None,
    reactions: dict[str, set[str]] | None = None,
) -> ChatMessage:
    reply = None
    if msg.reply_to_id is not None:
        reply = ReplyRef(
            message_id=msg.reply_to_id,
            text=msg.reply_to_text or "",
            sender_name=msg.reply_to_sender_name or "",
        )

    return ChatMessage(
        id=int(msg.id),
        channel_code=msg.channel_code,
        text=msg.text,
        message_type=MessageType(msg.message_type),
        sender_id=msg.sender_id,
        sender_name=msg.sender_name,
        sender_role=Role(msg.sender_role),
        sender_level=msg.sender_level,
        sender_avatar=msg.sender_avatar,
        created_at=as_utc(msg.created_at),
        status=DeliveryStatus(msg.status),
        read_by=frozenset(readers or ()),
        reactions={emoji: frozenset(users) for emoji, users in (reactions or {}).items() if users},
        reply_to=reply,
        is_edited=bool(msg.is_edited),
        edited_at=as_utc(msg.edited_at) if msg.edited_at else None,
    )


def to_preview(channel_code: str, channel: ChannelModel | None) -> ChannelPreview | None:
    if channel is None or channel.last_message_id is None:
        return None
    return ChannelPreview(
        channel_code=channel_code,
        message_id=int(channel.last_message_id),
        text=channel.last_message_text,
        sender_id=channel.last_sender_id,
        sender_name=channel.last_sender_name,
        timestamp=as_utc(channel.last_message_at) if channel.last_message_at else None,
        last_activity=as_utc(channel.last_activity) if channel.last_activity else None,
    )


class MessageService:
    def __init__(
        self,
        *,
        channel_repo: ChannelRepository,
        msg_repo: MessageRepository,
        read_repo: MessageReadRepository,
        reaction_repo: MessageReactionRepository,
        typing_repo: TypingIndicatorRepository,
        notifier: ChatNotifier,
        clock: Clock,
        max_message_length: int = 4000,
    ) -> None:
        self._channel_repo = channel_repo
        self._msg_repo = msg_repo
        self._read_repo = read_repo
        self._reaction_repo = reaction_repo
        self._typing_repo = typing_repo
        self._notifier = notifier
        self._clock = clock
        self._max_len = max_message_length

    # -------------------------
    # Helpers
    # -------------------------

    def _clean_text(self, text: str | None) -> str:
        body = (text or "").strip()
        if not body:
            raise ValidationError("Message text cannot be empty.")
        if len(body) > self._max_len:
            raise ValidationError(f"Message text exceeds {self._max_len} characters.")
        return body

    def _get_or_404(self, channel_code: str, message_id: int) -> MessageModel:
        msg = self._msg_repo.get(channel_code=channel_code, message_id=message_id)
        if msg is None:
            raise NotFoundError("Message not found.")
        return msg

    def _ensure_sender(self, msg: MessageModel, author_id: str) -> None:
        if msg.sender_id != author_id:
            raise PermissionDeniedError()

    def _next_timestamp(self, channel_code: str) -> datetime:
        # per-channel timestamps never go backwards, even if the clock does
        now = as_utc(self._clock.now())
        last = self._msg_repo.max_created_at(channel_code=channel_code)
        if last is not None and as_utc(last) > now:
            return as_utc(last)
        return now

    def _hydrate(self, rows: list[MessageModel]) -> list[ChatMessage]:
        ids = [int(m.id) for m in rows]
        readers = self._read_repo.list_by_message_ids(ids)
        reactions = self._reaction_repo.list_by_message_ids(ids)
        return [to_chat_message(m, readers.get(m.id), reactions.get(m.id)) for m in rows]

    def _refresh_projection(self, channel_code: str, touched_id: int) -> None:
        channel = self._channel_repo.get(channel_code)
        if channel is None or channel.last_message_id != touched_id:
            return
        latest = self._msg_repo.latest(channel_code=channel_code)
        self._channel_repo.set_last_message(
            channel_code=channel_code,
            message=latest,
            activity_at=as_utc(self._clock.now()),
        )

    # -------------------------
    # Commands
    # -------------------------

    def send(
        self,
        *,
        channel_code: str,
        author: UserProfile,
        text: str,
        reply_to_id: int | None = None,
        message_type: str = MessageType.TEXT.value,
    ) -> ChatMessage:
        if author is None or not author.user_id:
            raise UnauthenticatedError("User not authenticated.")

        channel_code = normalize_channel_code(channel_code)
        body = self._clean_text(text)

        try:
            kind = MessageType(message_type)
        except ValueError as e:
            raise ValidationError(f"Unsupported message type: {message_type}") from e

        reply = None
        if reply_to_id is not None:
            reply = self._get_or_404(channel_code, reply_to_id)

        created_at = self._next_timestamp(channel_code)

        msg = MessageModel(
            channel_code=channel_code,
            text=body,
            message_type=kind.value,
            sender_id=author.user_id,
            sender_name=author.full_name,
            sender_role=Role(author.role).value,
            sender_level=author.academic_level,
            sender_avatar=author.avatar,
            status=DeliveryStatus.SENT.value,
            reply_to_id=reply.id if reply else None,
            reply_to_text=reply.text if reply else None,
            reply_to_sender_name=reply.sender_name if reply else None,
            created_at=created_at,
            is_edited=False,
            is_deleted=False,
        )
        msg = self._msg_repo.add(msg)

        # sender has always read their own message
        self._read_repo.add_reader(message_id=msg.id, user_id=author.user_id, read_at=created_at)

        self._channel_repo.set_last_message(channel_code=channel_code, message=msg, activity_at=created_at)

        cleared = self._typing_repo.delete(channel_code=channel_code, user_id=author.user_id)

        self._notifier.notify_messages_changed(
            MessagesChangedEvent(
                channel_code=channel_code,
                change_kind="created",
                message_ids=(int(msg.id),),
                actor_id=author.user_id,
                preview={
                    "message_id": int(msg.id),
                    "text": body,
                    "sender_id": author.user_id,
                    "sender_name": author.full_name,
                    "timestamp": created_at.isoformat(),
                },
            )
        )
        if cleared:
            self._notifier.notify_typing_changed(
                TypingChangedEvent(channel_code=channel_code, user_id=author.user_id, is_typing=False)
            )

        return to_chat_message(msg, {author.user_id}, {})

    def edit(self, *, channel_code: str, message_id: int, author_id: str, new_text: str) -> ChatMessage:
        if not author_id:
            raise UnauthenticatedError("User not authenticated.")

        channel_code = normalize_channel_code(channel_code)
        msg = self._get_or_404(channel_code, message_id)
        self._ensure_sender(msg, author_id)

        body = self._clean_text(new_text)
        ok = self._msg_repo.update_text(message_id=msg.id, text=body, edited_at=as_utc(self._clock.now()))
        if not ok:
            raise NotFoundError("Message not found.")

        self._refresh_projection(channel_code, msg.id)

        self._notifier.notify_messages_changed(
            MessagesChangedEvent(
                channel_code=channel_code,
                change_kind="edited",
                message_ids=(int(msg.id),),
                actor_id=author_id,
            )
        )
        return self.get_message(channel_code=channel_code, message_id=msg.id)

    def delete(self, *, channel_code: str, message_id: int, author_id: str) -> None:
        if not author_id:
            raise UnauthenticatedError("User not authenticated.")

        channel_code = normalize_channel_code(channel_code)
        msg = self._get_or_404(channel_code, message_id)
        self._ensure_sender(msg, author_id)

        ok = self._msg_repo.soft_delete(message_id=msg.id, deleted_at=as_utc(self._clock.now()))
        if not ok:
            raise NotFoundError("Message not found.")

        self._refresh_projection(channel_code, msg.id)

        self._notifier.notify_messages_changed(
            MessagesChangedEvent(
                channel_code=channel_code,
                change_kind="deleted",
                message_ids=(int(msg.id),),
                actor_id=author_id,
            )
        )

    def mark_delivered(self, *, channel_code: str, message_ids: list[int], reader_id: str) -> int:
        """Advisory sent -> delivered for messages someone else wrote."""
        if not reader_id:
            raise UnauthenticatedError("User not authenticated.")

        channel_code = normalize_channel_code(channel_code)
        rows = self._msg_repo.filter_ids_in_channel(channel_code=channel_code, message_ids=list(message_ids))
        targets = [int(m.id) for m in rows if m.sender_id != reader_id]

        changed = self._msg_repo.mark_delivered(message_ids=targets)
        if changed:
            self._notifier.notify_messages_changed(
                MessagesChangedEvent(
                    channel_code=channel_code,
                    change_kind="delivered",
                    message_ids=tuple(targets),
                    actor_id=reader_id,
                )
            )
        return changed

    # -------------------------
    # Queries
    # -------------------------

    def list_messages(self, *, channel_code: str) -> list[ChatMessage]:
        channel_code = normalize_channel_code(channel_code)
        return self._hydrate(self._msg_repo.list_by_channel(channel_code=channel_code))

    def get_message(self, *, channel_code: str, message_id: int) -> ChatMessage:
        channel_code = normalize_channel_code(channel_code)
        msg = self._get_or_404(channel_code, message_id)
        return self._hydrate([msg])[0]

    def last_message_preview(self, *, channel_code: str) -> ChannelPreview | None:
        channel_code = normalize_channel_code(channel_code)
        return to_preview(channel_code, self._channel_repo.get(channel_code))

    def recent_previews(self, *, channel_codes: list[str]) -> dict[str, ChannelPreview]:
        codes = [normalize_channel_code(c) for c in channel_codes]
        out: dict[str, ChannelPreview] = {}
        for channel in self._channel_repo.list_by_codes(codes):
            preview = to_preview(channel.code, channel)
            if preview is not None:
                out[channel.code] = preview
        return out

    def channel_stats(self, *, channel_code: str) -> ChannelStats:
        channel_code = normalize_channel_code(channel_code)
        count, participants, last = self._msg_repo.stats(channel_code=channel_code)
        return ChannelStats(
            channel_code=channel_code,
            message_count=count,
            participant_count=participants,
            last_activity=as_utc(last) if last else None,
        )
