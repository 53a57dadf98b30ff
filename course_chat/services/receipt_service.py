# course_chat/services/receipt_service.py

from __future__ import annotations

from typing import Iterable

from course_chat.core.channels import normalize_channel_code
from course_chat.core.clock import Clock
from course_chat.core.exceptions import NotFoundError, UnauthenticatedError, ValidationError
from course_chat.core.freshness import as_utc
from course_chat.core.interfaces.chat_notifier import ChatNotifier, MessagesChangedEvent
from course_chat.entities.chat import ReactionState
from course_chat.infrastructure.database.models.message_model import MessageModel
from course_chat.repositories.message_reaction_repository import MessageReactionRepository
from course_chat.repositories.message_read_repository import MessageReadRepository
from course_chat.repositories.message_repository import MessageRepository

MAX_EMOJI_LENGTH = 32


class ReceiptService:
    """Read receipts and reactions.

    `read_by` only grows: this service exposes no way to un-read a message.
    """

    def __init__(
        self,
        *,
        msg_repo: MessageRepository,
        read_repo: MessageReadRepository,
        reaction_repo: MessageReactionRepository,
        notifier: ChatNotifier,
        clock: Clock,
    ) -> None:
        self._msg_repo = msg_repo
        self._read_repo = read_repo
        self._reaction_repo = reaction_repo
        self._notifier = notifier
        self._clock = clock

    def _require_user(self, user_id: str) -> None:
        if not user_id:
            raise UnauthenticatedError("User not authenticated.")

    def _clean_emoji(self, emoji: str | None) -> str:
        value = (emoji or "").strip()
        if not value:
            raise ValidationError("Emoji is required.")
        if len(value) > MAX_EMOJI_LENGTH:
            raise ValidationError("Emoji is too long.")
        return value

    def _get_or_404(self, channel_code: str, message_id: int) -> MessageModel:
        msg = self._msg_repo.get(channel_code=channel_code, message_id=message_id)
        if msg is None:
            raise NotFoundError("Message not found.")
        return msg

    def mark_read(self, *, channel_code: str, message_ids: Iterable[int], reader_id: str) -> int:
        self._require_user(reader_id)
        channel_code = normalize_channel_code(channel_code)

        rows = self._msg_repo.filter_ids_in_channel(channel_code=channel_code, message_ids=list(message_ids))
        now = as_utc(self._clock.now())

        added: list[int] = []
        for msg in rows:
            if msg.sender_id == reader_id:
                continue
            # insert-if-absent, already-read is a no-op
            if self._read_repo.add_reader(message_id=msg.id, user_id=reader_id, read_at=now):
                added.append(int(msg.id))

        if added:
            self._notifier.notify_messages_changed(
                MessagesChangedEvent(
                    channel_code=channel_code,
                    change_kind="read",
                    message_ids=tuple(added),
                    actor_id=reader_id,
                )
            )
        return len(added)

    def _state(self, message_id: int, emoji: str, user_id: str) -> ReactionState:
        reactors = self._reaction_repo.reactors(message_id=message_id, emoji=emoji)
        return ReactionState(
            message_id=message_id,
            emoji=emoji,
            user_id=user_id,
            active=user_id in reactors,
            reactors=frozenset(reactors),
        )

    def _reaction_changed(self, channel_code: str, message_id: int, user_id: str) -> None:
        self._notifier.notify_messages_changed(
            MessagesChangedEvent(
                channel_code=channel_code,
                change_kind="reaction",
                message_ids=(message_id,),
                actor_id=user_id,
            )
        )

    def add_reaction(self, *, channel_code: str, message_id: int, user_id: str, emoji: str) -> ReactionState:
        self._require_user(user_id)
        channel_code = normalize_channel_code(channel_code)
        emoji = self._clean_emoji(emoji)
        msg = self._get_or_404(channel_code, message_id)

        if self._reaction_repo.add(
            message_id=msg.id, emoji=emoji, user_id=user_id, created_at=as_utc(self._clock.now())
        ):
            self._reaction_changed(channel_code, int(msg.id), user_id)
        return self._state(int(msg.id), emoji, user_id)

    def remove_reaction(self, *, channel_code: str, message_id: int, user_id: str, emoji: str) -> ReactionState:
        self._require_user(user_id)
        channel_code = normalize_channel_code(channel_code)
        emoji = self._clean_emoji(emoji)
        msg = self._get_or_404(channel_code, message_id)

        if self._reaction_repo.remove(message_id=msg.id, emoji=emoji, user_id=user_id):
            self._reaction_changed(channel_code, int(msg.id), user_id)
        return self._state(int(msg.id), emoji, user_id)

    def toggle_reaction(self, *, channel_code: str, message_id: int, user_id: str, emoji: str) -> ReactionState:
        self._require_user(user_id)
        channel_code = normalize_channel_code(channel_code)
        emoji = self._clean_emoji(emoji)
        msg = self._get_or_404(channel_code, message_id)

        if self._reaction_repo.has(message_id=msg.id, emoji=emoji, user_id=user_id):
            return self.remove_reaction(channel_code=channel_code, message_id=msg.id, user_id=user_id, emoji=emoji)
        return self.add_reaction(channel_code=channel_code, message_id=msg.id, user_id=user_id, emoji=emoji)
