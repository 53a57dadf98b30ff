# course_chat/repositories/message_reaction_repository.py

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from course_chat.core.base_repository import BaseRepository
from course_chat.infrastructure.database.models.message_reaction_model import MessageReactionModel


class MessageReactionRepository(BaseRepository[MessageReactionModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def add(self, *, message_id: int, emoji: str, user_id: str, created_at: datetime) -> bool:
        return self._insert_if_absent(
            MessageReactionModel,
            {"message_id": message_id, "emoji": emoji, "user_id": user_id, "created_at": created_at},
            keys=["message_id", "emoji", "user_id"],
        )

    def remove(self, *, message_id: int, emoji: str, user_id: str) -> bool:
        stmt = delete(MessageReactionModel).where(
            MessageReactionModel.message_id == message_id,
            MessageReactionModel.emoji == emoji,
            MessageReactionModel.user_id == user_id,
        )
        res = self._session.execute(stmt)
        return (res.rowcount or 0) > 0

    def has(self, *, message_id: int, emoji: str, user_id: str) -> bool:
        stmt = select(MessageReactionModel.id).where(
            MessageReactionModel.message_id == message_id,
            MessageReactionModel.emoji == emoji,
            MessageReactionModel.user_id == user_id,
        )
        return self._session.execute(stmt).first() is not None

    def reactors(self, *, message_id: int, emoji: str) -> set[str]:
        stmt = select(MessageReactionModel.user_id).where(
            MessageReactionModel.message_id == message_id,
            MessageReactionModel.emoji == emoji,
        )
        return set(self._session.execute(stmt).scalars().all())

    def list_by_message_ids(self, message_ids: list[int]) -> dict[int, dict[str, set[str]]]:
        if not message_ids:
            return {}

        stmt = (
            select(MessageReactionModel.message_id, MessageReactionModel.emoji, MessageReactionModel.user_id)
            .where(MessageReactionModel.message_id.in_(message_ids))
            .order_by(MessageReactionModel.id.asc())
        )
        grouped: dict[int, dict[str, set[str]]] = {}
        for message_id, emoji, user_id in self._session.execute(stmt).all():
            grouped.setdefault(message_id, {}).setdefault(emoji, set()).add(user_id)
        return grouped
