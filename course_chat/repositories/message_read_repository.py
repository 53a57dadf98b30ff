# course_chat/repositories/message_read_repository.py

from datetime import datetime

from sqlalchemy import and_, exists, func, select
from sqlalchemy.orm import Session

from course_chat.core.base_repository import BaseRepository
from course_chat.infrastructure.database.models.message_model import MessageModel
from course_chat.infrastructure.database.models.message_read_model import MessageReadModel


class MessageReadRepository(BaseRepository[MessageReadModel]):
    """readBy sets. There is deliberately no delete method."""

    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def add_reader(self, *, message_id: int, user_id: str, read_at: datetime) -> bool:
        return self._insert_if_absent(
            MessageReadModel,
            {"message_id": message_id, "user_id": user_id, "read_at": read_at},
            keys=["message_id", "user_id"],
        )

    def list_by_message_ids(self, message_ids: list[int]) -> dict[int, set[str]]:
        if not message_ids:
            return {}

        stmt = select(MessageReadModel.message_id, MessageReadModel.user_id).where(
            MessageReadModel.message_id.in_(message_ids)
        )
        grouped: dict[int, set[str]] = {}
        for message_id, user_id in self._session.execute(stmt).all():
            grouped.setdefault(message_id, set()).add(user_id)
        return grouped

    def _unread_stmt(self, *, user_id: str):
        already_read = exists().where(
            and_(
                MessageReadModel.message_id == MessageModel.id,
                MessageReadModel.user_id == user_id,
            )
        )
        return (
            select(MessageModel.channel_code, func.count(MessageModel.id).label("unread_count"))
            .where(
                MessageModel.is_deleted.is_(False),
                # own messages never count
                MessageModel.sender_id != user_id,
                ~already_read,
            )
            .group_by(MessageModel.channel_code)
        )

    def count_unread(self, *, channel_code: str, user_id: str) -> int:
        stmt = self._unread_stmt(user_id=user_id).where(MessageModel.channel_code == channel_code)
        row = self._session.execute(stmt).first()
        return int(row.unread_count) if row else 0

    def count_unread_by_channel(self, *, channel_codes: list[str], user_id: str) -> dict[str, int]:
        if not channel_codes:
            return {}
        stmt = self._unread_stmt(user_id=user_id).where(MessageModel.channel_code.in_(channel_codes))
        rows = self._session.execute(stmt).all()
        return {row.channel_code: int(row.unread_count) for row in rows}
