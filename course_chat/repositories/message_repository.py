# course_chat/repositories/message_repository.py

from datetime import datetime

from sqlalchemy import distinct, func, select, update
from sqlalchemy.orm import Session

from course_chat.core.base_repository import BaseRepository
from course_chat.infrastructure.database.models.message_model import MessageModel


class MessageRepository(BaseRepository[MessageModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def _ordered(self):
        # server timestamp, ties broken by insertion order
        return (MessageModel.created_at.asc(), MessageModel.id.asc())

    def add(self, model: MessageModel) -> MessageModel:
        self._session.add(model)
        self._session.flush()
        return model

    def get(self, *, channel_code: str, message_id: int) -> MessageModel | None:
        stmt = select(MessageModel).where(
            MessageModel.id == message_id,
            MessageModel.channel_code == channel_code,
            MessageModel.is_deleted.is_(False),
        )
        return self._session.execute(stmt).scalar_one_or_none()

    def list_by_channel(self, *, channel_code: str) -> list[MessageModel]:
        stmt = (
            select(MessageModel)
            .where(MessageModel.channel_code == channel_code, MessageModel.is_deleted.is_(False))
            .order_by(*self._ordered())
        )
        return list(self._session.execute(stmt).scalars().all())

    def latest(self, *, channel_code: str) -> MessageModel | None:
        stmt = (
            select(MessageModel)
            .where(MessageModel.channel_code == channel_code, MessageModel.is_deleted.is_(False))
            .order_by(MessageModel.created_at.desc(), MessageModel.id.desc())
            .limit(1)
        )
        return self._session.execute(stmt).scalars().first()

    def max_created_at(self, *, channel_code: str) -> datetime | None:
        # deleted rows count too, so timestamps never go backwards in the log
        stmt = select(func.max(MessageModel.created_at)).where(MessageModel.channel_code == channel_code)
        return self._session.execute(stmt).scalar_one_or_none()

    def filter_ids_in_channel(self, *, channel_code: str, message_ids: list[int]) -> list[MessageModel]:
        if not message_ids:
            return []
        stmt = (
            select(MessageModel)
            .where(
                MessageModel.channel_code == channel_code,
                MessageModel.id.in_(message_ids),
                MessageModel.is_deleted.is_(False),
            )
            .order_by(*self._ordered())
        )
        return list(self._session.execute(stmt).scalars().all())

    def update_text(self, *, message_id: int, text: str, edited_at: datetime) -> bool:
        stmt = (
            update(MessageModel)
            .where(MessageModel.id == message_id, MessageModel.is_deleted.is_(False))
            .values(text=text, is_edited=True, edited_at=edited_at)
        )
        res = self._session.execute(stmt)
        return (res.rowcount or 0) > 0

    def soft_delete(self, *, message_id: int, deleted_at: datetime) -> bool:
        stmt = (
            update(MessageModel)
            .where(MessageModel.id == message_id, MessageModel.is_deleted.is_(False))
            .values(is_deleted=True, deleted_at=deleted_at)
        )
        res = self._session.execute(stmt)
        return (res.rowcount or 0) > 0

    def mark_delivered(self, *, message_ids: list[int]) -> int:
        if not message_ids:
            return 0
        stmt = (
            update(MessageModel)
            .where(
                MessageModel.id.in_(message_ids),
                MessageModel.status == "sent",
                MessageModel.is_deleted.is_(False),
            )
            .values(status="delivered")
        )
        res = self._session.execute(stmt)
        return res.rowcount or 0

    def stats(self, *, channel_code: str) -> tuple[int, int, datetime | None]:
        stmt = select(
            func.count(MessageModel.id),
            func.count(distinct(MessageModel.sender_id)),
            func.max(MessageModel.created_at),
        ).where(MessageModel.channel_code == channel_code, MessageModel.is_deleted.is_(False))
        count, participants, last = self._session.execute(stmt).one()
        return int(count or 0), int(participants or 0), last
