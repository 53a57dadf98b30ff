# course_chat/repositories/channel_repository.py
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from course_chat.core.base_repository import BaseRepository
from course_chat.infrastructure.database.models.channel_model import ChannelModel
from course_chat.infrastructure.database.models.message_model import MessageModel


class ChannelRepository(BaseRepository[ChannelModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def get(self, channel_code: str) -> ChannelModel | None:
        stmt = select(ChannelModel).where(ChannelModel.code == channel_code)
        return self._session.execute(stmt).scalar_one_or_none()

    def list_by_codes(self, channel_codes: list[str]) -> list[ChannelModel]:
        if not channel_codes:
            return []
        stmt = select(ChannelModel).where(ChannelModel.code.in_(channel_codes))
        return list(self._session.execute(stmt).scalars().all())

    def set_last_message(self, *, channel_code: str, message: MessageModel | None, activity_at: datetime) -> None:
        """Rewrites the preview projection; `None` clears it (channel emptied by deletes)."""
        projection = {
            "last_message_id": message.id if message else None,
            "last_message_text": message.text if message else None,
            "last_message_at": message.created_at if message else None,
            "last_sender_id": message.sender_id if message else None,
            "last_sender_name": message.sender_name if message else None,
            "last_activity": activity_at,
        }
        # channel is created implicitly on first message
        self._upsert(
            ChannelModel,
            {"code": channel_code, **projection},
            keys=["code"],
            updates=projection,
        )
