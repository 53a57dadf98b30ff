# course_chat/repositories/typing_indicator_repository.py
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from course_chat.core.base_repository import BaseRepository
from course_chat.infrastructure.database.models.typing_indicator_model import TypingIndicatorModel


class TypingIndicatorRepository(BaseRepository[TypingIndicatorModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def upsert(self, *, channel_code: str, user_id: str, user_name: str, user_role: str, at: datetime) -> None:
        self._upsert(
            TypingIndicatorModel,
            {
                "channel_code": channel_code,
                "user_id": user_id,
                "user_name": user_name,
                "user_role": user_role,
                "updated_at": at,
            },
            keys=["channel_code", "user_id"],
            updates={"user_name": user_name, "user_role": user_role, "updated_at": at},
        )

    def delete(self, *, channel_code: str, user_id: str) -> bool:
        stmt = delete(TypingIndicatorModel).where(
            TypingIndicatorModel.channel_code == channel_code,
            TypingIndicatorModel.user_id == user_id,
        )
        res = self._session.execute(stmt)
        return (res.rowcount or 0) > 0

    def list_by_channel(self, *, channel_code: str, exclude_user_id: str | None = None) -> list[TypingIndicatorModel]:
        stmt = select(TypingIndicatorModel).where(TypingIndicatorModel.channel_code == channel_code)
        if exclude_user_id:
            stmt = stmt.where(TypingIndicatorModel.user_id != exclude_user_id)
        stmt = stmt.order_by(TypingIndicatorModel.updated_at.asc())
        return list(self._session.execute(stmt).scalars().all())
