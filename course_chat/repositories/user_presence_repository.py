# course_chat/repositories/user_presence_repository.py
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from course_chat.core.base_repository import BaseRepository
from course_chat.infrastructure.database.models.user_presence_model import UserPresenceModel


class UserPresenceRepository(BaseRepository[UserPresenceModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def get(self, user_id: str) -> UserPresenceModel | None:
        stmt = select(UserPresenceModel).where(UserPresenceModel.user_id == user_id)
        return self._session.execute(stmt).scalar_one_or_none()

    def set_status(self, *, user_id: str, is_online: bool, at: datetime, profile: dict | None = None) -> None:
        # merge semantics: profile fields that are None keep what was stored
        changes = {"is_online": is_online, "last_seen": at}
        changes.update({k: v for k, v in (profile or {}).items() if v is not None})
        self._upsert(
            UserPresenceModel,
            {"user_id": user_id, **changes},
            keys=["user_id"],
            updates=changes,
        )

    def touch(self, *, user_id: str, at: datetime) -> bool:
        stmt = update(UserPresenceModel).where(UserPresenceModel.user_id == user_id).values(last_seen=at)
        res = self._session.execute(stmt)
        return (res.rowcount or 0) > 0

    def list_online_candidates(self, *, role: str | None = None, academic_level: str | None = None) -> list[UserPresenceModel]:
        """Rows flagged online. Staleness is applied by the caller."""
        stmt = select(UserPresenceModel).where(UserPresenceModel.is_online.is_(True))
        if role:
            stmt = stmt.where(UserPresenceModel.role == role)
        if academic_level:
            stmt = stmt.where(UserPresenceModel.academic_level == academic_level)
        stmt = stmt.order_by(UserPresenceModel.user_id.asc())
        return list(self._session.execute(stmt).scalars().all())
