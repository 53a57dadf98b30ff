# course_chat/repositories/user_repository.py

from sqlalchemy import select
from sqlalchemy.orm import Session

from course_chat.core.base_repository import BaseRepository
from course_chat.infrastructure.database.models.user_model import UserCourseModel, UserModel


class UserRepository(BaseRepository[UserModel]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def get_by_id(self, user_id: str) -> UserModel | None:
        stmt = select(UserModel).where(UserModel.id == user_id, UserModel.is_deleted.is_(False))
        return self._session.execute(stmt).scalar_one_or_none()

    def list_course_codes(self, user_id: str, *, relation: str | None = None) -> list[str]:
        stmt = select(UserCourseModel.course_code).where(UserCourseModel.user_id == user_id)
        if relation:
            stmt = stmt.where(UserCourseModel.relation == relation)
        stmt = stmt.order_by(UserCourseModel.course_code.asc())
        return list(self._session.execute(stmt).scalars().all())

    def add(self, model: UserModel) -> UserModel:
        self._session.add(model)
        self._session.flush()
        return model

    def add_course(self, *, user_id: str, course_code: str, relation: str) -> bool:
        return self._insert_if_absent(
            UserCourseModel,
            {"user_id": user_id, "course_code": course_code.upper(), "relation": relation},
            keys=["user_id", "course_code", "relation"],
        )
