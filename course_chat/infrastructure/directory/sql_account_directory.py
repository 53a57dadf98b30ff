# course_chat/infrastructure/directory/sql_account_directory.py
from __future__ import annotations

from course_chat.config.settings import Settings
from course_chat.core.interfaces.account_directory import AccountDirectory
from course_chat.entities.user import ChannelMembership, Role, UserProfile
from course_chat.infrastructure.database.session import SessionScope
from course_chat.repositories.user_repository import UserRepository


class SqlAccountDirectory(AccountDirectory):
    """Accounts mirrored from the identity provider into tbUsers/tbUserCourses."""

    def __init__(self, *, session_scope: SessionScope, settings: Settings) -> None:
        self._session_scope = session_scope
        self._settings = settings

    def get_profile(self, user_id: str) -> UserProfile | None:
        if not user_id:
            return None
        with self._session_scope() as session:
            user = UserRepository(session).get_by_id(user_id)
            if user is None:
                return None
            return UserProfile(
                user_id=user.id,
                full_name=user.full_name,
                role=Role(user.role),
                academic_level=user.academic_level,
                avatar=user.avatar,
            )

    def get_membership(self, user_id: str) -> ChannelMembership:
        with self._session_scope() as session:
            repo = UserRepository(session)
            user = repo.get_by_id(user_id) if user_id else None
            role = Role(user.role) if user else Role.STUDENT
            relation = "teaching" if role == Role.LECTURER else "enrolled"
            codes = repo.list_course_codes(user_id, relation=relation) if user else []
            level = user.academic_level if user else None

        channels = {c.upper() for c in codes} | set(self._settings.general_channels)
        if role == Role.LECTURER:
            channels |= set(self._settings.lecturer_channels)

        return ChannelMembership(
            user_id=user_id,
            role=role,
            academic_level=level,
            channels=frozenset(channels),
        )
