# course_chat/services/typing_service.py

from __future__ import annotations

from course_chat.core.channels import normalize_channel_code
from course_chat.core.clock import Clock
from course_chat.core.exceptions import UnauthenticatedError
from course_chat.core.freshness import as_utc, is_fresh
from course_chat.core.interfaces.chat_notifier import ChatNotifier, TypingChangedEvent
from course_chat.entities.chat import TypingIndicator
from course_chat.entities.user import Role, UserProfile
from course_chat.repositories.typing_indicator_repository import TypingIndicatorRepository


class TypingService:
    def __init__(
        self,
        *,
        typing_repo: TypingIndicatorRepository,
        notifier: ChatNotifier,
        clock: Clock,
        ttl_seconds: float = 5.0,
    ) -> None:
        self._repo = typing_repo
        self._notifier = notifier
        self._clock = clock
        self._ttl = ttl_seconds

    def set_typing(self, *, channel_code: str, profile: UserProfile, is_typing: bool) -> None:
        # debouncing keystrokes is the caller's job
        if profile is None or not profile.user_id:
            raise UnauthenticatedError("User not authenticated.")
        channel_code = normalize_channel_code(channel_code)

        if is_typing:
            self._repo.upsert(
                channel_code=channel_code,
                user_id=profile.user_id,
                user_name=profile.full_name,
                user_role=Role(profile.role).value,
                at=as_utc(self._clock.now()),
            )
            changed = True
        else:
            changed = self._repo.delete(channel_code=channel_code, user_id=profile.user_id)

        if changed:
            self._notifier.notify_typing_changed(
                TypingChangedEvent(channel_code=channel_code, user_id=profile.user_id, is_typing=is_typing)
            )

    def active_typers(self, *, channel_code: str, exclude_user_id: str | None = None) -> list[TypingIndicator]:
        channel_code = normalize_channel_code(channel_code)
        now = self._clock.now()
        return [
            TypingIndicator(
                channel_code=row.channel_code,
                user_id=row.user_id,
                user_name=row.user_name,
                user_role=Role(row.user_role),
                updated_at=as_utc(row.updated_at),
            )
            for row in self._repo.list_by_channel(channel_code=channel_code, exclude_user_id=exclude_user_id)
            if is_fresh(row.updated_at, self._ttl, now)
        ]
