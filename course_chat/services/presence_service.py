# course_chat/services/presence_service.py

from __future__ import annotations

from course_chat.core.clock import Clock
from course_chat.core.exceptions import UnauthenticatedError
from course_chat.core.freshness import as_utc, is_fresh
from course_chat.core.interfaces.chat_notifier import ChatNotifier, PresenceChangedEvent
from course_chat.entities.chat import PresenceFilter, PresenceRecord
from course_chat.entities.user import Role, UserProfile
from course_chat.infrastructure.database.models.user_presence_model import UserPresenceModel
from course_chat.repositories.user_presence_repository import UserPresenceRepository


def to_presence_record(row: UserPresenceModel) -> PresenceRecord:
    return PresenceRecord(
        user_id=row.user_id,
        is_online=bool(row.is_online),
        last_seen=as_utc(row.last_seen) if row.last_seen else None,
        name=row.name,
        role=Role(row.role) if row.role else None,
        academic_level=row.academic_level,
        avatar=row.avatar,
    )


class PresenceService:
    """Online/offline records.

    The stored `is_online` flag is only trusted while `last_seen` is younger
    than the staleness floor; the heartbeat loop lives in ChatSession.
    """

    def __init__(
        self,
        *,
        presence_repo: UserPresenceRepository,
        notifier: ChatNotifier,
        clock: Clock,
        stale_seconds: float = 120.0,
    ) -> None:
        self._repo = presence_repo
        self._notifier = notifier
        self._clock = clock
        self._stale_seconds = stale_seconds

    def _require_user(self, user_id: str | None) -> None:
        if not user_id:
            raise UnauthenticatedError("User not authenticated.")

    def announce(self, *, profile: UserProfile) -> None:
        self._require_user(profile.user_id if profile else None)
        self._repo.set_status(
            user_id=profile.user_id,
            is_online=True,
            at=as_utc(self._clock.now()),
            profile={
                "name": profile.full_name,
                "role": Role(profile.role).value,
                "academic_level": profile.academic_level,
                "avatar": profile.avatar,
            },
        )
        self._notifier.notify_presence_changed(PresenceChangedEvent(user_id=profile.user_id, is_online=True))

    def heartbeat(self, *, user_id: str) -> bool:
        self._require_user(user_id)
        now = self._clock.now()
        row = self._repo.get(user_id)
        was_counted = row is not None and bool(row.is_online) and is_fresh(row.last_seen, self._stale_seconds, now)

        touched = self._repo.touch(user_id=user_id, at=as_utc(now))
        # a stale record coming back changes the online counts
        if touched and row is not None and row.is_online and not was_counted:
            self._notifier.notify_presence_changed(PresenceChangedEvent(user_id=user_id, is_online=True))
        return touched

    def withdraw(self, *, user_id: str) -> None:
        self._require_user(user_id)
        self._repo.set_status(user_id=user_id, is_online=False, at=as_utc(self._clock.now()))
        self._notifier.notify_presence_changed(PresenceChangedEvent(user_id=user_id, is_online=False))

    def get(self, *, user_id: str) -> PresenceRecord | None:
        row = self._repo.get(user_id)
        return to_presence_record(row) if row else None

    def list_online(self, *, presence_filter: PresenceFilter | None = None) -> list[PresenceRecord]:
        f = presence_filter or PresenceFilter()
        now = self._clock.now()
        rows = self._repo.list_online_candidates(
            role=f.role.value if f.role else None,
            academic_level=f.academic_level,
        )
        # staleness floor overrides the stored flag
        return [to_presence_record(r) for r in rows if is_fresh(r.last_seen, self._stale_seconds, now)]

    def count_online(self, *, presence_filter: PresenceFilter | None = None) -> int:
        return len(self.list_online(presence_filter=presence_filter))
