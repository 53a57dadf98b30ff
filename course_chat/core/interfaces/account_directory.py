# course_chat/core/interfaces/account_directory.py
from __future__ import annotations

from typing import Protocol

from course_chat.entities.user import ChannelMembership, UserProfile


class AccountDirectory(Protocol):
    """Read-only view of the identity provider's accounts and course relations."""

    def get_profile(self, user_id: str) -> UserProfile | None:
        ...

    def get_membership(self, user_id: str) -> ChannelMembership:
        ...
