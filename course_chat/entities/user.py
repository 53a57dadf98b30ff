# course_chat/entities/user.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Role(str, Enum):
    STUDENT = "student"
    LECTURER = "lecturer"


@dataclass(frozen=True)
class UserProfile:
    user_id: str
    full_name: str
    role: Role = Role.STUDENT
    academic_level: Optional[str] = None
    avatar: Optional[str] = None


@dataclass(frozen=True)
class ChannelMembership:
    """Channels one user may open, resolved once per session."""

    user_id: str
    role: Role
    academic_level: Optional[str] = None
    channels: frozenset[str] = field(default_factory=frozenset)

    def can_access(self, channel_code: str) -> bool:
        return channel_code.upper() in self.channels

    def sorted_channels(self) -> list[str]:
        return sorted(self.channels)
