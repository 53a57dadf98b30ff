# course_chat/api/schemas/presence_schema.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_serializer

from course_chat.api.schemas._datetime_serializer import serialize_dt
from course_chat.entities.chat import PresenceFilter, PresenceRecord, TypingIndicator
from course_chat.entities.user import Role


class PresenceQuery(BaseModel):
    role: Optional[Role] = None
    academic_level: Optional[str] = None

    def to_filter(self) -> PresenceFilter:
        return PresenceFilter(role=self.role, academic_level=self.academic_level or None)


class PresenceResponse(BaseModel):
    user_id: str
    is_online: bool
    last_seen: Optional[datetime] = None
    name: Optional[str] = None
    role: Optional[str] = None
    academic_level: Optional[str] = None
    avatar: Optional[str] = None

    @field_serializer("last_seen")
    def serialize_last_seen(self, value: datetime | None):
        return serialize_dt(value)

    @classmethod
    def from_entity(cls, p: PresenceRecord) -> "PresenceResponse":
        return cls(
            user_id=p.user_id,
            is_online=p.is_online,
            last_seen=p.last_seen,
            name=p.name,
            role=p.role.value if p.role else None,
            academic_level=p.academic_level,
            avatar=p.avatar,
        )


class OnlineUsersResponse(BaseModel):
    count: int
    users: List[PresenceResponse] = []


class TypingRequest(BaseModel):
    is_typing: bool


class TypingUserResponse(BaseModel):
    id: str
    name: str
    role: str

    @classmethod
    def from_entity(cls, t: TypingIndicator) -> "TypingUserResponse":
        return cls(id=t.user_id, name=t.user_name, role=t.user_role.value)
