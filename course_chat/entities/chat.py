# course_chat/entities/chat.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from course_chat.entities.user import Role


class MessageType(str, Enum):
    TEXT = "text"
    # media tags are accepted but carry no payload yet
    IMAGE = "image"
    FILE = "file"
    VOICE = "voice"


class DeliveryStatus(str, Enum):
    SENT = "sent"
    DELIVERED = "delivered"


@dataclass(frozen=True)
class ReplyRef:
    message_id: int
    text: str
    sender_name: str


@dataclass(frozen=True)
class ChatMessage:
    id: int
    channel_code: str
    text: str
    message_type: MessageType
    sender_id: str
    sender_name: str
    sender_role: Role
    created_at: datetime
    status: DeliveryStatus = DeliveryStatus.SENT
    sender_level: Optional[str] = None
    sender_avatar: Optional[str] = None
    read_by: frozenset[str] = field(default_factory=frozenset)
    reactions: dict[str, frozenset[str]] = field(default_factory=dict)
    reply_to: Optional[ReplyRef] = None
    is_edited: bool = False
    edited_at: Optional[datetime] = None

    def is_unread_for(self, user_id: str) -> bool:
        return self.sender_id != user_id and user_id not in self.read_by


@dataclass(frozen=True)
class ChannelPreview:
    channel_code: str
    message_id: Optional[int]
    text: Optional[str]
    sender_id: Optional[str]
    sender_name: Optional[str]
    timestamp: Optional[datetime]
    last_activity: Optional[datetime]


@dataclass(frozen=True)
class ChannelStats:
    channel_code: str
    message_count: int
    participant_count: int
    last_activity: Optional[datetime]


@dataclass(frozen=True)
class TypingIndicator:
    channel_code: str
    user_id: str
    user_name: str
    user_role: Role
    updated_at: datetime


@dataclass(frozen=True)
class PresenceRecord:
    user_id: str
    is_online: bool
    last_seen: Optional[datetime]
    name: Optional[str] = None
    role: Optional[Role] = None
    academic_level: Optional[str] = None
    avatar: Optional[str] = None


@dataclass(frozen=True)
class PresenceFilter:
    role: Optional[Role] = None
    academic_level: Optional[str] = None

    @property
    def key(self) -> str:
        role = self.role.value if self.role else "*"
        return f"{role}:{self.academic_level or '*'}"


@dataclass(frozen=True)
class ReactionState:
    message_id: int
    emoji: str
    user_id: str
    active: bool
    reactors: frozenset[str]
