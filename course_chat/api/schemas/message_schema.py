# course_chat/api/schemas/message_schema.py

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_serializer

from course_chat.api.schemas._datetime_serializer import serialize_dt
from course_chat.entities.chat import ChannelPreview, ChannelStats, ChatMessage, ReactionState


class ReplyRefResponse(BaseModel):
    message_id: int
    text: str
    sender_name: str


class SenderResponse(BaseModel):
    id: str
    name: str
    role: str
    academic_level: Optional[str] = None
    avatar: Optional[str] = None


class MessageResponse(BaseModel):
    id: int
    channel: str
    text: str
    type: str
    sender: SenderResponse
    status: str
    timestamp: datetime
    read_by: List[str] = []
    reactions: Dict[str, List[str]] = {}
    reply_to: Optional[ReplyRefResponse] = None
    is_edited: bool = False
    edited_at: Optional[datetime] = None

    @field_serializer("timestamp", "edited_at")
    def serialize_dates(self, value: datetime | None):
        return serialize_dt(value)

    @classmethod
    def from_entity(cls, m: ChatMessage) -> "MessageResponse":
        return cls(
            id=m.id,
            channel=m.channel_code,
            text=m.text,
            type=m.message_type.value,
            sender=SenderResponse(
                id=m.sender_id,
                name=m.sender_name,
                role=m.sender_role.value,
                academic_level=m.sender_level,
                avatar=m.sender_avatar,
            ),
            status=m.status.value,
            timestamp=m.created_at,
            read_by=sorted(m.read_by),
            reactions={emoji: sorted(users) for emoji, users in m.reactions.items()},
            reply_to=(
                ReplyRefResponse(
                    message_id=m.reply_to.message_id,
                    text=m.reply_to.text,
                    sender_name=m.reply_to.sender_name,
                )
                if m.reply_to
                else None
            ),
            is_edited=m.is_edited,
            edited_at=m.edited_at,
        )


class ChannelPreviewResponse(BaseModel):
    message_id: Optional[int] = None
    text: Optional[str] = None
    sender_id: Optional[str] = None
    sender_name: Optional[str] = None
    timestamp: Optional[datetime] = None

    @field_serializer("timestamp")
    def serialize_timestamp(self, value: datetime | None):
        return serialize_dt(value)

    @classmethod
    def from_entity(cls, p: ChannelPreview) -> "ChannelPreviewResponse":
        return cls(
            message_id=p.message_id,
            text=p.text,
            sender_id=p.sender_id,
            sender_name=p.sender_name,
            timestamp=p.timestamp,
        )


class ChannelListItemResponse(BaseModel):
    channel: str
    last_message: Optional[ChannelPreviewResponse] = None
    last_activity: Optional[datetime] = None
    unread_count: int = 0

    @field_serializer("last_activity")
    def serialize_last_activity(self, value: datetime | None):
        return serialize_dt(value)


class ChannelStatsResponse(BaseModel):
    channel: str
    message_count: int
    participant_count: int
    last_activity: Optional[datetime] = None

    @field_serializer("last_activity")
    def serialize_last_activity(self, value: datetime | None):
        return serialize_dt(value)

    @classmethod
    def from_entity(cls, s: ChannelStats) -> "ChannelStatsResponse":
        return cls(
            channel=s.channel_code,
            message_count=s.message_count,
            participant_count=s.participant_count,
            last_activity=s.last_activity,
        )


class ReactionResponse(BaseModel):
    message_id: int
    emoji: str
    active: bool
    reactors: List[str]

    @classmethod
    def from_entity(cls, r: ReactionState) -> "ReactionResponse":
        return cls(message_id=r.message_id, emoji=r.emoji, active=r.active, reactors=sorted(r.reactors))


class SendMessageRequest(BaseModel):
    # blank text is rejected by the service with a clearer message
    text: str = Field(max_length=4000)
    type: str = "text"
    reply_to_id: Optional[int] = None


class EditMessageRequest(BaseModel):
    text: str = Field(max_length=4000)


class MessageIdsRequest(BaseModel):
    message_ids: List[int] = Field(min_length=1)


class ReactionRequest(BaseModel):
    emoji: str = Field(min_length=1, max_length=32)
