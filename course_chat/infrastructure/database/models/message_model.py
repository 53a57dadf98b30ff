# course_chat/infrastructure/database/models/message_model.py

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, false
from sqlalchemy.orm import Mapped, mapped_column

from course_chat.infrastructure.database.base_model import BaseModel, IdType


class MessageModel(BaseModel):
    __tablename__ = "tbMessages"
    __table_args__ = (Index("ix_tbMessages_channel_order", "channel_code", "created_at", "id"),)

    id: Mapped[int] = mapped_column(IdType, primary_key=True)

    channel_code: Mapped[str] = mapped_column(String(20), nullable=False)

    text: Mapped[str] = mapped_column(Text, nullable=False)
    message_type: Mapped[str] = mapped_column(String(20), nullable=False, default="text")

    # sender snapshot, denormalized at send time
    sender_id: Mapped[str] = mapped_column(String(128), nullable=False)
    sender_name: Mapped[str] = mapped_column(String(100), nullable=False)
    sender_role: Mapped[str] = mapped_column(String(20), nullable=False, default="student")
    sender_level: Mapped[str] = mapped_column(String(10), nullable=True)
    sender_avatar: Mapped[str] = mapped_column(String(500), nullable=True)

    # "sent" -> "delivered" (advisory)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="sent")

    reply_to_id: Mapped[int] = mapped_column(IdType, ForeignKey("tbMessages.id"), nullable=True)
    reply_to_text: Mapped[str] = mapped_column(Text, nullable=True)
    reply_to_sender_name: Mapped[str] = mapped_column(String(100), nullable=True)

    # assigned once by MessageService.send, never updated
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    is_edited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    edited_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)

    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    deleted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
