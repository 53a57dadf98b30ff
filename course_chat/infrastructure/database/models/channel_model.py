# course_chat/infrastructure/database/models/channel_model.py

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from course_chat.infrastructure.database.base_model import BaseModel, IdType


class ChannelModel(BaseModel):
    __tablename__ = "tbChannels"

    # course code ("CSM101") or a general key ("GENERAL", "FACULTY")
    code: Mapped[str] = mapped_column(String(20), primary_key=True)

    # projection of the most recent non-deleted message, never a source of truth
    last_message_id: Mapped[int] = mapped_column(IdType, nullable=True)
    last_message_text: Mapped[str] = mapped_column(Text, nullable=True)
    last_message_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    last_sender_id: Mapped[str] = mapped_column(String(128), nullable=True)
    last_sender_name: Mapped[str] = mapped_column(String(100), nullable=True)

    last_activity: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
