# course_chat/infrastructure/database/models/message_read_model.py

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from course_chat.infrastructure.database.base_model import BaseModel, IdType


class MessageReadModel(BaseModel):
    """One row per (message, reader). Rows are only ever inserted."""

    __tablename__ = "tbMessageReads"
    __table_args__ = (UniqueConstraint("message_id", "user_id", name="uq_tbMessageReads_message_user"),)

    id: Mapped[int] = mapped_column(IdType, primary_key=True)

    message_id: Mapped[int] = mapped_column(IdType, ForeignKey("tbMessages.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)

    read_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
