# course_chat/infrastructure/database/models/message_reaction_model.py

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from course_chat.infrastructure.database.base_model import BaseModel, IdType


class MessageReactionModel(BaseModel):
    __tablename__ = "tbMessageReactions"
    __table_args__ = (
        UniqueConstraint("message_id", "emoji", "user_id", name="uq_tbMessageReactions_message_emoji_user"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True)

    message_id: Mapped[int] = mapped_column(IdType, ForeignKey("tbMessages.id"), nullable=False)
    emoji: Mapped[str] = mapped_column(String(32), nullable=False)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
