# course_chat/infrastructure/database/models/typing_indicator_model.py

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from course_chat.infrastructure.database.base_model import BaseModel


class TypingIndicatorModel(BaseModel):
    __tablename__ = "tbTypingIndicators"

    channel_code: Mapped[str] = mapped_column(String(20), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)

    user_name: Mapped[str] = mapped_column(String(100), nullable=False)
    user_role: Mapped[str] = mapped_column(String(20), nullable=False, default="student")

    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
