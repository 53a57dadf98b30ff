# course_chat/infrastructure/database/models/user_presence_model.py

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, false
from sqlalchemy.orm import Mapped, mapped_column

from course_chat.infrastructure.database.base_model import BaseModel


class UserPresenceModel(BaseModel):
    __tablename__ = "tbUserPresence"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)

    is_online: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    last_seen: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)

    # profile snippet merged on announce
    name: Mapped[str] = mapped_column(String(100), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=True)
    academic_level: Mapped[str] = mapped_column(String(10), nullable=True)
    avatar: Mapped[str] = mapped_column(String(500), nullable=True)
