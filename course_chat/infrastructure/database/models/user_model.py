# course_chat/infrastructure/database/models/user_model.py

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, UniqueConstraint, false, func
from sqlalchemy.orm import Mapped, mapped_column

from course_chat.infrastructure.database.base_model import BaseModel, IdType


class UserModel(BaseModel):
    """Mirror of the identity provider's accounts (read-only for the chat core)."""

    __tablename__ = "tbUsers"

    # uid from the external auth provider
    id: Mapped[str] = mapped_column(String(128), primary_key=True)

    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(150), nullable=True)

    # "student" | "lecturer"
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="student")
    academic_level: Mapped[str] = mapped_column(String(10), nullable=True)
    avatar: Mapped[str] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )


class UserCourseModel(BaseModel):
    __tablename__ = "tbUserCourses"
    __table_args__ = (UniqueConstraint("user_id", "course_code", "relation"),)

    id: Mapped[int] = mapped_column(IdType, primary_key=True)

    user_id: Mapped[str] = mapped_column(String(128), ForeignKey("tbUsers.id"), nullable=False)
    course_code: Mapped[str] = mapped_column(String(20), nullable=False)

    # "enrolled" | "teaching"
    relation: Mapped[str] = mapped_column(String(20), nullable=False, default="enrolled")
