# school_api/models/school.py
from __future__ import annotations

from sqlalchemy import String, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column

from school_api.models.base import Base, TimestampMixin, id_column

ROLES = ("ADMIN", "TEACHER", "BURSAR", "PARENT")


class School(TimestampMixin, Base):
    __tablename__ = "schools"

    id: Mapped[str] = id_column()
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    slug: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    school_code: Mapped[str] = mapped_column(String(16), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(128), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32))
    address: Mapped[str | None] = mapped_column(String(256))
    website: Mapped[str | None] = mapped_column(String(256))
    curriculum_type: Mapped[str] = mapped_column(String(16), nullable=False, default="CBC")
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="KES")

    # Portal branding
    primary_color: Mapped[str | None] = mapped_column(String(16))
    portal_title: Mapped[str | None] = mapped_column(String(128))
    welcome_message: Mapped[str | None] = mapped_column(String(256))

    def __repr__(self) -> str:
        return f"<School id={self.id} slug={self.slug}>"


class SchoolMember(TimestampMixin, Base):
    __tablename__ = "school_members"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = mapped_column(String(36), ForeignKey("schools.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False)  # ADMIN|TEACHER|BURSAR|PARENT

    __table_args__ = (
        CheckConstraint("role IN ('ADMIN','TEACHER','BURSAR','PARENT')", name="ck_school_member_role"),
        Index("uq_school_member_role", "school_id", "user_id", "role", unique=True),
    )
