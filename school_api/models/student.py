# school_api/models/student.py
from __future__ import annotations

from datetime import date

from sqlalchemy import String, Date, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from school_api.models.base import Base, TimestampMixin, id_column, school_column
from school_api.models.class_model import Stream


class Student(TimestampMixin, Base):
    __tablename__ = "students"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    admission_number: Mapped[str] = mapped_column(String(32), nullable=False)
    first_name: Mapped[str] = mapped_column(String(64), nullable=False)
    last_name: Mapped[str] = mapped_column(String(64), nullable=False)
    gender: Mapped[str | None] = mapped_column(String(16))
    date_of_birth: Mapped[date | None] = mapped_column(Date)
    stream_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("streams.id", ondelete="SET NULL"), index=True)
    parent_user_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id", ondelete="SET NULL"), index=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="ACTIVE")

    stream: Mapped[Stream | None] = relationship("Stream")

    __table_args__ = (
        Index("uq_admission_number_per_school", "school_id", "admission_number", unique=True),
        CheckConstraint("status IN ('ACTIVE','INACTIVE')", name="ck_student_status"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
