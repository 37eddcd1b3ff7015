# school_api/models/teacher.py
from __future__ import annotations

from sqlalchemy import String, Boolean, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from school_api.models.base import Base, TimestampMixin, id_column, school_column
from school_api.models.user import User


class Teacher(TimestampMixin, Base):
    __tablename__ = "teachers"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    tsc_number: Mapped[str | None] = mapped_column(String(32))
    qualification: Mapped[str | None] = mapped_column(String(128))
    specialization: Mapped[str | None] = mapped_column(String(128))
    phone: Mapped[str | None] = mapped_column(String(32))

    user: Mapped["User"] = relationship("User")
    assignments: Mapped[list["TeacherAssignment"]] = relationship(
        "TeacherAssignment", back_populates="teacher", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("uq_teacher_user_per_school", "school_id", "user_id", unique=True),
    )


class TeacherAssignment(TimestampMixin, Base):
    __tablename__ = "teacher_assignments"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    teacher_id: Mapped[str] = mapped_column(String(36), ForeignKey("teachers.id", ondelete="CASCADE"), index=True, nullable=False)
    stream_id: Mapped[str] = mapped_column(String(36), ForeignKey("streams.id", ondelete="CASCADE"), index=True, nullable=False)
    subject_id: Mapped[str] = mapped_column(String(36), ForeignKey("subjects.id", ondelete="CASCADE"), index=True, nullable=False)
    term_id: Mapped[str] = mapped_column(String(36), ForeignKey("academic_terms.id", ondelete="CASCADE"), index=True, nullable=False)
    is_class_teacher: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")

    teacher: Mapped["Teacher"] = relationship("Teacher", back_populates="assignments")

    __table_args__ = (
        Index("uq_teacher_assignment", "teacher_id", "stream_id", "subject_id", "term_id", unique=True),
        CheckConstraint("status IN ('active','inactive')", name="ck_teacher_assignment_status"),
    )
