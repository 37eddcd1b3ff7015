# school_api/models/lesson.py
from __future__ import annotations

from datetime import date

from sqlalchemy import String, Date, ForeignKey, CheckConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column

from school_api.models.base import Base, TimestampMixin, id_column, school_column

LESSON_STATUSES = ("DRAFT", "SUBMITTED", "APPROVED", "REJECTED")


class LessonPlan(TimestampMixin, Base):
    __tablename__ = "lesson_plans"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    teacher_id: Mapped[str] = mapped_column(String(36), ForeignKey("teachers.id", ondelete="CASCADE"), index=True, nullable=False)
    subject_id: Mapped[str] = mapped_column(String(36), ForeignKey("subjects.id", ondelete="CASCADE"), index=True, nullable=False)
    stream_id: Mapped[str] = mapped_column(String(36), ForeignKey("streams.id", ondelete="CASCADE"), nullable=False)
    term_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("academic_terms.id", ondelete="SET NULL"))
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    objectives: Mapped[str] = mapped_column(Text, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    lesson_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="DRAFT")
    review_comment: Mapped[str | None] = mapped_column(Text)
    reviewed_by: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id", ondelete="SET NULL"))

    __table_args__ = (
        CheckConstraint("status IN ('DRAFT','SUBMITTED','APPROVED','REJECTED')", name="ck_lesson_plan_status"),
    )
