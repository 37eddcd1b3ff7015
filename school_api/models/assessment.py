# school_api/models/assessment.py
from __future__ import annotations

from decimal import Decimal

from sqlalchemy import String, Integer, Numeric, ForeignKey, Index, CheckConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column

from school_api.models.base import Base, TimestampMixin, id_column, school_column


class Assessment(TimestampMixin, Base):
    __tablename__ = "assessments"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    title: Mapped[str] = mapped_column(String(128), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False, default="exam")
    max_score: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False, default=Decimal("100"))
    subject_id: Mapped[str] = mapped_column(String(36), ForeignKey("subjects.id", ondelete="CASCADE"), index=True, nullable=False)
    term_id: Mapped[str] = mapped_column(String(36), ForeignKey("academic_terms.id", ondelete="CASCADE"), index=True, nullable=False)
    stream_id: Mapped[str] = mapped_column(String(36), ForeignKey("streams.id", ondelete="CASCADE"), index=True, nullable=False)
    created_by: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id", ondelete="SET NULL"))

    __table_args__ = (
        CheckConstraint("type IN ('exam','test','assignment')", name="ck_assessment_type"),
        CheckConstraint("max_score > 0", name="ck_assessment_max_score"),
    )


class Score(TimestampMixin, Base):
    __tablename__ = "scores"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    assessment_id: Mapped[str] = mapped_column(String(36), ForeignKey("assessments.id", ondelete="CASCADE"), index=True, nullable=False)
    student_id: Mapped[str] = mapped_column(String(36), ForeignKey("students.id", ondelete="CASCADE"), index=True, nullable=False)
    score: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    percentage: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    grade: Mapped[str] = mapped_column(String(8), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    teacher_notes: Mapped[str | None] = mapped_column(Text)
    submitted_by: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id", ondelete="SET NULL"))

    __table_args__ = (
        Index("uq_score_per_assessment_student", "assessment_id", "student_id", unique=True),
    )
