# school_api/models/cbc.py
from __future__ import annotations

from decimal import Decimal

from sqlalchemy import String, Numeric, ForeignKey, Index, CheckConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column

from school_api.models.base import Base, TimestampMixin, id_column, school_column

CBC_LEVELS = ("EE", "ME", "AE", "BE")


class CbcAssessment(TimestampMixin, Base):
    __tablename__ = "cbc_assessments"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    title: Mapped[str] = mapped_column(String(128), nullable=False)
    subject_id: Mapped[str] = mapped_column(String(36), ForeignKey("subjects.id", ondelete="CASCADE"), index=True, nullable=False)
    term_id: Mapped[str] = mapped_column(String(36), ForeignKey("academic_terms.id", ondelete="CASCADE"), index=True, nullable=False)
    stream_id: Mapped[str] = mapped_column(String(36), ForeignKey("streams.id", ondelete="CASCADE"), index=True, nullable=False)
    strand_id: Mapped[str] = mapped_column(String(36), ForeignKey("cbc_strands.id", ondelete="CASCADE"), nullable=False)
    sub_strand_id: Mapped[str] = mapped_column(String(36), ForeignKey("cbc_sub_strands.id", ondelete="CASCADE"), nullable=False)
    created_by: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id", ondelete="SET NULL"))


class CbcResult(TimestampMixin, Base):
    __tablename__ = "cbc_results"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    cbc_assessment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("cbc_assessments.id", ondelete="CASCADE"), index=True, nullable=False
    )
    student_id: Mapped[str] = mapped_column(String(36), ForeignKey("students.id", ondelete="CASCADE"), index=True, nullable=False)
    level: Mapped[str] = mapped_column(String(2), nullable=False)
    score: Mapped[Decimal] = mapped_column(Numeric(3, 2), nullable=False)
    comment: Mapped[str | None] = mapped_column(Text)
    submitted_by: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id", ondelete="SET NULL"))

    __table_args__ = (
        Index("uq_cbc_result_per_student", "cbc_assessment_id", "student_id", unique=True),
        CheckConstraint("level IN ('EE','ME','AE','BE')", name="ck_cbc_result_level"),
        CheckConstraint("score >= 1 AND score <= 4", name="ck_cbc_result_score"),
    )
