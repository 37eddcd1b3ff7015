# school_api/models/scheme.py
from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import String, Integer, Date, DateTime, ForeignKey, CheckConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from school_api.models.base import Base, TimestampMixin, id_column, school_column

SCHEME_STATUSES = ("DRAFT", "SUBMITTED", "APPROVED", "REJECTED")


class SchemeOfWork(TimestampMixin, Base):
    __tablename__ = "schemes_of_work"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    teacher_id: Mapped[str] = mapped_column(String(36), ForeignKey("teachers.id", ondelete="CASCADE"), index=True, nullable=False)
    subject_id: Mapped[str] = mapped_column(String(36), ForeignKey("subjects.id", ondelete="CASCADE"), index=True, nullable=False)
    class_id: Mapped[str] = mapped_column(String(36), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    stream_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("streams.id", ondelete="SET NULL"))
    term_id: Mapped[str] = mapped_column(String(36), ForeignKey("academic_terms.id", ondelete="CASCADE"), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="DRAFT")
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime)
    reviewed_by: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id", ondelete="SET NULL"))
    review_comment: Mapped[str | None] = mapped_column(Text)

    topics: Mapped[list["SchemeTopic"]] = relationship(
        "SchemeTopic", back_populates="scheme", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("status IN ('DRAFT','SUBMITTED','APPROVED','REJECTED')", name="ck_scheme_status"),
    )


class SchemeTopic(TimestampMixin, Base):
    __tablename__ = "scheme_topics"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    scheme_id: Mapped[str] = mapped_column(String(36), ForeignKey("schemes_of_work.id", ondelete="CASCADE"), index=True, nullable=False)
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    lesson_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    topic_title: Mapped[str] = mapped_column(String(200), nullable=False)
    sub_topic: Mapped[str | None] = mapped_column(String(200))
    sub_strand_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("cbc_sub_strands.id", ondelete="SET NULL"))
    learning_objectives: Mapped[str | None] = mapped_column(Text)
    learning_activities: Mapped[str | None] = mapped_column(Text)
    resources: Mapped[str | None] = mapped_column(Text)
    assessment_methods: Mapped[str | None] = mapped_column(Text)

    scheme: Mapped["SchemeOfWork"] = relationship("SchemeOfWork", back_populates="topics")


class RecordOfWork(TimestampMixin, Base):
    """What was actually taught, logged against an approved scheme."""

    __tablename__ = "records_of_work"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    scheme_id: Mapped[str] = mapped_column(String(36), ForeignKey("schemes_of_work.id", ondelete="CASCADE"), index=True, nullable=False)
    topic_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("scheme_topics.id", ondelete="SET NULL"))
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    lesson_date: Mapped[date] = mapped_column(Date, nullable=False)
    work_covered: Mapped[str] = mapped_column(Text, nullable=False)
    challenges: Mapped[str | None] = mapped_column(Text)
    remarks: Mapped[str | None] = mapped_column(Text)
    recorded_by: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id", ondelete="SET NULL"))
