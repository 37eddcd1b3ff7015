# school_api/models/attendance.py
from __future__ import annotations

from datetime import date

from sqlalchemy import String, Date, ForeignKey, Index, CheckConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column

from school_api.models.base import Base, TimestampMixin, id_column, school_column

ATTENDANCE_STATUSES = ("PRESENT", "LATE", "ABSENT", "SICK", "EXCUSED")
# a reason must accompany these
REASON_REQUIRED = ("ABSENT", "LATE", "SICK")


class Attendance(TimestampMixin, Base):
    """One learner's attendance for a day, optionally per subject lesson."""

    __tablename__ = "attendance"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    student_id: Mapped[str] = mapped_column(String(36), ForeignKey("students.id", ondelete="CASCADE"), index=True, nullable=False)
    stream_id: Mapped[str] = mapped_column(String(36), ForeignKey("streams.id", ondelete="CASCADE"), index=True, nullable=False)
    subject_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("subjects.id", ondelete="CASCADE"))
    attendance_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text)
    marked_by: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id", ondelete="SET NULL"))

    __table_args__ = (
        Index("ix_attendance_stream_date", "school_id", "stream_id", "attendance_date"),
        CheckConstraint(
            "status IN ('PRESENT','LATE','ABSENT','SICK','EXCUSED')", name="ck_attendance_status"
        ),
    )
