# school_api/models/academic.py
from __future__ import annotations

from datetime import date

from sqlalchemy import String, Integer, Boolean, Date, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from school_api.models.base import Base, TimestampMixin, id_column, school_column


class Curriculum(TimestampMixin, Base):
    __tablename__ = "curricula"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    code: Mapped[str] = mapped_column(String(16), nullable=False)  # CBC, 8-4-4
    description: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (
        Index("uq_curriculum_code_per_school", "school_id", "code", unique=True),
    )


class AcademicYear(TimestampMixin, Base):
    __tablename__ = "academic_years"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    year_name: Mapped[str] = mapped_column(String(32), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    terms: Mapped[list["AcademicTerm"]] = relationship(
        "AcademicTerm",
        back_populates="year",
        cascade="all, delete-orphan",
        order_by="AcademicTerm.term_number",
    )

    __table_args__ = (
        Index("uq_academic_year_name_per_school", "school_id", "year_name", unique=True),
    )


class AcademicTerm(TimestampMixin, Base):
    __tablename__ = "academic_terms"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    academic_year_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("academic_years.id", ondelete="CASCADE"), index=True, nullable=False
    )
    term_name: Mapped[str] = mapped_column(String(32), nullable=False)
    term_number: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    year: Mapped["AcademicYear"] = relationship("AcademicYear", back_populates="terms")

    __table_args__ = (
        Index("uq_term_number_per_year", "school_id", "academic_year_id", "term_number", unique=True),
    )
