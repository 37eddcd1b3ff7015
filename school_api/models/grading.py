# school_api/models/grading.py
from __future__ import annotations

from decimal import Decimal
from typing import Literal

from sqlalchemy import String, Boolean, Integer, Numeric, ForeignKey, CheckConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from school_api.models.base import Base, TimestampMixin, id_column, school_column

# String "enums" keep migrations simple
GradingType = Literal["subject", "overall_points", "cbc"]
GRADING_TYPES = ("subject", "overall_points", "cbc")


class GradingSystem(TimestampMixin, Base):
    __tablename__ = "grading_systems"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    type: Mapped[GradingType] = mapped_column(String(16), nullable=False, default="subject")
    # NULL => applies school-wide, regardless of curriculum
    curriculum_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("curricula.id", ondelete="SET NULL"), nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    scales: Mapped[list["GradeScale"]] = relationship(
        "GradeScale",
        back_populates="system",
        cascade="all, delete-orphan",
        order_by="GradeScale.min_score.desc()",
    )

    __table_args__ = (
        CheckConstraint("type IN ('subject','overall_points','cbc')", name="ck_grading_system_type"),
    )

    def __repr__(self) -> str:
        return f"<GradingSystem id={self.id} {self.type} default={self.is_default}>"


class GradeScale(TimestampMixin, Base):
    __tablename__ = "grade_scales"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    system_id: Mapped[str] = mapped_column(String(36), ForeignKey("grading_systems.id", ondelete="CASCADE"), index=True, nullable=False)
    grade: Mapped[str] = mapped_column(String(8), nullable=False)
    min_score: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    max_score: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    remarks: Mapped[str | None] = mapped_column(Text)

    system: Mapped["GradingSystem"] = relationship("GradingSystem", back_populates="scales")

    __table_args__ = (
        CheckConstraint("min_score <= max_score", name="ck_grade_scale_range"),
    )
