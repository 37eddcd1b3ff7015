# school_api/models/subject.py
from __future__ import annotations

from sqlalchemy import String, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from school_api.models.base import Base, TimestampMixin, id_column, school_column


class Subject(TimestampMixin, Base):
    __tablename__ = "subjects"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    code: Mapped[str] = mapped_column(String(16), nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False, default="General")
    curriculum_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("curricula.id", ondelete="SET NULL"), nullable=True)

    strands: Mapped[list["CbcStrand"]] = relationship(
        "CbcStrand", back_populates="subject", cascade="all, delete-orphan", order_by="CbcStrand.code"
    )

    __table_args__ = (
        Index("uq_subject_code_per_school", "school_id", "code", unique=True),
    )


class CbcStrand(TimestampMixin, Base):
    __tablename__ = "cbc_strands"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    subject_id: Mapped[str] = mapped_column(String(36), ForeignKey("subjects.id", ondelete="CASCADE"), index=True, nullable=False)
    code: Mapped[str] = mapped_column(String(16), nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)

    subject: Mapped["Subject"] = relationship("Subject", back_populates="strands")
    sub_strands: Mapped[list["CbcSubStrand"]] = relationship(
        "CbcSubStrand", back_populates="strand", cascade="all, delete-orphan", order_by="CbcSubStrand.code"
    )


class CbcSubStrand(TimestampMixin, Base):
    __tablename__ = "cbc_sub_strands"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    strand_id: Mapped[str] = mapped_column(String(36), ForeignKey("cbc_strands.id", ondelete="CASCADE"), index=True, nullable=False)
    code: Mapped[str] = mapped_column(String(16), nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)

    strand: Mapped["CbcStrand"] = relationship("CbcStrand", back_populates="sub_strands")
