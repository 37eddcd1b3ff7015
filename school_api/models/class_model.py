# school_api/models/class_model.py
from __future__ import annotations

from sqlalchemy import String, Integer, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from school_api.models.base import Base, TimestampMixin, id_column, school_column


class Class(TimestampMixin, Base):
    __tablename__ = "classes"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    class_name: Mapped[str] = mapped_column(String(64), nullable=False)
    class_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    curriculum_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("curricula.id", ondelete="SET NULL"), nullable=True)

    streams: Mapped[list["Stream"]] = relationship(
        "Stream", back_populates="class_", cascade="all, delete-orphan", order_by="Stream.name"
    )

    __table_args__ = (
        Index("uq_class_name_per_school", "school_id", "class_name", unique=True),
    )


class Stream(TimestampMixin, Base):
    __tablename__ = "streams"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    class_id: Mapped[str] = mapped_column(String(36), ForeignKey("classes.id", ondelete="CASCADE"), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(32), nullable=False)
    capacity: Mapped[int | None] = mapped_column(Integer)

    class_: Mapped["Class"] = relationship("Class", back_populates="streams")

    __table_args__ = (
        Index("uq_stream_name_per_class", "class_id", "name", unique=True),
    )
