# school_api/models/fee.py
from __future__ import annotations

from decimal import Decimal

from sqlalchemy import String, Boolean, Numeric, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from school_api.models.base import Base, TimestampMixin, id_column, school_column

FEE_CATEGORIES = ("TUITION", "COCURRICULAR", "OTHER")


class FeeStructure(TimestampMixin, Base):
    __tablename__ = "fee_structures"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    class_id: Mapped[str] = mapped_column(String(36), ForeignKey("classes.id", ondelete="CASCADE"), index=True, nullable=False)
    term_id: Mapped[str] = mapped_column(String(36), ForeignKey("academic_terms.id", ondelete="CASCADE"), index=True, nullable=False)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    items: Mapped[list["FeeItem"]] = relationship(
        "FeeItem", back_populates="structure", cascade="all, delete-orphan", order_by="FeeItem.category"
    )

    __table_args__ = (
        Index("uq_fee_structure_class_term", "school_id", "class_id", "term_id", unique=True),
    )


class FeeItem(TimestampMixin, Base):
    __tablename__ = "fee_items"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    fee_structure_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("fee_structures.id", ondelete="CASCADE"), index=True, nullable=False
    )
    item_name: Mapped[str] = mapped_column(String(128), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    is_optional: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    category: Mapped[str] = mapped_column(String(16), nullable=False, default="OTHER")

    structure: Mapped["FeeStructure"] = relationship("FeeStructure", back_populates="items")

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_fee_item_amount"),
        CheckConstraint("category IN ('TUITION','COCURRICULAR','OTHER')", name="ck_fee_item_category"),
    )
