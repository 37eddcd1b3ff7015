# school_api/models/payment.py
from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import String, Date, Numeric, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from school_api.models.base import Base, TimestampMixin, id_column, school_column

PAYMENT_METHODS = ("CASH", "BANK", "MPESA", "CHEQUE")
# methods whose reference must be unique and present
REFERENCED_METHODS = ("MPESA", "BANK")


class Invoice(TimestampMixin, Base):
    __tablename__ = "invoices"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    invoice_number: Mapped[str] = mapped_column(String(32), nullable=False)
    student_id: Mapped[str] = mapped_column(String(36), ForeignKey("students.id", ondelete="CASCADE"), index=True, nullable=False)
    term_id: Mapped[str] = mapped_column(String(36), ForeignKey("academic_terms.id", ondelete="CASCADE"), index=True, nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="UNPAID")
    due_date: Mapped[date | None] = mapped_column(Date)

    lines: Mapped[list["InvoiceLine"]] = relationship(
        "InvoiceLine", back_populates="invoice", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("uq_invoice_number_per_school", "school_id", "invoice_number", unique=True),
        Index("uq_invoice_student_term", "school_id", "student_id", "term_id", unique=True),
        CheckConstraint("status IN ('UNPAID','PARTIAL','PAID')", name="ck_invoice_status"),
    )

    @property
    def balance(self) -> Decimal:
        return Decimal(self.total) - Decimal(self.amount_paid)


class InvoiceLine(Base):
    __tablename__ = "invoice_lines"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    invoice_id: Mapped[str] = mapped_column(String(36), ForeignKey("invoices.id", ondelete="CASCADE"), index=True, nullable=False)
    item_name: Mapped[str] = mapped_column(String(128), nullable=False)
    category: Mapped[str] = mapped_column(String(16), nullable=False, default="OTHER")
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    invoice: Mapped["Invoice"] = relationship("Invoice", back_populates="lines")


class Payment(TimestampMixin, Base):
    __tablename__ = "payments"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    receipt_number: Mapped[str] = mapped_column(String(32), nullable=False)
    student_id: Mapped[str] = mapped_column(String(36), ForeignKey("students.id", ondelete="CASCADE"), index=True, nullable=False)
    invoice_id: Mapped[str] = mapped_column(String(36), ForeignKey("invoices.id", ondelete="CASCADE"), index=True, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    method: Mapped[str] = mapped_column(String(16), nullable=False)
    transaction_ref: Mapped[str | None] = mapped_column(String(64))
    paid_at: Mapped[date] = mapped_column(Date, nullable=False)
    recorded_by: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id", ondelete="SET NULL"))

    __table_args__ = (
        Index("uq_receipt_number_per_school", "school_id", "receipt_number", unique=True),
        Index("uq_transaction_ref_per_school", "school_id", "transaction_ref", unique=True),
        CheckConstraint("amount > 0", name="ck_payment_amount"),
        CheckConstraint("method IN ('CASH','BANK','MPESA','CHEQUE')", name="ck_payment_method"),
    )
