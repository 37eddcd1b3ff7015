# school_api/models/accounting.py
from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import String, Date, Numeric, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from school_api.models.base import Base, TimestampMixin, id_column, school_column


class GLAccount(Base):
    __tablename__ = "gl_accounts"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    code: Mapped[str] = mapped_column(String(16), nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)  # ASSET/LIABILITY/EQUITY/INCOME/EXPENSE

    __table_args__ = (
        Index("uq_gl_account_code_per_school", "school_id", "code", unique=True),
    )


class JournalEntry(TimestampMixin, Base):
    __tablename__ = "journal_entries"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    memo: Mapped[str | None] = mapped_column(String(255))
    # invoice / payment id the entry was posted for
    source_id: Mapped[str | None] = mapped_column(String(36), index=True)

    lines: Mapped[list["JournalLine"]] = relationship(
        "JournalLine", back_populates="entry", cascade="all, delete-orphan"
    )


class JournalLine(Base):
    __tablename__ = "journal_lines"

    id: Mapped[str] = id_column()
    school_id: Mapped[str] = school_column()
    journal_id: Mapped[str] = mapped_column(String(36), ForeignKey("journal_entries.id", ondelete="CASCADE"), index=True, nullable=False)
    account_id: Mapped[str] = mapped_column(String(36), ForeignKey("gl_accounts.id"), index=True, nullable=False)
    debit: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)
    credit: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0, nullable=False)

    entry: Mapped["JournalEntry"] = relationship("JournalEntry", back_populates="lines")
    account: Mapped["GLAccount"] = relationship("GLAccount")
