# school_api/models/audit.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, DateTime, Text, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from school_api.models.base import Base, id_column

SEVERITIES = ("INFO", "SUCCESS", "CRITICAL")


class AuditLog(Base):
    """Append-only trail of security and money relevant actions."""

    __tablename__ = "audit_logs"

    id: Mapped[str] = id_column()
    # nullable: failed logins against an unknown school still get recorded
    school_id: Mapped[str | None] = mapped_column(String(36), index=True)
    user_id: Mapped[str | None] = mapped_column(String(36), index=True)
    actor_name: Mapped[str | None] = mapped_column(String(128))
    role: Mapped[str | None] = mapped_column(String(16))
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    details: Mapped[str | None] = mapped_column(Text)
    ip_address: Mapped[str | None] = mapped_column(String(64))
    severity: Mapped[str] = mapped_column(String(16), nullable=False, default="INFO")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("severity IN ('INFO','SUCCESS','CRITICAL')", name="ck_audit_log_severity"),
        Index("ix_audit_logs_school_created", "school_id", "created_at"),
    )
