# school_api/services/audit.py
"""
Audit trail.

``record_audit`` only adds the row to the caller's session; it is committed
together with the action it describes. Paths that raise straight after
auditing (failed logins) commit explicitly.
"""

import logging
from datetime import date, datetime, time
from typing import Any, Dict, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from school_api.models.audit import AuditLog, SEVERITIES
from school_api.models.user import User

logger = logging.getLogger(__name__)


def record_audit(
    db: Session,
    *,
    action: str,
    school_id: Optional[str] = None,
    user: Optional[User] = None,
    role: Optional[str] = None,
    details: Optional[str] = None,
    ip_address: Optional[str] = None,
    severity: str = "INFO",
    actor_name: Optional[str] = None,
) -> AuditLog:
    if severity not in SEVERITIES:
        raise ValueError(f"Unknown audit severity: {severity}")

    entry = AuditLog(
        school_id=school_id,
        user_id=user.id if user else None,
        actor_name=actor_name or (user.full_name if user else None),
        role=role,
        action=action,
        details=details,
        ip_address=ip_address,
        severity=severity,
    )
    db.add(entry)
    logger.info(f"Audit {severity}: {action} (school {school_id})")
    return entry


class AuditService:
    def __init__(self, db: Session, school_id: str):
        self.db = db
        self.school_id = school_id

    def list_logs(
        self,
        severity: Optional[str] = None,
        search: Optional[str] = None,
        user_id: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Dict[str, Any]:
        query = select(AuditLog).where(AuditLog.school_id == self.school_id)

        if severity:
            query = query.where(AuditLog.severity == severity.upper())
        if user_id:
            query = query.where(AuditLog.user_id == user_id)
        if date_from:
            query = query.where(AuditLog.created_at >= datetime.combine(date_from, time.min))
        if date_to:
            query = query.where(AuditLog.created_at <= datetime.combine(date_to, time.max))
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    AuditLog.action.ilike(pattern),
                    AuditLog.details.ilike(pattern),
                    AuditLog.actor_name.ilike(pattern),
                )
            )

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
        items = self.db.execute(
            query.order_by(AuditLog.created_at.desc()).limit(limit).offset(offset)
        ).scalars().all()

        return {"total": total, "items": [audit_dict(a) for a in items]}


def audit_dict(a: AuditLog) -> Dict[str, Any]:
    return {
        "id": a.id,
        "user_id": a.user_id,
        "actor_name": a.actor_name,
        "role": a.role,
        "action": a.action,
        "details": a.details,
        "ip_address": a.ip_address,
        "severity": a.severity,
        "created_at": a.created_at,
    }


def get_audit_service(db: Session, school_id: str) -> AuditService:
    return AuditService(db, school_id)
