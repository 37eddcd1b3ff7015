# school_api/api/routers/audit.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from school_api.api.deps.auth import require_roles
from school_api.api.deps.tenancy import require_school
from school_api.core.db import get_db
from school_api.services.audit import get_audit_service

router = APIRouter(prefix="/audit-logs", tags=["Audit"])


@router.get("")
def list_audit_logs(
    severity: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None, alias="userId"),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    return get_audit_service(db, school_id).list_logs(
        severity=severity,
        search=search,
        user_id=user_id,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )
