# school_api/api/routers/finance_dashboard.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from school_api.api.deps.auth import require_roles
from school_api.api.deps.tenancy import require_school
from school_api.core.db import get_db
from school_api.services.finance_dashboard import get_finance_dashboard_service

router = APIRouter(prefix="/admin/finance/dashboard", tags=["Finance Dashboard"])


@router.get("/summary")
def summary(
    term_id: Optional[str] = Query(None, alias="termId"),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "BURSAR")),
    db: Session = Depends(get_db),
):
    return get_finance_dashboard_service(db, school_id).summary(term_id=term_id)


@router.get("/ledger")
def student_ledger(
    class_id: Optional[str] = Query(None, alias="classId"),
    fee_status: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "BURSAR")),
    db: Session = Depends(get_db),
):
    return get_finance_dashboard_service(db, school_id).student_ledger(
        class_id=class_id, status=fee_status, search=search
    )


@router.get("/class-summary")
def class_summary(
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "BURSAR")),
    db: Session = Depends(get_db),
):
    return get_finance_dashboard_service(db, school_id).class_summary()


@router.get("/top-debtors")
def top_debtors(
    limit: int = Query(10, ge=1, le=100),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "BURSAR")),
    db: Session = Depends(get_db),
):
    return get_finance_dashboard_service(db, school_id).top_debtors(limit)


@router.get("/recent-activities")
def recent_activities(
    limit: int = Query(10, ge=1, le=100),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "BURSAR")),
    db: Session = Depends(get_db),
):
    return get_finance_dashboard_service(db, school_id).recent_activities(limit)
