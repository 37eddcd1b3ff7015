# school_api/api/routers/parents.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from school_api.api.deps.auth import require_roles
from school_api.api.deps.tenancy import require_school
from school_api.core.db import get_db
from school_api.services.parents import get_parent_service

router = APIRouter(prefix="/parents", tags=["Parents"])


@router.get("/me/children")
def my_children(
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("PARENT")),
    db: Session = Depends(get_db),
):
    return get_parent_service(db, school_id).children(ctx["user"])


@router.get("/children/{student_id}/results")
def child_results(
    student_id: str,
    term_id: Optional[str] = Query(None, alias="termId"),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("PARENT")),
    db: Session = Depends(get_db),
):
    return get_parent_service(db, school_id).child_results(ctx["user"], student_id, term_id=term_id)


@router.get("/children/{student_id}/fee-balance")
def child_fee_balance(
    student_id: str,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("PARENT")),
    db: Session = Depends(get_db),
):
    return get_parent_service(db, school_id).child_fee_balance(ctx["user"], student_id)


@router.get("/children/{student_id}/attendance")
def child_attendance(
    student_id: str,
    term_id: Optional[str] = Query(None, alias="termId"),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("PARENT")),
    db: Session = Depends(get_db),
):
    return get_parent_service(db, school_id).child_attendance(ctx["user"], student_id, term_id=term_id)
