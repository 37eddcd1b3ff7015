# school_api/api/routers/cbc.py
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from school_api.api.deps.auth import client_ip, has_role, require_roles
from school_api.api.deps.tenancy import require_school
from school_api.core.db import get_db
from school_api.services.audit import record_audit
from school_api.services.cbc import cbc_assessment_dict, get_cbc_service

router = APIRouter(prefix="/cbc", tags=["CBC"])


class CbcAssessmentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1)
    subject_id: str = Field(..., alias="subjectId")
    term_id: str = Field(..., alias="termId")
    stream_id: str = Field(..., alias="streamId")
    strand_id: str = Field(..., alias="strandId")
    sub_strand_id: str = Field(..., alias="subStrandId")


class CbcResultEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    student_id: str = Field(..., alias="studentId")
    level: Optional[str] = None
    score: Optional[Decimal] = None
    comment: Optional[str] = None


class CbcResultSubmission(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cbc_assessment_id: str = Field(..., alias="cbcAssessmentId")
    results: List[CbcResultEntry] = Field(..., min_length=1)


@router.post("/assessments", status_code=status.HTTP_201_CREATED)
def create_cbc_assessment(
    payload: CbcAssessmentCreate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "TEACHER")),
    db: Session = Depends(get_db),
):
    assessment = get_cbc_service(db, school_id).create_assessment(
        **payload.model_dump(), user=ctx["user"], is_admin=has_role(ctx, "ADMIN")
    )
    db.commit()
    return cbc_assessment_dict(assessment)


@router.get("/assessments")
def list_cbc_assessments(
    subject_id: Optional[str] = Query(None, alias="subjectId"),
    term_id: Optional[str] = Query(None, alias="termId"),
    stream_id: Optional[str] = Query(None, alias="streamId"),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "TEACHER")),
    db: Session = Depends(get_db),
):
    rows = get_cbc_service(db, school_id).list_assessments(subject_id, term_id, stream_id)
    return [cbc_assessment_dict(a) for a in rows]


@router.post("/results")
def submit_cbc_results(
    payload: CbcResultSubmission,
    request: Request,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "TEACHER")),
    db: Session = Depends(get_db),
):
    is_admin = has_role(ctx, "ADMIN")
    result = get_cbc_service(db, school_id).submit_results(
        cbc_assessment_id=payload.cbc_assessment_id,
        entries=[e.model_dump() for e in payload.results],
        user=ctx["user"],
        is_admin=is_admin,
    )
    record_audit(
        db,
        action="CBC_RESULTS_SUBMITTED",
        school_id=school_id,
        user=ctx["user"],
        role="ADMIN" if is_admin else "TEACHER",
        details=(
            f"CBC assessment {payload.cbc_assessment_id}: {result['created']} created, "
            f"{result['updated']} updated, {result['failed']} failed"
        ),
        ip_address=client_ip(request),
        severity="SUCCESS" if not result["failed"] else "INFO",
    )
    db.commit()
    return result


@router.get("/results")
def list_cbc_results(
    cbc_assessment_id: str = Query(..., alias="cbcAssessmentId"),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "TEACHER")),
    db: Session = Depends(get_db),
):
    return get_cbc_service(db, school_id).list_results(cbc_assessment_id)
