# school_api/api/routers/scores.py
from decimal import Decimal
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from school_api.api.deps.auth import client_ip, has_role, require_roles
from school_api.api.deps.tenancy import require_school
from school_api.core.db import get_db
from school_api.services.audit import record_audit
from school_api.services.scores import assessment_dict, get_score_service

router = APIRouter(tags=["Assessments"])


class AssessmentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1)
    type: Literal["exam", "test", "assignment"] = "exam"
    max_score: Decimal = Field(Decimal("100"), gt=0, alias="maxScore")
    subject_id: str = Field(..., alias="subjectId")
    term_id: str = Field(..., alias="termId")
    stream_id: str = Field(..., alias="streamId")


class ScoreEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    student_id: str = Field(..., alias="studentId")
    score: Decimal
    teacher_notes: Optional[str] = Field(None, alias="teacherNotes")


class ScoreSubmission(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    assessment_id: str = Field(..., alias="assessmentId")
    subject_id: Optional[str] = Field(None, alias="subjectId")
    term_id: Optional[str] = Field(None, alias="termId")
    scores: List[ScoreEntry] = Field(..., min_length=1)


@router.post("/assessments", status_code=status.HTTP_201_CREATED)
def create_assessment(
    payload: AssessmentCreate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "TEACHER")),
    db: Session = Depends(get_db),
):
    assessment = get_score_service(db, school_id).create_assessment(
        **payload.model_dump(), user=ctx["user"], is_admin=has_role(ctx, "ADMIN")
    )
    db.commit()
    return assessment_dict(assessment)


@router.get("/assessments")
def list_assessments(
    subject_id: Optional[str] = Query(None, alias="subjectId"),
    term_id: Optional[str] = Query(None, alias="termId"),
    stream_id: Optional[str] = Query(None, alias="streamId"),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "TEACHER")),
    db: Session = Depends(get_db),
):
    rows = get_score_service(db, school_id).list_assessments(subject_id, term_id, stream_id)
    return [assessment_dict(a) for a in rows]


@router.post("/scores")
def submit_scores(
    payload: ScoreSubmission,
    request: Request,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "TEACHER")),
    db: Session = Depends(get_db),
):
    """Upsert a batch of scores. Bad entries are reported, the rest are saved."""
    result = get_score_service(db, school_id).submit_scores(
        assessment_id=payload.assessment_id,
        subject_id=payload.subject_id,
        term_id=payload.term_id,
        entries=[e.model_dump() for e in payload.scores],
        user=ctx["user"],
        is_admin=has_role(ctx, "ADMIN"),
    )
    record_audit(
        db,
        action="SCORES_SUBMITTED",
        school_id=school_id,
        user=ctx["user"],
        role="ADMIN" if has_role(ctx, "ADMIN") else "TEACHER",
        details=(
            f"Assessment {payload.assessment_id}: {result['created']} created, "
            f"{result['updated']} updated, {result['failed']} failed"
        ),
        ip_address=client_ip(request),
        severity="SUCCESS" if not result["failed"] else "INFO",
    )
    db.commit()
    return result


@router.get("/scores")
def list_scores(
    assessment_id: str = Query(..., alias="assessmentId"),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "TEACHER")),
    db: Session = Depends(get_db),
):
    return get_score_service(db, school_id).list_scores(assessment_id)


@router.get("/results/student/{student_id}")
def student_results(
    student_id: str,
    term_id: Optional[str] = Query(None, alias="termId"),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "TEACHER")),
    db: Session = Depends(get_db),
):
    return get_score_service(db, school_id).student_results(student_id, term_id=term_id)
