# school_api/api/routers/lessons.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from school_api.api.deps.auth import client_ip, has_role, require_roles
from school_api.api.deps.tenancy import require_school
from school_api.core.db import get_db
from school_api.services.audit import record_audit
from school_api.services.lessons import get_lesson_service, lesson_dict

router = APIRouter(prefix="/lessons", tags=["Lesson Plans"])


class LessonCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subject_id: str = Field(..., alias="subjectId")
    stream_id: str = Field(..., alias="streamId")
    term_id: Optional[str] = Field(None, alias="termId")
    title: str = Field(..., min_length=1)
    objectives: str = Field(..., min_length=1)
    notes: Optional[str] = None
    lesson_date: date = Field(..., alias="lessonDate")


class LessonUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    objectives: Optional[str] = None
    notes: Optional[str] = None
    lesson_date: Optional[date] = Field(None, alias="lessonDate")


class LessonReview(BaseModel):
    approve: bool
    comment: Optional[str] = None


@router.post("", status_code=status.HTTP_201_CREATED)
def create_lesson(
    payload: LessonCreate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("TEACHER")),
    db: Session = Depends(get_db),
):
    plan = get_lesson_service(db, school_id).create_plan(ctx["user"], **payload.model_dump())
    db.commit()
    return lesson_dict(plan)


@router.get("")
def list_lessons(
    lesson_status: Optional[str] = Query(None, alias="status"),
    subject_id: Optional[str] = Query(None, alias="subjectId"),
    teacher_id: Optional[str] = Query(None, alias="teacherId"),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "TEACHER")),
    db: Session = Depends(get_db),
):
    plans = get_lesson_service(db, school_id).list_plans(
        ctx["user"],
        has_role(ctx, "ADMIN"),
        status=lesson_status,
        subject_id=subject_id,
        teacher_id=teacher_id,
    )
    return [lesson_dict(p) for p in plans]


@router.get("/{plan_id}")
def get_lesson(
    plan_id: str,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "TEACHER")),
    db: Session = Depends(get_db),
):
    return lesson_dict(get_lesson_service(db, school_id).get_visible(plan_id, ctx["user"], has_role(ctx, "ADMIN")))


@router.put("/{plan_id}")
def update_lesson(
    plan_id: str,
    payload: LessonUpdate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("TEACHER")),
    db: Session = Depends(get_db),
):
    plan = get_lesson_service(db, school_id).update_plan(plan_id, ctx["user"], **payload.model_dump())
    db.commit()
    return lesson_dict(plan)


@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_lesson(
    plan_id: str,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("TEACHER")),
    db: Session = Depends(get_db),
):
    get_lesson_service(db, school_id).delete_plan(plan_id, ctx["user"])
    db.commit()


@router.post("/{plan_id}/submit")
def submit_lesson(
    plan_id: str,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("TEACHER")),
    db: Session = Depends(get_db),
):
    plan = get_lesson_service(db, school_id).submit_plan(plan_id, ctx["user"])
    db.commit()
    return lesson_dict(plan)


@router.post("/{plan_id}/review")
def review_lesson(
    plan_id: str,
    payload: LessonReview,
    request: Request,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    plan = get_lesson_service(db, school_id).review_plan(plan_id, ctx["user"], payload.approve, payload.comment)
    record_audit(
        db,
        action="LESSON_PLAN_APPROVED" if payload.approve else "LESSON_PLAN_REJECTED",
        school_id=school_id,
        user=ctx["user"],
        role="ADMIN",
        details=f"Lesson plan '{plan.title}' marked {plan.status}",
        ip_address=client_ip(request),
        severity="SUCCESS" if payload.approve else "INFO",
    )
    db.commit()
    return lesson_dict(plan)
