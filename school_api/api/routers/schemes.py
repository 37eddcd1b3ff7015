# school_api/api/routers/schemes.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from school_api.api.deps.auth import client_ip, has_role, require_roles
from school_api.api.deps.tenancy import require_school
from school_api.core.db import get_db
from school_api.services.audit import record_audit
from school_api.services.schemes import get_scheme_service, record_dict, scheme_dict, topic_dict

router = APIRouter(prefix="/teachers/schemes", tags=["Schemes of Work"])


class SchemeCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1)
    subject_id: str = Field(..., alias="subjectId")
    class_id: str = Field(..., alias="classId")
    stream_id: Optional[str] = Field(None, alias="streamId")
    term_id: str = Field(..., alias="termId")
    description: Optional[str] = None


class SchemeUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None


class SchemeReview(BaseModel):
    approve: bool
    comment: Optional[str] = None


class TopicIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    week_number: int = Field(..., ge=1, le=20, alias="weekNumber")
    lesson_number: Optional[int] = Field(None, ge=1, alias="lessonNumber")
    topic_title: str = Field(..., min_length=1, alias="topicTitle")
    sub_topic: Optional[str] = Field(None, alias="subTopic")
    sub_strand_id: Optional[str] = Field(None, alias="subStrandId")
    learning_objectives: Optional[str] = Field(None, alias="learningObjectives")
    learning_activities: Optional[str] = Field(None, alias="learningActivities")
    resources: Optional[str] = None
    assessment_methods: Optional[str] = Field(None, alias="assessmentMethods")


class TopicUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    week_number: Optional[int] = Field(None, ge=1, le=20, alias="weekNumber")
    lesson_number: Optional[int] = Field(None, ge=1, alias="lessonNumber")
    topic_title: Optional[str] = Field(None, min_length=1, alias="topicTitle")
    sub_topic: Optional[str] = Field(None, alias="subTopic")
    sub_strand_id: Optional[str] = Field(None, alias="subStrandId")
    learning_objectives: Optional[str] = Field(None, alias="learningObjectives")
    learning_activities: Optional[str] = Field(None, alias="learningActivities")
    resources: Optional[str] = None
    assessment_methods: Optional[str] = Field(None, alias="assessmentMethods")


class RecordIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    week_number: int = Field(..., ge=1, le=20, alias="weekNumber")
    lesson_date: date = Field(..., alias="lessonDate")
    work_covered: str = Field(..., min_length=1, alias="workCovered")
    topic_id: Optional[str] = Field(None, alias="topicId")
    challenges: Optional[str] = None
    remarks: Optional[str] = None


# ---- schemes ---------------------------------------------------------------

@router.get("")
def list_schemes(
    scheme_status: Optional[str] = Query(None, alias="status"),
    term_id: Optional[str] = Query(None, alias="termId"),
    subject_id: Optional[str] = Query(None, alias="subjectId"),
    teacher_id: Optional[str] = Query(None, alias="teacherId"),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "TEACHER")),
    db: Session = Depends(get_db),
):
    service = get_scheme_service(db, school_id)
    schemes = service.list_schemes(
        ctx["user"],
        has_role(ctx, "ADMIN"),
        status=scheme_status,
        term_id=term_id,
        subject_id=subject_id,
        teacher_id=teacher_id,
    )
    return [scheme_dict(s, service.coverage(s)) for s in schemes]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_scheme(
    payload: SchemeCreate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("TEACHER")),
    db: Session = Depends(get_db),
):
    service = get_scheme_service(db, school_id)
    scheme = service.create_scheme(ctx["user"], **payload.model_dump())
    db.commit()
    return scheme_dict(scheme, service.coverage(scheme))


@router.get("/{scheme_id}")
def get_scheme(
    scheme_id: str,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "TEACHER")),
    db: Session = Depends(get_db),
):
    service = get_scheme_service(db, school_id)
    scheme = service.get_visible(scheme_id, ctx["user"], has_role(ctx, "ADMIN"))
    return scheme_dict(scheme, service.coverage(scheme))


@router.put("/{scheme_id}")
def update_scheme(
    scheme_id: str,
    payload: SchemeUpdate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("TEACHER")),
    db: Session = Depends(get_db),
):
    service = get_scheme_service(db, school_id)
    scheme = service.update_scheme(scheme_id, ctx["user"], **payload.model_dump())
    db.commit()
    return scheme_dict(scheme, service.coverage(scheme))


@router.delete("/{scheme_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_scheme(
    scheme_id: str,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("TEACHER")),
    db: Session = Depends(get_db),
):
    get_scheme_service(db, school_id).delete_scheme(scheme_id, ctx["user"])
    db.commit()


@router.post("/{scheme_id}/submit")
def submit_scheme(
    scheme_id: str,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("TEACHER")),
    db: Session = Depends(get_db),
):
    service = get_scheme_service(db, school_id)
    scheme = service.submit_scheme(scheme_id, ctx["user"])
    db.commit()
    return scheme_dict(scheme, service.coverage(scheme))


@router.post("/{scheme_id}/review")
def review_scheme(
    scheme_id: str,
    payload: SchemeReview,
    request: Request,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    service = get_scheme_service(db, school_id)
    scheme = service.review_scheme(scheme_id, ctx["user"], payload.approve, payload.comment)
    record_audit(
        db,
        action="SCHEME_APPROVED" if payload.approve else "SCHEME_REJECTED",
        school_id=school_id,
        user=ctx["user"],
        role="ADMIN",
        details=f"Scheme of work '{scheme.title}' marked {scheme.status}",
        ip_address=client_ip(request),
        severity="SUCCESS" if payload.approve else "INFO",
    )
    db.commit()
    return scheme_dict(scheme, service.coverage(scheme))


# ---- topics ----------------------------------------------------------------

@router.get("/{scheme_id}/topics")
def list_topics(
    scheme_id: str,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "TEACHER")),
    db: Session = Depends(get_db),
):
    topics = get_scheme_service(db, school_id).list_topics(scheme_id, ctx["user"], has_role(ctx, "ADMIN"))
    return [topic_dict(t) for t in topics]


@router.post("/{scheme_id}/topics", status_code=status.HTTP_201_CREATED)
def add_topic(
    scheme_id: str,
    payload: TopicIn,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("TEACHER")),
    db: Session = Depends(get_db),
):
    topic = get_scheme_service(db, school_id).add_topic(scheme_id, ctx["user"], **payload.model_dump())
    db.commit()
    return topic_dict(topic)


@router.put("/topics/{topic_id}")
def update_topic(
    topic_id: str,
    payload: TopicUpdate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("TEACHER")),
    db: Session = Depends(get_db),
):
    topic = get_scheme_service(db, school_id).update_topic(topic_id, ctx["user"], **payload.model_dump())
    db.commit()
    return topic_dict(topic)


@router.delete("/topics/{topic_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_topic(
    topic_id: str,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("TEACHER")),
    db: Session = Depends(get_db),
):
    get_scheme_service(db, school_id).delete_topic(topic_id, ctx["user"])
    db.commit()


# ---- records of work -------------------------------------------------------

@router.get("/{scheme_id}/records")
def list_records(
    scheme_id: str,
    week: Optional[int] = Query(None, ge=1),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "TEACHER")),
    db: Session = Depends(get_db),
):
    records = get_scheme_service(db, school_id).list_records(
        scheme_id, ctx["user"], has_role(ctx, "ADMIN"), week=week
    )
    return [record_dict(r) for r in records]


@router.post("/{scheme_id}/records", status_code=status.HTTP_201_CREATED)
def add_record(
    scheme_id: str,
    payload: RecordIn,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("TEACHER")),
    db: Session = Depends(get_db),
):
    record = get_scheme_service(db, school_id).add_record(scheme_id, ctx["user"], **payload.model_dump())
    db.commit()
    return record_dict(record)


@router.delete("/records/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_record(
    record_id: str,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("TEACHER")),
    db: Session = Depends(get_db),
):
    get_scheme_service(db, school_id).delete_record(record_id, ctx["user"])
    db.commit()
