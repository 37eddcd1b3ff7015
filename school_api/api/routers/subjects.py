# school_api/api/routers/subjects.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from school_api.api.deps.auth import get_current_user, require_roles
from school_api.api.deps.tenancy import require_school
from school_api.core.db import get_db
from school_api.services.subjects import get_subject_service, strand_dict, subject_dict

router = APIRouter(tags=["Subjects"])


class SubjectCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=16)
    name: str = Field(..., min_length=1)
    category: str = "General"
    curriculum_id: Optional[str] = None


class SubjectUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=16)
    name: Optional[str] = None
    category: Optional[str] = None
    curriculum_id: Optional[str] = None


class StrandCreate(BaseModel):
    subject_id: str
    code: str = Field(..., min_length=1, max_length=16)
    name: str = Field(..., min_length=1)


class SubStrandCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=16)
    name: str = Field(..., min_length=1)


@router.get("/subjects")
def list_subjects(
    curriculum_id: Optional[str] = Query(None, alias="curriculumId"),
    school_id: str = Depends(require_school),
    ctx=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [subject_dict(s) for s in get_subject_service(db, school_id).list_subjects(curriculum_id=curriculum_id)]


@router.get("/subjects/category/{category}")
def subjects_by_category(
    category: str,
    school_id: str = Depends(require_school),
    ctx=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [subject_dict(s) for s in get_subject_service(db, school_id).list_subjects(category=category)]


@router.post("/subjects", status_code=status.HTTP_201_CREATED)
def create_subject(
    payload: SubjectCreate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    subject = get_subject_service(db, school_id).create_subject(**payload.model_dump())
    db.commit()
    return subject_dict(subject)


@router.put("/subjects/{subject_id}")
def update_subject(
    subject_id: str,
    payload: SubjectUpdate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    subject = get_subject_service(db, school_id).update_subject(
        subject_id, **payload.model_dump(exclude_unset=True)
    )
    db.commit()
    return subject_dict(subject)


@router.delete("/subjects/{subject_id}")
def delete_subject(
    subject_id: str,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    get_subject_service(db, school_id).delete_subject(subject_id)
    db.commit()
    return {"success": True}


# ---- CBC strands ------------------------------------------------------------

@router.get("/cbc/strands")
def list_strands(
    subject_id: Optional[str] = Query(None, alias="subjectId"),
    school_id: str = Depends(require_school),
    ctx=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [strand_dict(s) for s in get_subject_service(db, school_id).list_strands(subject_id)]


@router.post("/cbc/strands", status_code=status.HTTP_201_CREATED)
def create_strand(
    payload: StrandCreate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    strand = get_subject_service(db, school_id).create_strand(**payload.model_dump())
    db.commit()
    return strand_dict(strand)


@router.post("/cbc/strands/{strand_id}/sub-strands", status_code=status.HTTP_201_CREATED)
def create_sub_strand(
    strand_id: str,
    payload: SubStrandCreate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    sub = get_subject_service(db, school_id).create_sub_strand(strand_id, **payload.model_dump())
    db.commit()
    return {"id": sub.id, "strand_id": sub.strand_id, "code": sub.code, "name": sub.name}
