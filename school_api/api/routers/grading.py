# school_api/api/routers/grading.py
from decimal import Decimal
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from school_api.api.deps.auth import get_current_user, require_roles
from school_api.api.deps.tenancy import require_school
from school_api.core.db import get_db
from school_api.services.grading import get_grading_service, scale_dict, system_dict

router = APIRouter(prefix="/grading", tags=["Grading"])

GradingTypeIn = Literal["subject", "overall_points", "cbc"]


class ScaleIn(BaseModel):
    grade: str = Field(..., min_length=1, max_length=8)
    min_score: Decimal
    max_score: Decimal
    points: int = 0
    remarks: Optional[str] = None


class SystemCreate(BaseModel):
    name: str = Field(..., min_length=1)
    type: GradingTypeIn = "subject"
    curriculum_id: Optional[str] = None
    is_default: bool = False
    scales: List[ScaleIn] = Field(..., min_length=1)


class ScaleUpdate(BaseModel):
    grade: Optional[str] = Field(None, min_length=1, max_length=8)
    min_score: Optional[Decimal] = None
    max_score: Optional[Decimal] = None
    points: Optional[int] = None


class RemarkUpdate(BaseModel):
    scale_id: str
    description: str


@router.get("/systems")
def list_systems(
    type: Optional[GradingTypeIn] = Query(None),
    curriculum_id: Optional[str] = Query(None, alias="curriculumId"),
    school_id: str = Depends(require_school),
    ctx=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    systems = get_grading_service(db, school_id).list_systems(type=type, curriculum_id=curriculum_id)
    return [system_dict(s) for s in systems]


@router.get("/systems/grouped")
def grouped_systems(
    curriculum_id: Optional[str] = Query(None, alias="curriculumId"),
    school_id: str = Depends(require_school),
    ctx=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    grouped = get_grading_service(db, school_id).group_systems_by_type(curriculum_id=curriculum_id)
    return {t: [system_dict(s) for s in systems] for t, systems in grouped.items()}


@router.get("/default")
def default_system(
    type: GradingTypeIn = Query("subject"),
    school_id: str = Depends(require_school),
    ctx=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    system = get_grading_service(db, school_id).get_default(type)
    if not system:
        raise HTTPException(status_code=404, detail=f"No default {type} grading system configured")
    return system_dict(system)


@router.post("/systems", status_code=status.HTTP_201_CREATED)
def create_system(
    payload: SystemCreate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    system = get_grading_service(db, school_id).create_system(
        name=payload.name,
        type=payload.type,
        scales=[s.model_dump() for s in payload.scales],
        curriculum_id=payload.curriculum_id,
        is_default=payload.is_default,
    )
    db.commit()
    return system_dict(system)


@router.post("/systems/{system_id}/default")
def make_default(
    system_id: str,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    system = get_grading_service(db, school_id).set_default(system_id)
    db.commit()
    return system_dict(system)


@router.put("/scale/{scale_id}")
def update_scale(
    scale_id: str,
    payload: ScaleUpdate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    scale = get_grading_service(db, school_id).update_scale(scale_id, **payload.model_dump(exclude_unset=True))
    db.commit()
    return scale_dict(scale)


@router.patch("/scales/remarks")
def update_remark(
    payload: RemarkUpdate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    scale = get_grading_service(db, school_id).update_remark(payload.scale_id, payload.description)
    db.commit()
    return scale_dict(scale)
