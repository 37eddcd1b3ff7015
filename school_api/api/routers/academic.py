# school_api/api/routers/academic.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from school_api.api.deps.auth import get_current_user, require_roles
from school_api.api.deps.tenancy import require_school
from school_api.core.db import get_db
from school_api.services.academic import get_academic_service, term_dict

router = APIRouter(prefix="/academic", tags=["Academic"])


class YearCreate(BaseModel):
    year_name: str = Field(..., min_length=1)
    start_date: date
    end_date: date
    is_current: bool = False


class TermCreate(BaseModel):
    academic_year_id: str
    term_name: str = Field(..., min_length=1)
    term_number: int = Field(..., ge=1, le=4)
    start_date: date
    end_date: date
    is_current: bool = False


class TermUpdate(BaseModel):
    term_name: Optional[str] = None
    term_number: Optional[int] = Field(None, ge=1, le=4)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_current: Optional[bool] = None


class CurriculumCreate(BaseModel):
    name: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1, max_length=16)
    description: Optional[str] = None


def _year_out(y):
    return {
        "id": y.id,
        "year_name": y.year_name,
        "start_date": y.start_date,
        "end_date": y.end_date,
        "is_current": y.is_current,
    }


@router.get("/years")
def list_years(
    school_id: str = Depends(require_school),
    ctx=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [_year_out(y) for y in get_academic_service(db, school_id).list_years()]


@router.post("/years", status_code=status.HTTP_201_CREATED)
def create_year(
    payload: YearCreate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    year = get_academic_service(db, school_id).create_year(**payload.model_dump())
    db.commit()
    return _year_out(year)


@router.get("/years/active")
def active_year(
    school_id: str = Depends(require_school),
    ctx=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = get_academic_service(db, school_id)
    year = service.get_active_year()
    current = service.get_current_term()
    if current and current.academic_year_id != year.id:
        current = None
    return {
        **_year_out(year),
        "terms": [term_dict(t) for t in year.terms],
        "current_term": term_dict(current) if current else None,
    }


@router.get("/years-with-terms")
def years_with_terms(
    school_id: str = Depends(require_school),
    ctx=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_academic_service(db, school_id).years_with_terms()


@router.get("/years/{year_id}/terms")
def list_terms(
    year_id: str,
    school_id: str = Depends(require_school),
    ctx=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [term_dict(t) for t in get_academic_service(db, school_id).list_terms(year_id)]


@router.post("/terms", status_code=status.HTTP_201_CREATED)
def create_term(
    payload: TermCreate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    term = get_academic_service(db, school_id).create_term(**payload.model_dump())
    db.commit()
    return term_dict(term)


@router.put("/terms/{term_id}")
def update_term(
    term_id: str,
    payload: TermUpdate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    term = get_academic_service(db, school_id).update_term(term_id, **payload.model_dump(exclude_unset=True))
    db.commit()
    return term_dict(term)


@router.get("/curricula")
def list_curricula(
    school_id: str = Depends(require_school),
    ctx=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [
        {"id": c.id, "name": c.name, "code": c.code, "description": c.description}
        for c in get_academic_service(db, school_id).list_curricula()
    ]


@router.post("/curricula", status_code=status.HTTP_201_CREATED)
def create_curriculum(
    payload: CurriculumCreate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    c = get_academic_service(db, school_id).create_curriculum(**payload.model_dump())
    db.commit()
    return {"id": c.id, "name": c.name, "code": c.code, "description": c.description}
