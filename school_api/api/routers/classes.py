# school_api/api/routers/classes.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from school_api.api.deps.auth import get_current_user, require_roles
from school_api.api.deps.tenancy import require_school
from school_api.core.db import get_db
from school_api.services.classes import class_dict, get_class_service, stream_dict

router = APIRouter(tags=["Classes"])


class ClassCreate(BaseModel):
    class_name: str = Field(..., min_length=1)
    class_level: int = Field(0, ge=0)
    curriculum_id: Optional[str] = None


class ClassUpdate(BaseModel):
    class_name: Optional[str] = Field(None, min_length=1)
    class_level: Optional[int] = Field(None, ge=0)
    curriculum_id: Optional[str] = None


class StreamCreate(BaseModel):
    class_id: str
    name: str = Field(..., min_length=1)
    capacity: Optional[int] = Field(None, gt=0)


@router.get("/classes")
def list_classes(
    school_id: str = Depends(require_school),
    ctx=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_class_service(db, school_id).list_classes()


@router.post("/classes", status_code=status.HTTP_201_CREATED)
def create_class(
    payload: ClassCreate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    klass = get_class_service(db, school_id).create_class(**payload.model_dump())
    db.commit()
    return class_dict(klass)


@router.put("/classes/{class_id}")
def update_class(
    class_id: str,
    payload: ClassUpdate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    klass = get_class_service(db, school_id).update_class(class_id, **payload.model_dump(exclude_unset=True))
    db.commit()
    return class_dict(klass)


@router.delete("/classes/{class_id}")
def delete_class(
    class_id: str,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    get_class_service(db, school_id).delete_class(class_id)
    db.commit()
    return {"success": True}


@router.get("/classes/{class_id}/streams")
def class_streams(
    class_id: str,
    school_id: str = Depends(require_school),
    ctx=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [stream_dict(s) for s in get_class_service(db, school_id).list_streams(class_id)]


@router.get("/streams")
def list_streams(
    class_id: Optional[str] = Query(None, alias="classId"),
    school_id: str = Depends(require_school),
    ctx=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [stream_dict(s) for s in get_class_service(db, school_id).list_streams(class_id)]


@router.post("/streams", status_code=status.HTTP_201_CREATED)
def create_stream(
    payload: StreamCreate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    stream = get_class_service(db, school_id).create_stream(**payload.model_dump())
    db.commit()
    return stream_dict(stream)


@router.delete("/streams/{stream_id}")
def delete_stream(
    stream_id: str,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    get_class_service(db, school_id).delete_stream(stream_id)
    db.commit()
    return {"success": True}
