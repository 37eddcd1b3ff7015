# school_api/api/routers/students.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from school_api.api.deps.auth import require_roles
from school_api.api.deps.tenancy import require_school
from school_api.core.db import get_db
from school_api.schemas.student import StudentCreate, StudentOut, StudentUpdate
from school_api.services.students import get_student_service

router = APIRouter(prefix="/students", tags=["Students"])

STAFF = ("ADMIN", "TEACHER", "BURSAR")


@router.get("", response_model=List[StudentOut])
def list_students(
    search: Optional[str] = Query(None),
    class_id: Optional[str] = Query(None, alias="classId"),
    stream_id: Optional[str] = Query(None, alias="streamId"),
    student_status: Optional[str] = Query("ACTIVE", alias="status"),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles(*STAFF)),
    db: Session = Depends(get_db),
):
    return get_student_service(db, school_id).list_students(
        search=search,
        class_id=class_id,
        stream_id=stream_id,
        status=None if (student_status or "").upper() == "ALL" else student_status,
    )


@router.post("", response_model=StudentOut, status_code=status.HTTP_201_CREATED)
def create_student(
    payload: StudentCreate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    service = get_student_service(db, school_id)
    student = service.create_student(**payload.model_dump())
    db.commit()
    return service.get_student_detail(student.id)


@router.get("/{student_id}", response_model=StudentOut)
def get_student(
    student_id: str,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles(*STAFF)),
    db: Session = Depends(get_db),
):
    return get_student_service(db, school_id).get_student_detail(student_id)


@router.put("/{student_id}", response_model=StudentOut)
def update_student(
    student_id: str,
    payload: StudentUpdate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    service = get_student_service(db, school_id)
    service.update_student(student_id, **payload.model_dump(exclude_unset=True))
    db.commit()
    return service.get_student_detail(student_id)


@router.delete("/{student_id}")
def delete_student(
    student_id: str,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    result = get_student_service(db, school_id).delete_student(student_id)
    db.commit()
    return result
