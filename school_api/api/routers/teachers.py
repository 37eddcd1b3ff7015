# school_api/api/routers/teachers.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from school_api.api.deps.auth import client_ip, has_role, require_roles
from school_api.api.deps.tenancy import require_school
from school_api.core.db import get_db
from school_api.core.errors import NotFoundError, PermissionDeniedError
from school_api.services.audit import record_audit
from school_api.services.classes import get_class_service
from school_api.services.students import get_student_service
from school_api.services.teachers import assignment_dict, get_teacher_service, teacher_dict

router = APIRouter(tags=["Teachers"])


class TeacherCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    gender: Optional[str] = None
    phone: Optional[str] = None
    tsc_number: Optional[str] = None
    qualification: Optional[str] = None
    specialization: Optional[str] = None


class TeacherUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    tsc_number: Optional[str] = None
    qualification: Optional[str] = None
    specialization: Optional[str] = None


class AssignSubjectsIn(BaseModel):
    teacher_id: str
    stream_id: str
    subject_ids: List[str] = Field(..., min_length=1)
    term_id: str
    is_class_teacher: bool = False


# ---- admin: teacher records -------------------------------------------------

@router.get("/auth/teachers")
def list_teachers(
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    return get_teacher_service(db, school_id).list_teachers()


@router.post("/auth/teachers", status_code=status.HTTP_201_CREATED)
def create_teacher(
    payload: TeacherCreate,
    request: Request,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    teacher = get_teacher_service(db, school_id).create_teacher(**payload.model_dump())
    record_audit(
        db,
        action="TEACHER_CREATED",
        school_id=school_id,
        user=ctx["user"],
        role="ADMIN",
        details=f"Created teacher {payload.email}",
        ip_address=client_ip(request),
        severity="SUCCESS",
    )
    db.commit()
    return teacher_dict(teacher)


@router.put("/auth/teachers/{teacher_id}")
def update_teacher(
    teacher_id: str,
    payload: TeacherUpdate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    teacher = get_teacher_service(db, school_id).update_teacher(
        teacher_id, **payload.model_dump(exclude_unset=True)
    )
    db.commit()
    return teacher_dict(teacher)


@router.delete("/auth/teachers/{teacher_id}")
def delete_teacher(
    teacher_id: str,
    request: Request,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    teacher = get_teacher_service(db, school_id).delete_teacher(teacher_id)
    record_audit(
        db,
        action="TEACHER_DELETED",
        school_id=school_id,
        user=ctx["user"],
        role="ADMIN",
        details=f"Removed teacher profile {teacher_id} (user {teacher.user_id})",
        ip_address=client_ip(request),
        severity="CRITICAL",
    )
    db.commit()
    return {"success": True}


# ---- assignments ------------------------------------------------------------

@router.post("/teachers/assign-subject")
def assign_subjects(
    payload: AssignSubjectsIn,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    result = get_teacher_service(db, school_id).assign_subjects(**payload.model_dump())
    db.commit()
    return {
        "created": [assignment_dict(a) for a in result["created"]],
        "existing": [assignment_dict(a) for a in result["existing"]],
    }


@router.get("/teachers/me/assignments")
def my_assignments(
    status: Optional[str] = Query(None),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("TEACHER")),
    db: Session = Depends(get_db),
):
    service = get_teacher_service(db, school_id)
    teacher = service.get_by_user(ctx["user"].id)
    return service.grouped_assignments(teacher.id, status=status)


@router.get("/teachers/me/profile")
def my_profile(
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("TEACHER")),
    db: Session = Depends(get_db),
):
    return teacher_dict(get_teacher_service(db, school_id).get_by_user(ctx["user"].id))


@router.put("/teachers/me/profile")
def update_my_profile(
    payload: TeacherUpdate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("TEACHER")),
    db: Session = Depends(get_db),
):
    teacher = get_teacher_service(db, school_id).update_own_profile(
        ctx["user"].id, **payload.model_dump(exclude_unset=True)
    )
    db.commit()
    return teacher_dict(teacher)


@router.get("/teachers/classes/{class_id}/streams/{stream_id}/students")
def stream_students(
    class_id: str,
    stream_id: str,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "TEACHER")),
    db: Session = Depends(get_db),
):
    stream = get_class_service(db, school_id).get_stream(stream_id)
    if stream.class_id != class_id:
        raise NotFoundError("Stream not found in this class")

    if not has_role(ctx, "ADMIN"):
        teachers = get_teacher_service(db, school_id)
        teacher = teachers.get_by_user(ctx["user"].id)
        if not teachers.has_assignment(teacher.id, stream.id):
            raise PermissionDeniedError("You are not assigned to this stream")

    return get_student_service(db, school_id).stream_students(stream.id)


@router.get("/teachers/{teacher_id}/assignments")
def teacher_assignments(
    teacher_id: str,
    status: Optional[str] = Query(None),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    return get_teacher_service(db, school_id).grouped_assignments(teacher_id, status=status)
