# school_api/api/routers/attendance.py
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from school_api.api.deps.auth import client_ip, has_role, require_roles
from school_api.api.deps.tenancy import require_school
from school_api.core.db import get_db
from school_api.services.attendance import get_attendance_service
from school_api.services.audit import record_audit

router = APIRouter(prefix="/attendance", tags=["Attendance"])


class AttendanceEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    student_id: str = Field(..., alias="studentId")
    status: str
    reason: Optional[str] = None


class AttendanceSubmission(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    class_id: Optional[str] = Field(None, alias="classId")
    stream_id: str = Field(..., alias="streamId")
    subject_id: Optional[str] = Field(None, alias="subjectId")
    attendance_date: date = Field(..., alias="attendanceDate")
    attendance_data: List[AttendanceEntry] = Field(..., min_length=1, alias="attendanceData")


def _save(payload: AttendanceSubmission, replace: bool, request: Request, school_id: str, ctx, db: Session):
    is_admin = has_role(ctx, "ADMIN")
    result = get_attendance_service(db, school_id).record(
        stream_id=payload.stream_id,
        attendance_date=payload.attendance_date,
        entries=[e.model_dump() for e in payload.attendance_data],
        user=ctx["user"],
        is_admin=is_admin,
        subject_id=payload.subject_id,
        class_id=payload.class_id,
        replace=replace,
    )
    record_audit(
        db,
        action="ATTENDANCE_UPDATED" if replace else "ATTENDANCE_MARKED",
        school_id=school_id,
        user=ctx["user"],
        role="ADMIN" if is_admin else "TEACHER",
        details=f"Stream {payload.stream_id} on {payload.attendance_date}: {result['failed']} failed",
        ip_address=client_ip(request),
        severity="SUCCESS" if not result["failed"] else "INFO",
    )
    db.commit()
    return result


@router.post("/mark")
def mark_attendance(
    payload: AttendanceSubmission,
    request: Request,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "TEACHER")),
    db: Session = Depends(get_db),
):
    """Mark learners for a day. Already-marked learners are reported, not overwritten."""
    return _save(payload, False, request, school_id, ctx, db)


@router.put("/bulk-update")
def update_attendance(
    payload: AttendanceSubmission,
    request: Request,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "TEACHER")),
    db: Session = Depends(get_db),
):
    return _save(payload, True, request, school_id, ctx, db)


@router.get("/by-date")
def attendance_by_date(
    stream_id: str = Query(..., alias="streamId"),
    on: date = Query(..., alias="date"),
    class_id: Optional[str] = Query(None, alias="classId"),
    subject_id: Optional[str] = Query(None, alias="subjectId"),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "TEACHER")),
    db: Session = Depends(get_db),
):
    return get_attendance_service(db, school_id).by_date(
        stream_id=stream_id,
        on=on,
        user=ctx["user"],
        is_admin=has_role(ctx, "ADMIN"),
        subject_id=subject_id,
        class_id=class_id,
    )


@router.get("/students/{student_id}")
def student_attendance(
    student_id: str,
    term_id: Optional[str] = Query(None, alias="termId"),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "TEACHER")),
    db: Session = Depends(get_db),
):
    return get_attendance_service(db, school_id).student_history(
        student_id, term_id=term_id, date_from=date_from, date_to=date_to
    )
