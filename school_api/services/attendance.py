# school_api/services/attendance.py
"""
Stream attendance, taken per day and optionally per subject lesson.

Teachers mark the streams they are assigned to. Absent, late and sick
learners need a reason. A learner has at most one record per day for a
given lesson (or for the day itself when no subject is given).
"""

import logging
from collections import Counter
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from school_api.core.errors import NotFoundError, PermissionDeniedError, ServiceError
from school_api.models.attendance import ATTENDANCE_STATUSES, REASON_REQUIRED, Attendance
from school_api.models.class_model import Stream
from school_api.models.student import Student
from school_api.models.user import User
from school_api.services.academic import get_academic_service
from school_api.services.classes import get_class_service
from school_api.services.scores import authorize_teaching, stream_student
from school_api.services.subjects import get_subject_service
from school_api.services.teachers import get_teacher_service

logger = logging.getLogger(__name__)


def _clean_entry(entry: Dict[str, Any]) -> Tuple[str, Optional[str]]:
    status = (entry.get("status") or "").strip().upper()
    if status not in ATTENDANCE_STATUSES:
        raise ServiceError(f"status must be one of {', '.join(ATTENDANCE_STATUSES)}")
    reason = (entry.get("reason") or "").strip() or None
    if status in REASON_REQUIRED and not reason:
        raise ServiceError(f"A reason is required for {status.lower()} learners")
    return status, reason


def _student_brief(s: Student) -> Dict[str, Any]:
    return {
        "id": s.id,
        "admission_number": s.admission_number,
        "first_name": s.first_name,
        "last_name": s.last_name,
    }


def summarize(statuses: List[str]) -> Dict[str, Any]:
    counts = Counter(statuses)
    total = len(statuses)
    attended = counts["PRESENT"] + counts["LATE"]
    return {
        **{s.lower(): counts[s] for s in ATTENDANCE_STATUSES},
        "total": total,
        "attendance_rate": round(attended / total * 100, 1) if total else None,
    }


class AttendanceService:
    def __init__(self, db: Session, school_id: str):
        self.db = db
        self.school_id = school_id

    def _stream(self, stream_id: str, class_id: Optional[str] = None) -> Stream:
        stream = get_class_service(self.db, self.school_id).get_stream(stream_id)
        if class_id and stream.class_id != class_id:
            raise NotFoundError("Stream not found in this class")
        return stream

    def _authorize(self, user: User, is_admin: bool, stream_id: str, subject_id: Optional[str]) -> None:
        if is_admin:
            return
        if subject_id:
            authorize_teaching(self.db, self.school_id, user, False, stream_id, subject_id)
            return
        teachers = get_teacher_service(self.db, self.school_id)
        try:
            teacher = teachers.get_by_user(user.id)
        except NotFoundError:
            raise PermissionDeniedError("Only teachers and admins can do this")
        if not teachers.has_assignment(teacher.id, stream_id):
            raise PermissionDeniedError("You are not assigned to this stream")

    def _records_for(self, stream_id: str, on: date, subject_id: Optional[str]) -> Dict[str, Attendance]:
        query = select(Attendance).where(
            Attendance.school_id == self.school_id,
            Attendance.stream_id == stream_id,
            Attendance.attendance_date == on,
        )
        if subject_id:
            query = query.where(Attendance.subject_id == subject_id)
        else:
            query = query.where(Attendance.subject_id.is_(None))
        return {a.student_id: a for a in self.db.execute(query).scalars().all()}

    def record(
        self,
        *,
        stream_id: str,
        attendance_date: date,
        entries: List[Dict[str, Any]],
        user: User,
        is_admin: bool,
        subject_id: Optional[str] = None,
        class_id: Optional[str] = None,
        replace: bool = False,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        """
        Mark a batch (``replace=False``) or correct already-marked learners
        (``replace=True``). Bad entries are reported, the rest are saved.
        """
        stream = self._stream(stream_id, class_id)
        if subject_id:
            get_subject_service(self.db, self.school_id).get_subject(subject_id)
        if attendance_date > (today or date.today()):
            raise ServiceError("Attendance cannot be recorded for a future date")
        self._authorize(user, is_admin, stream.id, subject_id)

        existing = self._records_for(stream.id, attendance_date, subject_id)
        saved = 0
        errors: List[Dict[str, Any]] = []
        for entry in entries:
            student_id = entry.get("student_id")
            try:
                student = stream_student(self.db, self.school_id, student_id, stream.id)
                status, reason = _clean_entry(entry)
                row = existing.get(student.id)
                if replace and row is None:
                    raise ServiceError("No attendance recorded for this learner on that date")
                if not replace and row is not None:
                    raise ServiceError("Attendance already recorded for this learner on that date")
            except ServiceError as e:
                errors.append({"student_id": student_id, "error": e.message})
                continue

            if row is None:
                row = Attendance(
                    school_id=self.school_id,
                    student_id=student.id,
                    stream_id=stream.id,
                    subject_id=subject_id,
                    attendance_date=attendance_date,
                )
                self.db.add(row)
                existing[student.id] = row
            row.status = status
            row.reason = reason
            row.marked_by = user.id
            saved += 1

        self.db.flush()
        verb = "updated" if replace else "marked"
        logger.info(
            f"Attendance for stream {stream.id} on {attendance_date}: {saved} {verb}, {len(errors)} failed"
        )
        return {
            "stream_id": stream.id,
            "subject_id": subject_id,
            "attendance_date": attendance_date,
            f"{verb}_count": saved,
            "failed": len(errors),
            "errors": errors,
        }

    def by_date(
        self,
        *,
        stream_id: str,
        on: date,
        user: User,
        is_admin: bool,
        subject_id: Optional[str] = None,
        class_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Marked records for the day plus the active learners still unmarked."""
        stream = self._stream(stream_id, class_id)
        self._authorize(user, is_admin, stream.id, subject_id)

        records = self._records_for(stream.id, on, subject_id)
        students = {
            s.id: s
            for s in self.db.execute(
                select(Student).where(
                    Student.school_id == self.school_id,
                    (Student.stream_id == stream.id) | Student.id.in_(list(records)),
                )
            ).scalars().all()
        }

        attendance = [
            {**attendance_dict(a), "student": _student_brief(students[a.student_id])}
            for a in sorted(records.values(), key=lambda a: students[a.student_id].admission_number)
        ]
        unmarked = [
            {"student": _student_brief(s)}
            for s in sorted(students.values(), key=lambda s: s.admission_number)
            if s.id not in records and s.stream_id == stream.id and s.status == "ACTIVE"
        ]
        return {
            "stream_id": stream.id,
            "subject_id": subject_id,
            "date": on,
            "attendance": attendance,
            "unmarked_students": unmarked,
            "summary": {**summarize([a.status for a in records.values()]), "unmarked": len(unmarked)},
        }

    def student_history(
        self,
        student_id: str,
        term_id: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> Dict[str, Any]:
        student = self.db.execute(
            select(Student).where(Student.id == student_id, Student.school_id == self.school_id)
        ).scalar_one_or_none()
        if not student:
            raise NotFoundError("Student not found")
        if term_id:
            term = get_academic_service(self.db, self.school_id).get_term(term_id)
            date_from, date_to = term.start_date, term.end_date

        query = select(Attendance).where(
            Attendance.school_id == self.school_id, Attendance.student_id == student.id
        )
        if date_from:
            query = query.where(Attendance.attendance_date >= date_from)
        if date_to:
            query = query.where(Attendance.attendance_date <= date_to)
        rows = self.db.execute(
            query.order_by(Attendance.attendance_date.desc(), Attendance.created_at.desc())
        ).scalars().all()

        return {
            "student": _student_brief(student),
            "date_from": date_from,
            "date_to": date_to,
            "records": [attendance_dict(a) for a in rows],
            "summary": summarize([a.status for a in rows]),
        }


def attendance_dict(a: Attendance) -> Dict[str, Any]:
    return {
        "id": a.id,
        "student_id": a.student_id,
        "stream_id": a.stream_id,
        "subject_id": a.subject_id,
        "attendance_date": a.attendance_date,
        "status": a.status,
        "reason": a.reason,
        "marked_by": a.marked_by,
    }


def get_attendance_service(db: Session, school_id: str) -> AttendanceService:
    return AttendanceService(db, school_id)
