# school_api/services/students.py
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from school_api.core.errors import ConflictError, NotFoundError, ServiceError
from school_api.models.class_model import Class, Stream
from school_api.models.payment import Invoice, Payment
from school_api.models.school import SchoolMember
from school_api.models.student import Student
from school_api.services.classes import get_class_service

logger = logging.getLogger(__name__)

STUDENT_STATUSES = ("ACTIVE", "INACTIVE")


class StudentService:
    def __init__(self, db: Session, school_id: str):
        self.db = db
        self.school_id = school_id

    def _listing_query(self):
        return (
            select(Student, Stream, Class)
            .outerjoin(Stream, Stream.id == Student.stream_id)
            .outerjoin(Class, Class.id == Stream.class_id)
            .where(Student.school_id == self.school_id)
        )

    def list_students(
        self,
        search: Optional[str] = None,
        class_id: Optional[str] = None,
        stream_id: Optional[str] = None,
        status: Optional[str] = "ACTIVE",
    ) -> List[Dict[str, Any]]:
        query = self._listing_query()
        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(
                or_(
                    Student.first_name.ilike(pattern),
                    Student.last_name.ilike(pattern),
                    Student.admission_number.ilike(pattern),
                )
            )
        if class_id:
            query = query.where(Stream.class_id == class_id)
        if stream_id:
            query = query.where(Student.stream_id == stream_id)
        if status:
            query = query.where(Student.status == status)

        rows = self.db.execute(query.order_by(Student.admission_number)).all()
        return [student_dict(s, stream, klass) for s, stream, klass in rows]

    def get_student(self, student_id: str) -> Student:
        student = self.db.execute(
            select(Student).where(Student.id == student_id, Student.school_id == self.school_id)
        ).scalar_one_or_none()
        if not student:
            raise NotFoundError("Student not found")
        return student

    def get_student_detail(self, student_id: str) -> Dict[str, Any]:
        row = self.db.execute(self._listing_query().where(Student.id == student_id)).first()
        if not row:
            raise NotFoundError("Student not found")
        return student_dict(*row)

    def _check_parent(self, parent_user_id: Optional[str]) -> None:
        if not parent_user_id:
            return
        member = self.db.execute(
            select(SchoolMember.id).where(
                SchoolMember.school_id == self.school_id,
                SchoolMember.user_id == parent_user_id,
                SchoolMember.role == "PARENT",
            )
        ).first()
        if not member:
            raise ServiceError("parent_user_id must be a parent account of this school")

    def _admission_taken(self, number: str, exclude_id: Optional[str] = None) -> bool:
        query = select(Student.id).where(Student.school_id == self.school_id, Student.admission_number == number)
        if exclude_id:
            query = query.where(Student.id != exclude_id)
        return self.db.execute(query).first() is not None

    def create_student(
        self,
        *,
        admission_number: str,
        first_name: str,
        last_name: str,
        gender: Optional[str] = None,
        date_of_birth: Optional[date] = None,
        stream_id: Optional[str] = None,
        parent_user_id: Optional[str] = None,
    ) -> Student:
        admission_number = admission_number.strip()
        if self._admission_taken(admission_number):
            raise ConflictError(f"Admission number '{admission_number}' already exists")
        if stream_id:
            get_class_service(self.db, self.school_id).get_stream(stream_id)
        self._check_parent(parent_user_id)

        student = Student(
            school_id=self.school_id,
            admission_number=admission_number,
            first_name=first_name,
            last_name=last_name,
            gender=gender,
            date_of_birth=date_of_birth,
            stream_id=stream_id,
            parent_user_id=parent_user_id,
            status="ACTIVE",
        )
        self.db.add(student)
        self.db.flush()
        logger.info(f"Student {student.admission_number} created (ID: {student.id})")
        return student

    def update_student(self, student_id: str, **fields: Any) -> Student:
        student = self.get_student(student_id)

        number = fields.get("admission_number")
        if number and number != student.admission_number:
            if self._admission_taken(number, exclude_id=student.id):
                raise ConflictError(f"Admission number '{number}' already exists")
            student.admission_number = number
        if fields.get("stream_id"):
            get_class_service(self.db, self.school_id).get_stream(fields["stream_id"])
            student.stream_id = fields["stream_id"]
        if fields.get("parent_user_id"):
            self._check_parent(fields["parent_user_id"])
            student.parent_user_id = fields["parent_user_id"]
        if fields.get("status"):
            if fields["status"] not in STUDENT_STATUSES:
                raise ServiceError(f"status must be one of {', '.join(STUDENT_STATUSES)}")
            student.status = fields["status"]
        for key in ("first_name", "last_name", "gender", "date_of_birth"):
            if fields.get(key) is not None:
                setattr(student, key, fields[key])
        self.db.flush()
        return student

    def delete_student(self, student_id: str) -> Dict[str, Any]:
        """Hard delete, unless there is financial history to keep."""
        student = self.get_student(student_id)
        has_invoices = self.db.execute(select(Invoice.id).where(Invoice.student_id == student.id)).first()
        has_payments = self.db.execute(select(Payment.id).where(Payment.student_id == student.id)).first()

        if has_invoices or has_payments:
            student.status = "INACTIVE"
            self.db.flush()
            logger.info(f"Student {student.id} has financial history, marked INACTIVE")
            return {"id": student.id, "deleted": False, "status": student.status}

        self.db.delete(student)
        self.db.flush()
        logger.info(f"Student {student_id} deleted")
        return {"id": student_id, "deleted": True, "status": None}

    def stream_students(self, stream_id: str) -> List[Dict[str, Any]]:
        return self.list_students(stream_id=stream_id)

    def children_of(self, parent_user_id: str) -> List[Dict[str, Any]]:
        rows = self.db.execute(
            self._listing_query().where(Student.parent_user_id == parent_user_id).order_by(Student.first_name)
        ).all()
        return [student_dict(s, stream, klass) for s, stream, klass in rows]


def student_dict(s: Student, stream: Optional[Stream] = None, klass: Optional[Class] = None) -> Dict[str, Any]:
    return {
        "id": s.id,
        "admission_number": s.admission_number,
        "first_name": s.first_name,
        "last_name": s.last_name,
        "full_name": s.full_name,
        "gender": s.gender,
        "date_of_birth": s.date_of_birth,
        "status": s.status,
        "stream_id": s.stream_id,
        "stream_name": stream.name if stream else None,
        "class_id": klass.id if klass else None,
        "class_name": klass.class_name if klass else None,
        "parent_user_id": s.parent_user_id,
    }


def get_student_service(db: Session, school_id: str) -> StudentService:
    return StudentService(db, school_id)
