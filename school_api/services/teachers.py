# school_api/services/teachers.py
"""
Teacher profiles and their stream/subject/term assignments.

A teacher is a ``User`` with a ``TEACHER`` membership plus a ``Teacher``
profile row. Assignments are what authorise score, CBC and lesson work.
"""

import logging
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from school_api.core.errors import ConflictError, NotFoundError
from school_api.models.academic import AcademicTerm, AcademicYear
from school_api.models.class_model import Class, Stream
from school_api.models.school import SchoolMember
from school_api.models.subject import Subject
from school_api.models.teacher import Teacher, TeacherAssignment
from school_api.models.user import User
from school_api.services.academic import get_academic_service
from school_api.services.auth import create_user, ensure_membership
from school_api.services.classes import get_class_service
from school_api.services.subjects import get_subject_service

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("tsc_number", "qualification", "specialization", "phone")


class TeacherService:
    def __init__(self, db: Session, school_id: str):
        self.db = db
        self.school_id = school_id

    def list_teachers(self) -> List[Dict[str, Any]]:
        counts = (
            select(TeacherAssignment.teacher_id, func.count(TeacherAssignment.id).label("n"))
            .where(TeacherAssignment.school_id == self.school_id, TeacherAssignment.status == "active")
            .group_by(TeacherAssignment.teacher_id)
            .subquery()
        )
        rows = self.db.execute(
            select(Teacher, User, func.coalesce(counts.c.n, 0))
            .join(User, User.id == Teacher.user_id)
            .outerjoin(counts, counts.c.teacher_id == Teacher.id)
            .where(Teacher.school_id == self.school_id)
            .order_by(User.first_name, User.last_name)
        ).all()
        return [{**teacher_dict(t, u), "assignment_count": int(n)} for t, u, n in rows]

    def get_teacher(self, teacher_id: str) -> Teacher:
        teacher = self.db.execute(
            select(Teacher).where(Teacher.id == teacher_id, Teacher.school_id == self.school_id)
        ).scalar_one_or_none()
        if not teacher:
            raise NotFoundError("Teacher not found")
        return teacher

    def get_by_user(self, user_id: str) -> Teacher:
        teacher = self.db.execute(
            select(Teacher).where(Teacher.user_id == user_id, Teacher.school_id == self.school_id)
        ).scalar_one_or_none()
        if not teacher:
            raise NotFoundError("Teacher profile not found")
        return teacher

    def _reusable_user(self, email: str) -> Optional[User]:
        """An existing login that can take a teacher profile here, e.g. a removed teacher."""
        user = self.db.execute(select(User).where(User.email == email.lower())).scalar_one_or_none()
        if user is None:
            return None
        if self.db.execute(
            select(Teacher.id).where(Teacher.school_id == self.school_id, Teacher.user_id == user.id)
        ).first():
            raise ConflictError("This user is already a teacher at this school")
        schools = set(self.db.execute(select(SchoolMember.school_id).where(SchoolMember.user_id == user.id)).scalars())
        # accounts belonging only to other schools stay theirs
        if schools and self.school_id not in schools:
            raise ConflictError("A user with this email already exists")
        return user

    def create_teacher(
        self,
        *,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        gender: Optional[str] = None,
        **profile: Any,
    ) -> Teacher:
        user = self._reusable_user(email)
        if user is None:
            user = create_user(
                self.db,
                email=email,
                password=password,
                first_name=first_name,
                last_name=last_name,
                phone=profile.get("phone"),
                gender=gender,
            )
        else:
            logger.info(f"Re-linking existing user {user.email} as teacher in school {self.school_id}")
        ensure_membership(self.db, self.school_id, user.id, "TEACHER")

        teacher = Teacher(
            school_id=self.school_id,
            user_id=user.id,
            **{k: profile.get(k) for k in PROFILE_FIELDS},
        )
        self.db.add(teacher)
        self.db.flush()
        logger.info(f"Teacher created: {user.email} (ID: {teacher.id})")
        return teacher

    def update_teacher(self, teacher_id: str, **fields: Any) -> Teacher:
        teacher = self.get_teacher(teacher_id)
        return self._apply_profile(teacher, fields)

    def _apply_profile(self, teacher: Teacher, fields: Dict[str, Any]) -> Teacher:
        for key in PROFILE_FIELDS:
            if fields.get(key) is not None:
                setattr(teacher, key, fields[key])
        for key in ("first_name", "last_name"):
            if fields.get(key):
                setattr(teacher.user, key, fields[key])
        if fields.get("phone") is not None:
            teacher.user.phone = fields["phone"]
        self.db.flush()
        return teacher

    def update_own_profile(self, user_id: str, **fields: Any) -> Teacher:
        return self._apply_profile(self.get_by_user(user_id), fields)

    def delete_teacher(self, teacher_id: str) -> Teacher:
        """Drop the profile and the TEACHER membership; the login stays."""
        teacher = self.get_teacher(teacher_id)
        self.db.execute(
            delete(SchoolMember).where(
                SchoolMember.school_id == self.school_id,
                SchoolMember.user_id == teacher.user_id,
                SchoolMember.role == "TEACHER",
            )
        )
        self.db.delete(teacher)
        self.db.flush()
        logger.info(f"Teacher {teacher_id} removed from school {self.school_id}")
        return teacher

    # ---- assignments -------------------------------------------------------

    def assign_subjects(
        self,
        teacher_id: str,
        stream_id: str,
        subject_ids: List[str],
        term_id: str,
        is_class_teacher: bool = False,
    ) -> Dict[str, List[TeacherAssignment]]:
        teacher = self.get_teacher(teacher_id)
        stream = get_class_service(self.db, self.school_id).get_stream(stream_id)
        term = get_academic_service(self.db, self.school_id).get_term(term_id)
        subjects = get_subject_service(self.db, self.school_id)

        created: List[TeacherAssignment] = []
        existing: List[TeacherAssignment] = []
        for subject_id in dict.fromkeys(subject_ids):
            subject = subjects.get_subject(subject_id)
            current = self.db.execute(
                select(TeacherAssignment).where(
                    TeacherAssignment.teacher_id == teacher.id,
                    TeacherAssignment.stream_id == stream.id,
                    TeacherAssignment.subject_id == subject.id,
                    TeacherAssignment.term_id == term.id,
                )
            ).scalar_one_or_none()
            if current:
                if current.status != "active":
                    current.status = "active"
                existing.append(current)
                continue

            assignment = TeacherAssignment(
                school_id=self.school_id,
                teacher_id=teacher.id,
                stream_id=stream.id,
                subject_id=subject.id,
                term_id=term.id,
                is_class_teacher=is_class_teacher,
                status="active",
            )
            self.db.add(assignment)
            created.append(assignment)

        self.db.flush()
        logger.info(f"Teacher {teacher.id}: {len(created)} assignments created, {len(existing)} already existed")
        return {"created": created, "existing": existing}

    def has_assignment(
        self,
        teacher_id: str,
        stream_id: str,
        subject_id: Optional[str] = None,
        term_id: Optional[str] = None,
    ) -> bool:
        query = select(TeacherAssignment.id).where(
            TeacherAssignment.school_id == self.school_id,
            TeacherAssignment.teacher_id == teacher_id,
            TeacherAssignment.stream_id == stream_id,
            TeacherAssignment.status == "active",
        )
        if subject_id:
            query = query.where(TeacherAssignment.subject_id == subject_id)
        if term_id:
            query = query.where(TeacherAssignment.term_id == term_id)
        return self.db.execute(query).first() is not None

    def grouped_assignments(self, teacher_id: str, status: Optional[str] = None) -> List[Dict[str, Any]]:
        """Assignments nested as year -> terms -> assignments, newest year first."""
        self.get_teacher(teacher_id)
        query = (
            select(TeacherAssignment, Stream, Class, Subject, AcademicTerm, AcademicYear)
            .join(Stream, Stream.id == TeacherAssignment.stream_id)
            .join(Class, Class.id == Stream.class_id)
            .join(Subject, Subject.id == TeacherAssignment.subject_id)
            .join(AcademicTerm, AcademicTerm.id == TeacherAssignment.term_id)
            .join(AcademicYear, AcademicYear.id == AcademicTerm.academic_year_id)
            .where(TeacherAssignment.school_id == self.school_id, TeacherAssignment.teacher_id == teacher_id)
            .order_by(
                AcademicYear.start_date.desc(),
                AcademicTerm.term_number.asc(),
                Class.class_level.asc(),
                Stream.name.asc(),
                Subject.name.asc(),
            )
        )
        if status:
            query = query.where(TeacherAssignment.status == status)

        years: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        for a, stream, klass, subject, term, year in self.db.execute(query).all():
            y = years.setdefault(
                year.id,
                {
                    "year_id": year.id,
                    "year_name": year.year_name,
                    "is_current": year.is_current,
                    "terms": OrderedDict(),
                },
            )
            t = y["terms"].setdefault(
                term.id,
                {
                    "term_id": term.id,
                    "term_name": term.term_name,
                    "term_number": term.term_number,
                    "is_current": term.is_current,
                    "assignments": [],
                },
            )
            t["assignments"].append(
                {
                    "id": a.id,
                    "stream_id": stream.id,
                    "stream_name": stream.name,
                    "class_id": klass.id,
                    "class_name": klass.class_name,
                    "subject_id": subject.id,
                    "subject_name": subject.name,
                    "subject_code": subject.code,
                    "is_class_teacher": a.is_class_teacher,
                    "status": a.status,
                }
            )

        return [{**y, "terms": list(y["terms"].values())} for y in years.values()]


def teacher_dict(t: Teacher, u: Optional[User] = None) -> Dict[str, Any]:
    u = u or t.user
    return {
        "id": t.id,
        "user_id": u.id,
        "email": u.email,
        "first_name": u.first_name,
        "last_name": u.last_name,
        "full_name": u.full_name,
        "is_active": u.is_active,
        "tsc_number": t.tsc_number,
        "qualification": t.qualification,
        "specialization": t.specialization,
        "phone": t.phone or u.phone,
    }


def assignment_dict(a: TeacherAssignment) -> Dict[str, Any]:
    return {
        "id": a.id,
        "teacher_id": a.teacher_id,
        "stream_id": a.stream_id,
        "subject_id": a.subject_id,
        "term_id": a.term_id,
        "is_class_teacher": a.is_class_teacher,
        "status": a.status,
    }


def get_teacher_service(db: Session, school_id: str) -> TeacherService:
    return TeacherService(db, school_id)
