# school_api/services/schemes.py
"""
Schemes of work: a teacher's term plan for one subject and class, broken
into weekly topics, reviewed like lesson plans, then followed up with
records of the work actually covered.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from school_api.core.errors import ConflictError, NotFoundError, PermissionDeniedError, ServiceError
from school_api.models.class_model import Stream
from school_api.models.scheme import RecordOfWork, SchemeOfWork, SchemeTopic
from school_api.models.teacher import Teacher, TeacherAssignment
from school_api.models.user import User
from school_api.services.academic import get_academic_service
from school_api.services.classes import get_class_service
from school_api.services.lessons import EDITABLE, check_transition
from school_api.services.scores import authorize_teaching
from school_api.services.subjects import get_subject_service
from school_api.services.teachers import get_teacher_service

logger = logging.getLogger(__name__)

TOPIC_FIELDS = (
    "week_number", "lesson_number", "topic_title", "sub_topic", "sub_strand_id",
    "learning_objectives", "learning_activities", "resources", "assessment_methods",
)


class SchemeService:
    def __init__(self, db: Session, school_id: str):
        self.db = db
        self.school_id = school_id

    def _teacher_for(self, user: User) -> Teacher:
        try:
            return get_teacher_service(self.db, self.school_id).get_by_user(user.id)
        except NotFoundError:
            raise PermissionDeniedError("Only teachers can manage schemes of work")

    def get_scheme(self, scheme_id: str) -> SchemeOfWork:
        scheme = self.db.execute(
            select(SchemeOfWork).where(SchemeOfWork.id == scheme_id, SchemeOfWork.school_id == self.school_id)
        ).scalar_one_or_none()
        if not scheme:
            raise NotFoundError("Scheme of work not found")
        return scheme

    def get_visible(self, scheme_id: str, user: User, is_admin: bool) -> SchemeOfWork:
        scheme = self.get_scheme(scheme_id)
        if not is_admin and scheme.teacher_id != self._teacher_for(user).id:
            raise NotFoundError("Scheme of work not found")
        return scheme

    def _owned(self, scheme_id: str, user: User, editable: bool = False) -> SchemeOfWork:
        scheme = self.get_scheme(scheme_id)
        if scheme.teacher_id != self._teacher_for(user).id:
            raise PermissionDeniedError("Only the owner can change this scheme of work")
        if editable and scheme.status not in EDITABLE:
            raise ConflictError(f"A {scheme.status} scheme of work cannot be changed")
        return scheme

    def _teaches_class(self, teacher_id: str, subject_id: str, class_id: str, term_id: str) -> bool:
        return self.db.execute(
            select(TeacherAssignment.id)
            .join(Stream, Stream.id == TeacherAssignment.stream_id)
            .where(
                TeacherAssignment.school_id == self.school_id,
                TeacherAssignment.teacher_id == teacher_id,
                TeacherAssignment.subject_id == subject_id,
                TeacherAssignment.term_id == term_id,
                TeacherAssignment.status == "active",
                Stream.class_id == class_id,
            )
        ).first() is not None

    # ---- schemes -----------------------------------------------------------

    def list_schemes(
        self,
        user: User,
        is_admin: bool,
        status: Optional[str] = None,
        term_id: Optional[str] = None,
        subject_id: Optional[str] = None,
        teacher_id: Optional[str] = None,
    ) -> List[SchemeOfWork]:
        query = select(SchemeOfWork).where(SchemeOfWork.school_id == self.school_id)
        if is_admin:
            if teacher_id:
                query = query.where(SchemeOfWork.teacher_id == teacher_id)
        else:
            query = query.where(SchemeOfWork.teacher_id == self._teacher_for(user).id)
        if status:
            query = query.where(SchemeOfWork.status == status.upper())
        if term_id:
            query = query.where(SchemeOfWork.term_id == term_id)
        if subject_id:
            query = query.where(SchemeOfWork.subject_id == subject_id)
        return list(self.db.execute(query.order_by(SchemeOfWork.created_at.desc())).scalars().all())

    def create_scheme(
        self,
        user: User,
        *,
        title: str,
        subject_id: str,
        class_id: str,
        term_id: str,
        stream_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> SchemeOfWork:
        teacher = self._teacher_for(user)
        get_subject_service(self.db, self.school_id).get_subject(subject_id)
        get_class_service(self.db, self.school_id).get_class(class_id)
        get_academic_service(self.db, self.school_id).get_term(term_id)

        if stream_id:
            stream = get_class_service(self.db, self.school_id).get_stream(stream_id)
            if stream.class_id != class_id:
                raise ServiceError("Stream does not belong to this class")
            authorize_teaching(self.db, self.school_id, user, False, stream_id, subject_id, term_id)
        elif not self._teaches_class(teacher.id, subject_id, class_id, term_id):
            raise PermissionDeniedError("You are not assigned to this subject and class for the term")

        scheme = SchemeOfWork(
            school_id=self.school_id,
            teacher_id=teacher.id,
            subject_id=subject_id,
            class_id=class_id,
            stream_id=stream_id,
            term_id=term_id,
            title=title,
            description=description,
            status="DRAFT",
        )
        self.db.add(scheme)
        self.db.flush()
        logger.info(f"Scheme of work {scheme.id} created by teacher {teacher.id}")
        return scheme

    def update_scheme(self, scheme_id: str, user: User, **fields: Any) -> SchemeOfWork:
        scheme = self._owned(scheme_id, user, editable=True)
        for key in ("title", "description"):
            if fields.get(key) is not None:
                setattr(scheme, key, fields[key])
        self.db.flush()
        return scheme

    def delete_scheme(self, scheme_id: str, user: User) -> None:
        scheme = self._owned(scheme_id, user, editable=True)
        self.db.delete(scheme)
        self.db.flush()

    def submit_scheme(self, scheme_id: str, user: User) -> SchemeOfWork:
        scheme = self._owned(scheme_id, user)
        check_transition(scheme.status, "SUBMITTED", "scheme of work")
        if not self.coverage(scheme)["topics_count"]:
            raise ServiceError("Add at least one topic before submitting")
        scheme.status = "SUBMITTED"
        scheme.submitted_at = datetime.utcnow()
        scheme.review_comment = None
        self.db.flush()
        logger.info(f"Scheme of work {scheme.id} submitted for approval")
        return scheme

    def review_scheme(
        self, scheme_id: str, reviewer: User, approve: bool, comment: Optional[str] = None
    ) -> SchemeOfWork:
        scheme = self.get_scheme(scheme_id)
        target = "APPROVED" if approve else "REJECTED"
        check_transition(scheme.status, target, "scheme of work")
        scheme.status = target
        scheme.review_comment = comment
        scheme.reviewed_by = reviewer.id
        scheme.reviewed_at = datetime.utcnow()
        self.db.flush()
        logger.info(f"Scheme of work {scheme.id} {target.lower()}")
        return scheme

    # ---- topics ------------------------------------------------------------

    def _topic(self, topic_id: str) -> SchemeTopic:
        topic = self.db.execute(
            select(SchemeTopic).where(SchemeTopic.id == topic_id, SchemeTopic.school_id == self.school_id)
        ).scalar_one_or_none()
        if not topic:
            raise NotFoundError("Topic not found")
        return topic

    def _check_topic(self, scheme: SchemeOfWork, fields: Dict[str, Any], topic_id: Optional[str] = None) -> None:
        if fields.get("sub_strand_id"):
            subjects = get_subject_service(self.db, self.school_id)
            sub = subjects.get_sub_strand(fields["sub_strand_id"])
            if subjects.get_strand(sub.strand_id).subject_id != scheme.subject_id:
                raise ServiceError("Sub-strand belongs to a different subject")
        clash = self.db.execute(
            select(SchemeTopic.id).where(
                SchemeTopic.scheme_id == scheme.id,
                SchemeTopic.week_number == fields["week_number"],
                SchemeTopic.lesson_number == fields["lesson_number"],
                SchemeTopic.id != (topic_id or ""),
            )
        ).first()
        if clash:
            raise ConflictError(
                f"Week {fields['week_number']} lesson {fields['lesson_number']} already has a topic"
            )

    def list_topics(self, scheme_id: str, user: User, is_admin: bool) -> List[SchemeTopic]:
        scheme = self.get_visible(scheme_id, user, is_admin)
        return list(
            self.db.execute(
                select(SchemeTopic)
                .where(SchemeTopic.scheme_id == scheme.id)
                .order_by(SchemeTopic.week_number, SchemeTopic.lesson_number)
            ).scalars().all()
        )

    def add_topic(self, scheme_id: str, user: User, **fields: Any) -> SchemeTopic:
        scheme = self._owned(scheme_id, user, editable=True)
        fields["lesson_number"] = fields.get("lesson_number") or 1
        self._check_topic(scheme, fields)
        topic = SchemeTopic(
            school_id=self.school_id, scheme_id=scheme.id, **{k: fields.get(k) for k in TOPIC_FIELDS}
        )
        self.db.add(topic)
        self.db.flush()
        return topic

    def update_topic(self, topic_id: str, user: User, **fields: Any) -> SchemeTopic:
        topic = self._topic(topic_id)
        scheme = self._owned(topic.scheme_id, user, editable=True)
        merged = {k: getattr(topic, k) for k in TOPIC_FIELDS}
        merged.update({k: v for k, v in fields.items() if k in TOPIC_FIELDS and v is not None})
        self._check_topic(scheme, merged, topic_id=topic.id)
        for key, value in merged.items():
            setattr(topic, key, value)
        self.db.flush()
        return topic

    def delete_topic(self, topic_id: str, user: User) -> None:
        topic = self._topic(topic_id)
        self._owned(topic.scheme_id, user, editable=True)
        self.db.delete(topic)
        self.db.flush()

    # ---- records of work ---------------------------------------------------

    def list_records(
        self, scheme_id: str, user: User, is_admin: bool, week: Optional[int] = None
    ) -> List[RecordOfWork]:
        scheme = self.get_visible(scheme_id, user, is_admin)
        query = select(RecordOfWork).where(RecordOfWork.scheme_id == scheme.id)
        if week:
            query = query.where(RecordOfWork.week_number == week)
        return list(
            self.db.execute(query.order_by(RecordOfWork.lesson_date, RecordOfWork.created_at)).scalars().all()
        )

    def add_record(
        self,
        scheme_id: str,
        user: User,
        *,
        week_number: int,
        lesson_date: date,
        work_covered: str,
        topic_id: Optional[str] = None,
        challenges: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> RecordOfWork:
        scheme = self._owned(scheme_id, user)
        if scheme.status != "APPROVED":
            raise ConflictError("Work can only be recorded against an approved scheme")
        if topic_id and self._topic(topic_id).scheme_id != scheme.id:
            raise ServiceError("Topic does not belong to this scheme")
        term = get_academic_service(self.db, self.school_id).get_term(scheme.term_id)
        if not term.start_date <= lesson_date <= term.end_date:
            raise ServiceError("Lesson date falls outside the scheme's term")

        record = RecordOfWork(
            school_id=self.school_id,
            scheme_id=scheme.id,
            topic_id=topic_id,
            week_number=week_number,
            lesson_date=lesson_date,
            work_covered=work_covered,
            challenges=challenges,
            remarks=remarks,
            recorded_by=user.id,
        )
        self.db.add(record)
        self.db.flush()
        logger.info(f"Record of work {record.id} added to scheme {scheme.id}")
        return record

    def delete_record(self, record_id: str, user: User) -> None:
        record = self.db.execute(
            select(RecordOfWork).where(RecordOfWork.id == record_id, RecordOfWork.school_id == self.school_id)
        ).scalar_one_or_none()
        if not record:
            raise NotFoundError("Record of work not found")
        self._owned(record.scheme_id, user)
        self.db.delete(record)
        self.db.flush()

    def coverage(self, scheme: SchemeOfWork) -> Dict[str, Any]:
        total = self.db.execute(
            select(func.count(SchemeTopic.id)).where(SchemeTopic.scheme_id == scheme.id)
        ).scalar_one()
        covered = self.db.execute(
            select(func.count(func.distinct(RecordOfWork.topic_id))).where(
                RecordOfWork.scheme_id == scheme.id, RecordOfWork.topic_id.is_not(None)
            )
        ).scalar_one()
        return {
            "topics_count": total,
            "covered_topics": covered,
            "coverage_percentage": round(covered / total * 100, 1) if total else 0.0,
        }


def scheme_dict(s: SchemeOfWork, coverage: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "id": s.id,
        "teacher_id": s.teacher_id,
        "subject_id": s.subject_id,
        "class_id": s.class_id,
        "stream_id": s.stream_id,
        "term_id": s.term_id,
        "title": s.title,
        "description": s.description,
        "status": s.status,
        "submitted_at": s.submitted_at,
        "reviewed_at": s.reviewed_at,
        "reviewed_by": s.reviewed_by,
        "review_comment": s.review_comment,
        "created_at": s.created_at,
        **(coverage or {}),
    }


def topic_dict(t: SchemeTopic) -> Dict[str, Any]:
    return {"id": t.id, "scheme_id": t.scheme_id, **{k: getattr(t, k) for k in TOPIC_FIELDS}}


def record_dict(r: RecordOfWork) -> Dict[str, Any]:
    return {
        "id": r.id,
        "scheme_id": r.scheme_id,
        "topic_id": r.topic_id,
        "week_number": r.week_number,
        "lesson_date": r.lesson_date,
        "work_covered": r.work_covered,
        "challenges": r.challenges,
        "remarks": r.remarks,
        "recorded_by": r.recorded_by,
        "created_at": r.created_at,
    }


def get_scheme_service(db: Session, school_id: str) -> SchemeService:
    return SchemeService(db, school_id)
