# school_api/services/scores.py
"""
Assessments and numeric score submission.

Scores are stored raw and as a percentage of the assessment's ``max_score``.
The percentage is graded against the school's default ``subject`` system;
a learner's mean grade comes from the default ``overall_points`` system.
"""

import logging
from collections import OrderedDict
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from school_api.core.errors import NotFoundError, PermissionDeniedError, ServiceError
from school_api.models.assessment import Assessment, Score
from school_api.models.student import Student
from school_api.models.subject import Subject
from school_api.models.user import User
from school_api.services.academic import get_academic_service
from school_api.services.classes import get_class_service
from school_api.services.grading import get_grading_service, grade_for_score
from school_api.services.subjects import get_subject_service
from school_api.services.teachers import get_teacher_service

logger = logging.getLogger(__name__)

ASSESSMENT_TYPES = ("exam", "test", "assignment")
TWO_PLACES = Decimal("0.01")


def to_percentage(score: Decimal, max_score: Decimal) -> Decimal:
    return (Decimal(score) / Decimal(max_score) * 100).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def authorize_teaching(
    db: Session,
    school_id: str,
    user: User,
    is_admin: bool,
    stream_id: str,
    subject_id: str,
    term_id: Optional[str] = None,
) -> None:
    """Admins pass; teachers need an active assignment for the stream/subject(/term)."""
    if is_admin:
        return
    teachers = get_teacher_service(db, school_id)
    try:
        teacher = teachers.get_by_user(user.id)
    except NotFoundError:
        raise PermissionDeniedError("Only teachers and admins can do this")
    if not teachers.has_assignment(teacher.id, stream_id, subject_id=subject_id, term_id=term_id):
        raise PermissionDeniedError("You are not assigned to this subject and stream for the term")


def stream_student(db: Session, school_id: str, student_id: Optional[str], stream_id: str) -> Student:
    """The active learner a batch entry refers to; must sit in the given stream."""
    if not student_id:
        raise ServiceError("studentId is required")
    student = db.execute(
        select(Student).where(Student.id == student_id, Student.school_id == school_id)
    ).scalar_one_or_none()
    if not student:
        raise ServiceError("Student not found")
    if student.stream_id != stream_id:
        raise ServiceError("Student is not in this stream")
    if student.status != "ACTIVE":
        raise ServiceError("Student is not active")
    return student


class ScoreService:
    def __init__(self, db: Session, school_id: str):
        self.db = db
        self.school_id = school_id

    # ---- assessments -------------------------------------------------------

    def create_assessment(
        self,
        *,
        title: str,
        type: str,
        max_score: Any,
        subject_id: str,
        term_id: str,
        stream_id: str,
        user: User,
        is_admin: bool,
    ) -> Assessment:
        if type not in ASSESSMENT_TYPES:
            raise ServiceError(f"type must be one of {', '.join(ASSESSMENT_TYPES)}")
        max_score = Decimal(str(max_score))
        if max_score <= 0:
            raise ServiceError("max_score must be greater than zero")

        get_subject_service(self.db, self.school_id).get_subject(subject_id)
        get_academic_service(self.db, self.school_id).get_term(term_id)
        get_class_service(self.db, self.school_id).get_stream(stream_id)
        authorize_teaching(self.db, self.school_id, user, is_admin, stream_id, subject_id, term_id)

        assessment = Assessment(
            school_id=self.school_id,
            title=title,
            type=type,
            max_score=max_score,
            subject_id=subject_id,
            term_id=term_id,
            stream_id=stream_id,
            created_by=user.id,
        )
        self.db.add(assessment)
        self.db.flush()
        logger.info(f"Assessment {assessment.id} created")
        return assessment

    def list_assessments(
        self,
        subject_id: Optional[str] = None,
        term_id: Optional[str] = None,
        stream_id: Optional[str] = None,
    ) -> List[Assessment]:
        query = select(Assessment).where(Assessment.school_id == self.school_id)
        if subject_id:
            query = query.where(Assessment.subject_id == subject_id)
        if term_id:
            query = query.where(Assessment.term_id == term_id)
        if stream_id:
            query = query.where(Assessment.stream_id == stream_id)
        return list(self.db.execute(query.order_by(Assessment.created_at.desc())).scalars().all())

    def get_assessment(self, assessment_id: str) -> Assessment:
        assessment = self.db.execute(
            select(Assessment).where(Assessment.id == assessment_id, Assessment.school_id == self.school_id)
        ).scalar_one_or_none()
        if not assessment:
            raise NotFoundError("Assessment not found")
        return assessment

    # ---- scores ------------------------------------------------------------

    def submit_scores(
        self,
        *,
        assessment_id: str,
        entries: List[Dict[str, Any]],
        user: User,
        is_admin: bool,
        subject_id: Optional[str] = None,
        term_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        assessment = self.get_assessment(assessment_id)
        if subject_id and subject_id != assessment.subject_id:
            raise ServiceError("subjectId does not match the assessment")
        if term_id and term_id != assessment.term_id:
            raise ServiceError("termId does not match the assessment")

        authorize_teaching(
            self.db, self.school_id, user, is_admin,
            assessment.stream_id, assessment.subject_id, assessment.term_id,
        )
        system = get_grading_service(self.db, self.school_id).require_default("subject")

        max_score = Decimal(assessment.max_score)
        created = updated = 0
        results: List[Dict[str, Any]] = []
        errors: List[Dict[str, Any]] = []
        # rows added in this batch, not yet flushed
        pending: Dict[str, Score] = {}

        for entry in entries:
            student_id = entry.get("student_id")
            try:
                student = stream_student(self.db, self.school_id, student_id, assessment.stream_id)
                score = Decimal(str(entry.get("score")))
                if score < 0 or score > max_score:
                    raise ServiceError(f"Score must be between 0 and {max_score}")
                percentage = to_percentage(score, max_score)
                band = grade_for_score(system, percentage)
            except (ServiceError, ArithmeticError) as e:
                message = e.message if isinstance(e, ServiceError) else "Score is not a number"
                errors.append({"student_id": student_id, "error": message})
                continue

            row = pending.get(student.id) or self.db.execute(
                select(Score).where(Score.assessment_id == assessment.id, Score.student_id == student.id)
            ).scalar_one_or_none()
            if row is None:
                row = Score(school_id=self.school_id, assessment_id=assessment.id, student_id=student.id)
                self.db.add(row)
                pending[student.id] = row
                created += 1
            else:
                updated += 1

            row.score = score
            row.percentage = percentage
            row.grade = band.grade
            row.points = band.points
            row.teacher_notes = entry.get("teacher_notes")
            row.submitted_by = user.id
            results.append(
                {
                    "student_id": student.id,
                    "score": float(score),
                    "percentage": float(percentage),
                    "grade": band.grade,
                    "points": band.points,
                }
            )

        self.db.flush()
        logger.info(
            f"Assessment {assessment.id}: {created} scores created, {updated} updated, {len(errors)} failed"
        )
        return {
            "total_processed": len(entries),
            "created": created,
            "updated": updated,
            "failed": len(errors),
            "results": results,
            "errors": errors,
        }

    def list_scores(self, assessment_id: str) -> List[Dict[str, Any]]:
        self.get_assessment(assessment_id)
        rows = self.db.execute(
            select(Score, Student)
            .join(Student, Student.id == Score.student_id)
            .where(Score.assessment_id == assessment_id, Score.school_id == self.school_id)
            .order_by(Student.first_name, Student.last_name)
        ).all()
        return [
            {
                "id": sc.id,
                "student_id": st.id,
                "student_name": st.full_name,
                "admission_number": st.admission_number,
                "score": float(sc.score),
                "percentage": float(sc.percentage),
                "grade": sc.grade,
                "points": sc.points,
                "teacher_notes": sc.teacher_notes,
            }
            for sc, st in rows
        ]

    def student_results(self, student_id: str, term_id: Optional[str] = None) -> Dict[str, Any]:
        """Per-subject averages for a learner plus a mean grade."""
        student = self.db.execute(
            select(Student).where(Student.id == student_id, Student.school_id == self.school_id)
        ).scalar_one_or_none()
        if not student:
            raise NotFoundError("Student not found")

        query = (
            select(Score, Assessment, Subject)
            .join(Assessment, Assessment.id == Score.assessment_id)
            .join(Subject, Subject.id == Assessment.subject_id)
            .where(Score.student_id == student.id, Score.school_id == self.school_id)
            .order_by(Subject.name)
        )
        if term_id:
            query = query.where(Assessment.term_id == term_id)

        by_subject: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        for score, _assessment, subject in self.db.execute(query).all():
            bucket = by_subject.setdefault(
                subject.id,
                {"subject_id": subject.id, "subject_name": subject.name, "subject_code": subject.code, "pcts": []},
            )
            bucket["pcts"].append(Decimal(score.percentage))

        grading = get_grading_service(self.db, self.school_id)
        subject_system = grading.get_default("subject")
        overall_system = grading.get_default("overall_points")

        subjects = []
        for bucket in by_subject.values():
            pcts = bucket.pop("pcts")
            average = (sum(pcts) / len(pcts)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
            band = grade_for_score(subject_system, average) if subject_system else None
            subjects.append(
                {
                    **bucket,
                    "assessments": len(pcts),
                    "average": float(average),
                    "grade": band.grade if band else None,
                    "points": band.points if band else None,
                }
            )

        mean_score = mean_grade = mean_points = None
        if subjects:
            mean = (sum(Decimal(str(s["average"])) for s in subjects) / len(subjects)).quantize(
                TWO_PLACES, rounding=ROUND_HALF_UP
            )
            mean_score = float(mean)
            points = [s["points"] for s in subjects if s["points"] is not None]
            if points:
                mean_points = round(sum(points) / len(points), 2)
            if overall_system:
                mean_grade = grade_for_score(overall_system, mean).grade

        return {
            "student_id": student.id,
            "student_name": student.full_name,
            "admission_number": student.admission_number,
            "term_id": term_id,
            "subjects": subjects,
            "mean_score": mean_score,
            "mean_points": mean_points,
            "mean_grade": mean_grade,
        }


def assessment_dict(a: Assessment) -> Dict[str, Any]:
    return {
        "id": a.id,
        "title": a.title,
        "type": a.type,
        "max_score": float(a.max_score),
        "subject_id": a.subject_id,
        "term_id": a.term_id,
        "stream_id": a.stream_id,
        "created_by": a.created_by,
        "created_at": a.created_at,
    }


def get_score_service(db: Session, school_id: str) -> ScoreService:
    return ScoreService(db, school_id)
