# school_api/services/cbc.py
"""CBC competency assessments: rubric levels EE / ME / AE / BE on a 1-4 scale."""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from school_api.core.errors import NotFoundError, ServiceError
from school_api.models.cbc import CBC_LEVELS, CbcAssessment, CbcResult
from school_api.models.grading import GradingSystem
from school_api.models.student import Student
from school_api.models.user import User
from school_api.services.academic import get_academic_service
from school_api.services.classes import get_class_service
from school_api.services.grading import grade_for_score, get_grading_service
from school_api.services.scores import authorize_teaching, stream_student
from school_api.services.subjects import get_subject_service

logger = logging.getLogger(__name__)

# Used when a school has no default cbc grading system
LEVEL_THRESHOLDS = [("EE", Decimal("3.5")), ("ME", Decimal("2.5")), ("AE", Decimal("1.5")), ("BE", Decimal("0"))]
LEVEL_SCORES = {"EE": 4, "ME": 3, "AE": 2, "BE": 1}


def level_for_score(score: Any, system: Optional[GradingSystem] = None) -> str:
    value = Decimal(str(score))
    if value < 1 or value > 4:
        raise ServiceError("CBC scores must be between 1 and 4")
    if system is not None and system.scales:
        return grade_for_score(system, value).grade
    for level, threshold in LEVEL_THRESHOLDS:
        if value >= threshold:
            return level
    return "BE"


def score_for_level(level: str, system: Optional[GradingSystem] = None) -> int:
    level = (level or "").upper()
    if level not in CBC_LEVELS:
        raise ServiceError(f"level must be one of {', '.join(CBC_LEVELS)}")
    if system is not None:
        for scale in system.scales:
            if scale.grade == level:
                return scale.points
    return LEVEL_SCORES[level]


class CbcService:
    def __init__(self, db: Session, school_id: str):
        self.db = db
        self.school_id = school_id

    def _rubric(self) -> Optional[GradingSystem]:
        return get_grading_service(self.db, self.school_id).get_default("cbc")

    def create_assessment(
        self,
        *,
        title: str,
        subject_id: str,
        term_id: str,
        stream_id: str,
        strand_id: str,
        sub_strand_id: str,
        user: User,
        is_admin: bool,
    ) -> CbcAssessment:
        subjects = get_subject_service(self.db, self.school_id)
        subject = subjects.get_subject(subject_id)
        strand = subjects.get_strand(strand_id)
        sub_strand = subjects.get_sub_strand(sub_strand_id)
        if strand.subject_id != subject.id:
            raise ServiceError("Strand does not belong to the subject")
        if sub_strand.strand_id != strand.id:
            raise ServiceError("Sub-strand does not belong to the strand")

        get_academic_service(self.db, self.school_id).get_term(term_id)
        get_class_service(self.db, self.school_id).get_stream(stream_id)
        authorize_teaching(self.db, self.school_id, user, is_admin, stream_id, subject_id, term_id)

        assessment = CbcAssessment(
            school_id=self.school_id,
            title=title,
            subject_id=subject.id,
            term_id=term_id,
            stream_id=stream_id,
            strand_id=strand.id,
            sub_strand_id=sub_strand.id,
            created_by=user.id,
        )
        self.db.add(assessment)
        self.db.flush()
        return assessment

    def list_assessments(
        self,
        subject_id: Optional[str] = None,
        term_id: Optional[str] = None,
        stream_id: Optional[str] = None,
    ) -> List[CbcAssessment]:
        query = select(CbcAssessment).where(CbcAssessment.school_id == self.school_id)
        if subject_id:
            query = query.where(CbcAssessment.subject_id == subject_id)
        if term_id:
            query = query.where(CbcAssessment.term_id == term_id)
        if stream_id:
            query = query.where(CbcAssessment.stream_id == stream_id)
        return list(self.db.execute(query.order_by(CbcAssessment.created_at.desc())).scalars().all())

    def get_assessment(self, assessment_id: str) -> CbcAssessment:
        assessment = self.db.execute(
            select(CbcAssessment).where(CbcAssessment.id == assessment_id, CbcAssessment.school_id == self.school_id)
        ).scalar_one_or_none()
        if not assessment:
            raise NotFoundError("CBC assessment not found")
        return assessment

    def submit_results(
        self,
        *,
        cbc_assessment_id: str,
        entries: List[Dict[str, Any]],
        user: User,
        is_admin: bool,
    ) -> Dict[str, Any]:
        assessment = self.get_assessment(cbc_assessment_id)
        authorize_teaching(
            self.db, self.school_id, user, is_admin,
            assessment.stream_id, assessment.subject_id, assessment.term_id,
        )
        rubric = self._rubric()

        created = updated = 0
        results: List[Dict[str, Any]] = []
        errors: List[Dict[str, Any]] = []
        pending: Dict[str, CbcResult] = {}

        for entry in entries:
            student_id = entry.get("student_id")
            try:
                student = stream_student(self.db, self.school_id, student_id, assessment.stream_id)
                level, score = self._resolve(entry, rubric)
            except (ServiceError, ArithmeticError) as e:
                message = e.message if isinstance(e, ServiceError) else "Score is not a number"
                errors.append({"student_id": student_id, "error": message})
                continue

            row = pending.get(student.id) or self.db.execute(
                select(CbcResult).where(
                    CbcResult.cbc_assessment_id == assessment.id, CbcResult.student_id == student.id
                )
            ).scalar_one_or_none()
            if row is None:
                row = CbcResult(school_id=self.school_id, cbc_assessment_id=assessment.id, student_id=student.id)
                self.db.add(row)
                pending[student.id] = row
                created += 1
            else:
                updated += 1

            row.level = level
            row.score = score
            row.comment = entry.get("comment")
            row.submitted_by = user.id
            results.append({"student_id": student.id, "level": level, "score": float(score)})

        self.db.flush()
        logger.info(
            f"CBC assessment {assessment.id}: {created} created, {updated} updated, {len(errors)} failed"
        )
        return {
            "total_processed": len(entries),
            "created": created,
            "updated": updated,
            "failed": len(errors),
            "results": results,
            "errors": errors,
        }

    @staticmethod
    def _resolve(entry: Dict[str, Any], rubric: Optional[GradingSystem]) -> tuple[str, Decimal]:
        """An entry carries a level, a score or both; both must agree."""
        level = entry.get("level")
        score = entry.get("score")
        if level is None and score is None:
            raise ServiceError("Either level or score is required")

        if score is not None:
            value = Decimal(str(score))
            derived = level_for_score(value, rubric)
            if level is not None and level.upper() != derived:
                raise ServiceError(f"Score {value} corresponds to {derived}, not {level.upper()}")
            return derived, value

        return level.upper(), Decimal(score_for_level(level, rubric))

    def list_results(self, cbc_assessment_id: str) -> List[Dict[str, Any]]:
        self.get_assessment(cbc_assessment_id)
        rows = self.db.execute(
            select(CbcResult, Student)
            .join(Student, Student.id == CbcResult.student_id)
            .where(CbcResult.cbc_assessment_id == cbc_assessment_id, CbcResult.school_id == self.school_id)
            .order_by(Student.first_name, Student.last_name)
        ).all()
        return [
            {
                "id": r.id,
                "student_id": s.id,
                "student_name": s.full_name,
                "admission_number": s.admission_number,
                "level": r.level,
                "score": float(r.score),
                "comment": r.comment,
            }
            for r, s in rows
        ]


def cbc_assessment_dict(a: CbcAssessment) -> Dict[str, Any]:
    return {
        "id": a.id,
        "title": a.title,
        "subject_id": a.subject_id,
        "term_id": a.term_id,
        "stream_id": a.stream_id,
        "strand_id": a.strand_id,
        "sub_strand_id": a.sub_strand_id,
        "created_at": a.created_at,
    }


def get_cbc_service(db: Session, school_id: str) -> CbcService:
    return CbcService(db, school_id)
