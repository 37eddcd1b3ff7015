# school_api/services/lessons.py
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from school_api.core.errors import ConflictError, NotFoundError, PermissionDeniedError
from school_api.models.lesson import LessonPlan
from school_api.models.teacher import Teacher
from school_api.models.user import User
from school_api.services.scores import authorize_teaching
from school_api.services.teachers import get_teacher_service

logger = logging.getLogger(__name__)

EDITABLE = ("DRAFT", "REJECTED")

# status -> statuses it may move to
TRANSITIONS = {
    "DRAFT": ("SUBMITTED",),
    "REJECTED": ("SUBMITTED",),
    "SUBMITTED": ("APPROVED", "REJECTED"),
    "APPROVED": (),
}


def check_transition(current: str, target: str, what: str = "lesson plan") -> None:
    if target not in TRANSITIONS.get(current, ()):
        raise ConflictError(f"Cannot move a {current} {what} to {target}")


class LessonService:
    def __init__(self, db: Session, school_id: str):
        self.db = db
        self.school_id = school_id

    def _teacher_for(self, user: User) -> Teacher:
        try:
            return get_teacher_service(self.db, self.school_id).get_by_user(user.id)
        except NotFoundError:
            raise PermissionDeniedError("Only teachers can manage lesson plans")

    def get_plan(self, plan_id: str) -> LessonPlan:
        plan = self.db.execute(
            select(LessonPlan).where(LessonPlan.id == plan_id, LessonPlan.school_id == self.school_id)
        ).scalar_one_or_none()
        if not plan:
            raise NotFoundError("Lesson plan not found")
        return plan

    def get_visible(self, plan_id: str, user: User, is_admin: bool) -> LessonPlan:
        plan = self.get_plan(plan_id)
        if not is_admin and plan.teacher_id != self._teacher_for(user).id:
            # other teachers' plans are not visible at all
            raise NotFoundError("Lesson plan not found")
        return plan

    def _owned(self, plan_id: str, user: User) -> LessonPlan:
        plan = self.get_plan(plan_id)
        if plan.teacher_id != self._teacher_for(user).id:
            raise PermissionDeniedError("Only the owner can change this lesson plan")
        return plan

    def list_plans(
        self,
        user: User,
        is_admin: bool,
        status: Optional[str] = None,
        subject_id: Optional[str] = None,
        teacher_id: Optional[str] = None,
    ) -> List[LessonPlan]:
        query = select(LessonPlan).where(LessonPlan.school_id == self.school_id)
        if is_admin:
            if teacher_id:
                query = query.where(LessonPlan.teacher_id == teacher_id)
        else:
            query = query.where(LessonPlan.teacher_id == self._teacher_for(user).id)
        if status:
            query = query.where(LessonPlan.status == status.upper())
        if subject_id:
            query = query.where(LessonPlan.subject_id == subject_id)
        return list(self.db.execute(query.order_by(LessonPlan.lesson_date.desc())).scalars().all())

    def create_plan(
        self,
        user: User,
        *,
        subject_id: str,
        stream_id: str,
        title: str,
        objectives: str,
        lesson_date: date,
        term_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> LessonPlan:
        teacher = self._teacher_for(user)
        authorize_teaching(self.db, self.school_id, user, False, stream_id, subject_id, term_id)

        plan = LessonPlan(
            school_id=self.school_id,
            teacher_id=teacher.id,
            subject_id=subject_id,
            stream_id=stream_id,
            term_id=term_id,
            title=title,
            objectives=objectives,
            notes=notes,
            lesson_date=lesson_date,
            status="DRAFT",
        )
        self.db.add(plan)
        self.db.flush()
        logger.info(f"Lesson plan {plan.id} created by teacher {teacher.id}")
        return plan

    def update_plan(self, plan_id: str, user: User, **fields: Any) -> LessonPlan:
        plan = self._owned(plan_id, user)
        if plan.status not in EDITABLE:
            raise ConflictError(f"A {plan.status} lesson plan cannot be edited")
        for key in ("title", "objectives", "notes", "lesson_date"):
            if fields.get(key) is not None:
                setattr(plan, key, fields[key])
        self.db.flush()
        return plan

    def delete_plan(self, plan_id: str, user: User) -> None:
        plan = self._owned(plan_id, user)
        if plan.status not in EDITABLE:
            raise ConflictError(f"A {plan.status} lesson plan cannot be deleted")
        self.db.delete(plan)
        self.db.flush()

    def submit_plan(self, plan_id: str, user: User) -> LessonPlan:
        plan = self._owned(plan_id, user)
        check_transition(plan.status, "SUBMITTED")
        plan.status = "SUBMITTED"
        plan.review_comment = None
        self.db.flush()
        logger.info(f"Lesson plan {plan.id} submitted for review")
        return plan

    def review_plan(self, plan_id: str, reviewer: User, approve: bool, comment: Optional[str] = None) -> LessonPlan:
        plan = self.get_plan(plan_id)
        target = "APPROVED" if approve else "REJECTED"
        check_transition(plan.status, target)
        plan.status = target
        plan.review_comment = comment
        plan.reviewed_by = reviewer.id
        self.db.flush()
        logger.info(f"Lesson plan {plan.id} {target.lower()}")
        return plan


def lesson_dict(p: LessonPlan) -> Dict[str, Any]:
    return {
        "id": p.id,
        "teacher_id": p.teacher_id,
        "subject_id": p.subject_id,
        "stream_id": p.stream_id,
        "term_id": p.term_id,
        "title": p.title,
        "objectives": p.objectives,
        "notes": p.notes,
        "lesson_date": p.lesson_date,
        "status": p.status,
        "review_comment": p.review_comment,
        "reviewed_by": p.reviewed_by,
        "created_at": p.created_at,
    }


def get_lesson_service(db: Session, school_id: str) -> LessonService:
    return LessonService(db, school_id)
