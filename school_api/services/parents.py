# school_api/services/parents.py
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from school_api.core.errors import NotFoundError
from school_api.models.student import Student
from school_api.models.user import User
from school_api.services.attendance import get_attendance_service
from school_api.services.payments import get_payment_service
from school_api.services.scores import get_score_service
from school_api.services.students import get_student_service


class ParentService:
    """What a guardian may see: only the learners linked to their account."""

    def __init__(self, db: Session, school_id: str):
        self.db = db
        self.school_id = school_id

    def children(self, parent: User) -> List[Dict[str, Any]]:
        return get_student_service(self.db, self.school_id).children_of(parent.id)

    def _child(self, parent: User, student_id: str) -> Student:
        student = self.db.execute(
            select(Student).where(
                Student.id == student_id,
                Student.school_id == self.school_id,
                Student.parent_user_id == parent.id,
            )
        ).scalar_one_or_none()
        if not student:
            raise NotFoundError("Child not found")
        return student

    def child_results(self, parent: User, student_id: str, term_id: Optional[str] = None) -> Dict[str, Any]:
        child = self._child(parent, student_id)
        return get_score_service(self.db, self.school_id).student_results(child.id, term_id=term_id)

    def child_fee_balance(self, parent: User, student_id: str) -> Dict[str, Any]:
        child = self._child(parent, student_id)
        return get_payment_service(self.db, self.school_id).balance_for(child.id)

    def child_attendance(self, parent: User, student_id: str, term_id: Optional[str] = None) -> Dict[str, Any]:
        child = self._child(parent, student_id)
        return get_attendance_service(self.db, self.school_id).student_history(child.id, term_id=term_id)


def get_parent_service(db: Session, school_id: str) -> ParentService:
    return ParentService(db, school_id)
