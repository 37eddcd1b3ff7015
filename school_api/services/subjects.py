# school_api/services/subjects.py
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from school_api.core.errors import ConflictError, NotFoundError
from school_api.models.assessment import Assessment
from school_api.models.attendance import Attendance
from school_api.models.cbc import CbcAssessment
from school_api.models.lesson import LessonPlan
from school_api.models.scheme import SchemeOfWork
from school_api.models.subject import CbcStrand, CbcSubStrand, Subject


class SubjectService:
    def __init__(self, db: Session, school_id: str):
        self.db = db
        self.school_id = school_id

    def list_subjects(self, category: Optional[str] = None, curriculum_id: Optional[str] = None) -> List[Subject]:
        query = select(Subject).where(Subject.school_id == self.school_id)
        if category:
            query = query.where(Subject.category == category)
        if curriculum_id:
            query = query.where(Subject.curriculum_id == curriculum_id)
        return list(self.db.execute(query.order_by(Subject.name)).scalars().all())

    def get_subject(self, subject_id: str) -> Subject:
        subject = self.db.execute(
            select(Subject).where(Subject.id == subject_id, Subject.school_id == self.school_id)
        ).scalar_one_or_none()
        if not subject:
            raise NotFoundError("Subject not found")
        return subject

    def _code_taken(self, code: str, exclude_id: Optional[str] = None) -> bool:
        query = select(Subject.id).where(Subject.school_id == self.school_id, Subject.code == code)
        if exclude_id:
            query = query.where(Subject.id != exclude_id)
        return self.db.execute(query).first() is not None

    def create_subject(
        self, code: str, name: str, category: str = "General", curriculum_id: Optional[str] = None
    ) -> Subject:
        code = code.strip().upper()
        if self._code_taken(code):
            raise ConflictError(f"Subject code '{code}' already exists")
        subject = Subject(
            school_id=self.school_id, code=code, name=name, category=category, curriculum_id=curriculum_id
        )
        self.db.add(subject)
        self.db.flush()
        return subject

    def update_subject(self, subject_id: str, **fields: Any) -> Subject:
        subject = self.get_subject(subject_id)
        code = fields.get("code")
        if code:
            code = code.strip().upper()
            if code != subject.code and self._code_taken(code, exclude_id=subject.id):
                raise ConflictError(f"Subject code '{code}' already exists")
            subject.code = code
        for key in ("name", "category"):
            if fields.get(key):
                setattr(subject, key, fields[key])
        if "curriculum_id" in fields:
            subject.curriculum_id = fields["curriculum_id"]
        self.db.flush()
        return subject

    def delete_subject(self, subject_id: str) -> None:
        subject = self.get_subject(subject_id)
        in_use = [
            label
            for label, model in (
                ("assessments", Assessment),
                ("CBC assessments", CbcAssessment),
                ("strands", CbcStrand),
                ("lesson plans", LessonPlan),
                ("schemes of work", SchemeOfWork),
                ("attendance records", Attendance),
            )
            if self.db.execute(select(model.id).where(model.subject_id == subject.id).limit(1)).first()
        ]
        if in_use:
            raise ConflictError(f"Subject '{subject.code}' still has {', '.join(in_use)}")
        self.db.delete(subject)
        self.db.flush()

    # ---- CBC strands -------------------------------------------------------

    def list_strands(self, subject_id: Optional[str] = None) -> List[CbcStrand]:
        query = (
            select(CbcStrand)
            .where(CbcStrand.school_id == self.school_id)
            .options(selectinload(CbcStrand.sub_strands))
        )
        if subject_id:
            query = query.where(CbcStrand.subject_id == subject_id)
        return list(self.db.execute(query.order_by(CbcStrand.code)).scalars().all())

    def get_strand(self, strand_id: str) -> CbcStrand:
        strand = self.db.execute(
            select(CbcStrand).where(CbcStrand.id == strand_id, CbcStrand.school_id == self.school_id)
        ).scalar_one_or_none()
        if not strand:
            raise NotFoundError("Strand not found")
        return strand

    def get_sub_strand(self, sub_strand_id: str) -> CbcSubStrand:
        sub = self.db.execute(
            select(CbcSubStrand).where(CbcSubStrand.id == sub_strand_id, CbcSubStrand.school_id == self.school_id)
        ).scalar_one_or_none()
        if not sub:
            raise NotFoundError("Sub-strand not found")
        return sub

    def create_strand(self, subject_id: str, code: str, name: str) -> CbcStrand:
        subject = self.get_subject(subject_id)
        if any(s.code == code for s in subject.strands):
            raise ConflictError(f"Strand '{code}' already exists for {subject.name}")
        strand = CbcStrand(school_id=self.school_id, subject_id=subject.id, code=code, name=name)
        subject.strands.append(strand)
        self.db.flush()
        return strand

    def create_sub_strand(self, strand_id: str, code: str, name: str) -> CbcSubStrand:
        strand = self.get_strand(strand_id)
        if any(s.code == code for s in strand.sub_strands):
            raise ConflictError(f"Sub-strand '{code}' already exists in {strand.name}")
        sub = CbcSubStrand(school_id=self.school_id, strand_id=strand.id, code=code, name=name)
        strand.sub_strands.append(sub)
        self.db.flush()
        return sub


def subject_dict(s: Subject) -> Dict[str, Any]:
    return {
        "id": s.id,
        "code": s.code,
        "name": s.name,
        "category": s.category,
        "curriculum_id": s.curriculum_id,
    }


def strand_dict(s: CbcStrand) -> Dict[str, Any]:
    return {
        "id": s.id,
        "subject_id": s.subject_id,
        "code": s.code,
        "name": s.name,
        "sub_strands": [
            {"id": ss.id, "strand_id": ss.strand_id, "code": ss.code, "name": ss.name} for ss in s.sub_strands
        ],
    }


def get_subject_service(db: Session, school_id: str) -> SubjectService:
    return SubjectService(db, school_id)
