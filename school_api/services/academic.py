# school_api/services/academic.py
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from school_api.core.errors import ConflictError, NotFoundError, ServiceError
from school_api.models.academic import AcademicTerm, AcademicYear, Curriculum

logger = logging.getLogger(__name__)


def _check_range(start: date, end: date) -> None:
    if start >= end:
        raise ServiceError("start_date must be before end_date")


class AcademicService:
    """Academic calendar: years, terms and curricula for one school."""

    def __init__(self, db: Session, school_id: str):
        self.db = db
        self.school_id = school_id

    # ---- years -------------------------------------------------------------

    def list_years(self) -> List[AcademicYear]:
        return list(
            self.db.execute(
                select(AcademicYear)
                .where(AcademicYear.school_id == self.school_id)
                .options(selectinload(AcademicYear.terms))
                .order_by(AcademicYear.start_date.desc())
            ).scalars().all()
        )

    def get_year(self, year_id: str) -> AcademicYear:
        year = self.db.execute(
            select(AcademicYear).where(AcademicYear.id == year_id, AcademicYear.school_id == self.school_id)
        ).scalar_one_or_none()
        if not year:
            raise NotFoundError("Academic year not found")
        return year

    def get_active_year(self) -> AcademicYear:
        year = self.db.execute(
            select(AcademicYear).where(AcademicYear.school_id == self.school_id, AcademicYear.is_current.is_(True))
        ).scalar_one_or_none()
        if not year:
            raise NotFoundError("No active academic year")
        return year

    def create_year(self, year_name: str, start_date: date, end_date: date, is_current: bool = False) -> AcademicYear:
        _check_range(start_date, end_date)
        exists = self.db.execute(
            select(AcademicYear.id).where(
                AcademicYear.school_id == self.school_id, AcademicYear.year_name == year_name
            )
        ).first()
        if exists:
            raise ConflictError(f"Academic year '{year_name}' already exists")

        if is_current:
            # a current term must belong to the current year
            self._clear_current_term()
            self._clear_current_year()
        year = AcademicYear(
            school_id=self.school_id,
            year_name=year_name,
            start_date=start_date,
            end_date=end_date,
            is_current=is_current,
        )
        self.db.add(year)
        self.db.flush()
        logger.info(f"Academic year {year_name} created (ID: {year.id})")
        return year

    def _clear_current_year(self) -> None:
        self.db.execute(
            update(AcademicYear).where(AcademicYear.school_id == self.school_id).values(is_current=False)
        )

    def _clear_current_term(self) -> None:
        self.db.execute(
            update(AcademicTerm).where(AcademicTerm.school_id == self.school_id).values(is_current=False)
        )

    # ---- terms -------------------------------------------------------------

    def list_terms(self, year_id: str) -> List[AcademicTerm]:
        year = self.get_year(year_id)
        return list(year.terms)

    def get_term(self, term_id: str) -> AcademicTerm:
        term = self.db.execute(
            select(AcademicTerm).where(AcademicTerm.id == term_id, AcademicTerm.school_id == self.school_id)
        ).scalar_one_or_none()
        if not term:
            raise NotFoundError("Academic term not found")
        return term

    def get_current_term(self) -> Optional[AcademicTerm]:
        return self.db.execute(
            select(AcademicTerm).where(AcademicTerm.school_id == self.school_id, AcademicTerm.is_current.is_(True))
        ).scalar_one_or_none()

    def _validate_term(self, year: AcademicYear, start: date, end: date) -> None:
        _check_range(start, end)
        if start < year.start_date or end > year.end_date:
            raise ServiceError(f"Term dates must fall within academic year {year.year_name}")

    def _make_current(self, term: AcademicTerm, year: AcademicYear) -> None:
        self._clear_current_term()
        self._clear_current_year()
        term.is_current = True
        year.is_current = True

    def create_term(
        self,
        academic_year_id: str,
        term_name: str,
        term_number: int,
        start_date: date,
        end_date: date,
        is_current: bool = False,
    ) -> AcademicTerm:
        year = self.get_year(academic_year_id)
        self._validate_term(year, start_date, end_date)

        exists = self.db.execute(
            select(AcademicTerm.id).where(
                AcademicTerm.academic_year_id == year.id, AcademicTerm.term_number == term_number
            )
        ).first()
        if exists:
            raise ConflictError(f"Term {term_number} already exists in {year.year_name}")

        term = AcademicTerm(
            school_id=self.school_id,
            academic_year_id=year.id,
            term_name=term_name,
            term_number=term_number,
            start_date=start_date,
            end_date=end_date,
            is_current=False,
        )
        self.db.add(term)
        self.db.flush()
        if is_current:
            self._make_current(term, year)
            self.db.flush()
        return term

    def update_term(self, term_id: str, **fields: Any) -> AcademicTerm:
        term = self.get_term(term_id)
        year = term.year

        start = fields.get("start_date") or term.start_date
        end = fields.get("end_date") or term.end_date
        self._validate_term(year, start, end)

        number = fields.get("term_number")
        if number is not None and number != term.term_number:
            clash = self.db.execute(
                select(AcademicTerm.id).where(
                    AcademicTerm.academic_year_id == year.id,
                    AcademicTerm.term_number == number,
                    AcademicTerm.id != term.id,
                )
            ).first()
            if clash:
                raise ConflictError(f"Term {number} already exists in {year.year_name}")
            term.term_number = number

        if fields.get("term_name"):
            term.term_name = fields["term_name"]
        term.start_date, term.end_date = start, end

        is_current = fields.get("is_current")
        if is_current:
            self._make_current(term, year)
        elif is_current is False:
            term.is_current = False
        self.db.flush()
        return term

    def years_with_terms(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": y.id,
                "year_name": y.year_name,
                "start_date": y.start_date,
                "end_date": y.end_date,
                "is_current": y.is_current,
                "terms": [term_dict(t) for t in y.terms],
            }
            for y in self.list_years()
        ]

    # ---- curricula ---------------------------------------------------------

    def list_curricula(self) -> List[Curriculum]:
        return list(
            self.db.execute(
                select(Curriculum).where(Curriculum.school_id == self.school_id).order_by(Curriculum.name)
            ).scalars().all()
        )

    def create_curriculum(self, name: str, code: str, description: Optional[str] = None) -> Curriculum:
        exists = self.db.execute(
            select(Curriculum.id).where(Curriculum.school_id == self.school_id, Curriculum.code == code)
        ).first()
        if exists:
            raise ConflictError(f"Curriculum '{code}' already exists")
        curriculum = Curriculum(school_id=self.school_id, name=name, code=code, description=description)
        self.db.add(curriculum)
        self.db.flush()
        return curriculum

    def get_curriculum(self, curriculum_id: str) -> Curriculum:
        curriculum = self.db.execute(
            select(Curriculum).where(Curriculum.id == curriculum_id, Curriculum.school_id == self.school_id)
        ).scalar_one_or_none()
        if not curriculum:
            raise NotFoundError("Curriculum not found")
        return curriculum


def term_dict(t: AcademicTerm) -> Dict[str, Any]:
    return {
        "id": t.id,
        "academic_year_id": t.academic_year_id,
        "term_name": t.term_name,
        "term_number": t.term_number,
        "start_date": t.start_date,
        "end_date": t.end_date,
        "is_current": t.is_current,
    }


def get_academic_service(db: Session, school_id: str) -> AcademicService:
    return AcademicService(db, school_id)
