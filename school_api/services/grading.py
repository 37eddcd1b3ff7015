# school_api/services/grading.py
"""
Grading systems and grade scales.

A school keeps one or more grading systems per type:

* ``subject``         grades a single paper's percentage (A..E, 12..1 points)
* ``overall_points``  turns a mean of subject points into a mean grade
* ``cbc``             maps a 1-4 rubric score onto EE / ME / AE / BE

Systems with ``curriculum_id = NULL`` apply school-wide.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session, selectinload

from school_api.core.errors import ConflictError, NotFoundError, ServiceError
from school_api.models.grading import GRADING_TYPES, GradeScale, GradingSystem

logger = logging.getLogger(__name__)

# (grade, min, max, points, remarks)
SECONDARY_BANDS = [
    ("A", 80, 100, 12, "Excellent"),
    ("A-", 75, 79, 11, "Very Good"),
    ("B+", 70, 74, 10, "Good"),
    ("B", 65, 69, 9, "Good"),
    ("B-", 60, 64, 8, "Fairly Good"),
    ("C+", 55, 59, 7, "Average"),
    ("C", 50, 54, 6, "Average"),
    ("C-", 45, 49, 5, "Below Average"),
    ("D+", 40, 44, 4, "Below Average"),
    ("D", 35, 39, 3, "Weak"),
    ("D-", 30, 34, 2, "Weak"),
    ("E", 0, 29, 1, "Poor"),
]

CBC_BANDS = [
    ("EE", Decimal("3.50"), Decimal("4.00"), 4, "Exceeding Expectations"),
    ("ME", Decimal("2.50"), Decimal("3.49"), 3, "Meeting Expectations"),
    ("AE", Decimal("1.50"), Decimal("2.49"), 2, "Approaching Expectations"),
    ("BE", Decimal("1.00"), Decimal("1.49"), 1, "Below Expectations"),
]

SCORE_LIMITS = {
    "subject": (Decimal("0"), Decimal("100")),
    "overall_points": (Decimal("0"), Decimal("100")),
    "cbc": (Decimal("1"), Decimal("4")),
}


def _dec(value: Any) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def validate_scales(system_type: str, scales: Iterable[Dict[str, Any]]) -> None:
    """Raise ServiceError unless every band is in range, graded and disjoint."""
    if system_type not in GRADING_TYPES:
        raise ServiceError(f"Unknown grading type: {system_type}")

    lo, hi = SCORE_LIMITS[system_type]
    bands = sorted(
        ({**s, "min_score": _dec(s["min_score"]), "max_score": _dec(s["max_score"])} for s in scales),
        key=lambda s: s["min_score"],
    )
    if not bands:
        raise ServiceError("A grading system needs at least one grade band")

    seen_grades = set()
    for band in bands:
        grade = (band.get("grade") or "").strip()
        if not grade:
            raise ServiceError("Every grade band needs a grade")
        if grade in seen_grades:
            raise ServiceError(f"Grade {grade} appears more than once")
        seen_grades.add(grade)

        if band["min_score"] > band["max_score"]:
            raise ServiceError(f"Grade {grade}: min_score is greater than max_score")
        if band["min_score"] < lo or band["max_score"] > hi:
            raise ServiceError(f"Grade {grade}: scores must lie between {lo} and {hi}")

    for lower, upper in zip(bands, bands[1:]):
        if upper["min_score"] <= lower["max_score"]:
            raise ServiceError(f"Grade bands {lower['grade']} and {upper['grade']} overlap")


def grade_for_score(system: GradingSystem, score: Any) -> GradeScale:
    """
    Return the band a score falls in.

    Bands are stored on whole-number boundaries (A- 75-79, A 80-100) while
    percentages are not, so a score between two bands takes the lower one.
    """
    value = _dec(score)
    scales = sorted(system.scales, key=lambda s: _dec(s.min_score), reverse=True)
    if not scales:
        raise ServiceError(f"Grading system {system.name} has no grade bands")

    if value > _dec(scales[0].max_score):
        raise ServiceError(f"Score {value} is above the highest band of {system.name}")
    for scale in scales:
        if value >= _dec(scale.min_score):
            return scale
    raise ServiceError(f"Score {value} is below the lowest band of {system.name}")


def scale_dict(scale: GradeScale) -> Dict[str, Any]:
    return {
        "id": scale.id,
        "grade": scale.grade,
        "min_score": float(scale.min_score),
        "max_score": float(scale.max_score),
        "points": scale.points,
        "remarks": scale.remarks,
    }


def system_dict(system: GradingSystem) -> Dict[str, Any]:
    return {
        "id": system.id,
        "name": system.name,
        "type": system.type,
        "curriculum_id": system.curriculum_id,
        "is_default": system.is_default,
        "scales": [scale_dict(s) for s in system.scales],
    }


class GradingService:
    def __init__(self, db: Session, school_id: str):
        self.db = db
        self.school_id = school_id

    def _base_query(self):
        return (
            select(GradingSystem)
            .where(GradingSystem.school_id == self.school_id)
            .options(selectinload(GradingSystem.scales))
        )

    def list_systems(self, type: Optional[str] = None, curriculum_id: Optional[str] = None) -> List[GradingSystem]:
        query = self._base_query()
        if type:
            if type not in GRADING_TYPES:
                raise ServiceError(f"Unknown grading type: {type}")
            query = query.where(GradingSystem.type == type)
        if curriculum_id:
            query = query.where(
                or_(GradingSystem.curriculum_id == curriculum_id, GradingSystem.curriculum_id.is_(None))
            )
        query = query.order_by(GradingSystem.is_default.desc(), GradingSystem.name.asc())
        return list(self.db.execute(query).scalars().all())

    def group_systems_by_type(self, curriculum_id: Optional[str] = None) -> Dict[str, List[GradingSystem]]:
        grouped: Dict[str, List[GradingSystem]] = {t: [] for t in GRADING_TYPES}
        for system in self.list_systems(curriculum_id=curriculum_id):
            grouped[system.type].append(system)
        return grouped

    def get_system(self, system_id: str) -> GradingSystem:
        system = self.db.execute(self._base_query().where(GradingSystem.id == system_id)).scalar_one_or_none()
        if not system:
            raise NotFoundError("Grading system not found")
        return system

    def get_default(self, type: str = "subject") -> Optional[GradingSystem]:
        return self.db.execute(
            self._base_query().where(GradingSystem.type == type, GradingSystem.is_default.is_(True))
        ).scalar_one_or_none()

    def require_default(self, type: str = "subject") -> GradingSystem:
        system = self.get_default(type)
        if not system:
            raise NotFoundError(f"No default {type} grading system configured")
        return system

    def create_system(
        self,
        name: str,
        type: str,
        scales: List[Dict[str, Any]],
        curriculum_id: Optional[str] = None,
        is_default: bool = False,
    ) -> GradingSystem:
        validate_scales(type, scales)

        exists = self.db.execute(
            select(GradingSystem.id).where(
                GradingSystem.school_id == self.school_id,
                GradingSystem.type == type,
                GradingSystem.name == name,
            )
        ).first()
        if exists:
            raise ConflictError(f"A {type} grading system named '{name}' already exists")

        if is_default:
            self._clear_default(type)

        system = GradingSystem(
            school_id=self.school_id,
            name=name,
            type=type,
            curriculum_id=curriculum_id,
            is_default=is_default,
        )
        for s in scales:
            system.scales.append(
                GradeScale(
                    school_id=self.school_id,
                    grade=s["grade"].strip(),
                    min_score=_dec(s["min_score"]),
                    max_score=_dec(s["max_score"]),
                    points=int(s.get("points") or 0),
                    remarks=s.get("remarks"),
                )
            )
        self.db.add(system)
        self.db.flush()
        logger.info(f"Grading system {system.id} ({type}) created")
        return system

    def set_default(self, system_id: str) -> GradingSystem:
        system = self.get_system(system_id)
        self._clear_default(system.type)
        system.is_default = True
        self.db.flush()
        return system

    def _clear_default(self, type: str) -> None:
        self.db.execute(
            update(GradingSystem)
            .where(GradingSystem.school_id == self.school_id, GradingSystem.type == type)
            .values(is_default=False)
        )

    def _get_scale(self, scale_id: str) -> GradeScale:
        scale = self.db.execute(
            select(GradeScale).where(GradeScale.id == scale_id, GradeScale.school_id == self.school_id)
        ).scalar_one_or_none()
        if not scale:
            raise NotFoundError("Grade scale not found")
        return scale

    def update_scale(
        self,
        scale_id: str,
        min_score: Any = None,
        max_score: Any = None,
        points: Optional[int] = None,
        grade: Optional[str] = None,
    ) -> GradeScale:
        scale = self._get_scale(scale_id)
        system = scale.system

        # Validate the system as it would look after the edit
        proposed = []
        for s in system.scales:
            band = scale_dict(s)
            if s.id == scale.id:
                if min_score is not None:
                    band["min_score"] = min_score
                if max_score is not None:
                    band["max_score"] = max_score
                if grade is not None:
                    band["grade"] = grade
            proposed.append(band)
        validate_scales(system.type, proposed)

        if min_score is not None:
            scale.min_score = _dec(min_score)
        if max_score is not None:
            scale.max_score = _dec(max_score)
        if points is not None:
            scale.points = points
        if grade is not None:
            scale.grade = grade.strip()
        self.db.flush()
        logger.info(f"Grade scale {scale.id} updated")
        return scale

    def update_remark(self, scale_id: str, description: str) -> GradeScale:
        scale = self._get_scale(scale_id)
        scale.remarks = description
        self.db.flush()
        return scale

    def seed_defaults(self, curriculum_id: Optional[str] = None) -> List[GradingSystem]:
        """Create the KCSE-style subject and mean-grade scales plus the CBC rubric."""
        bands_844 = [
            {"grade": g, "min_score": lo, "max_score": hi, "points": p, "remarks": r}
            for g, lo, hi, p, r in SECONDARY_BANDS
        ]
        cbc = [
            {"grade": g, "min_score": lo, "max_score": hi, "points": p, "remarks": r}
            for g, lo, hi, p, r in CBC_BANDS
        ]
        return [
            self.create_system("Standard 12-Point Scale", "subject", bands_844, is_default=True),
            self.create_system("Mean Grade Points", "overall_points", bands_844, is_default=True),
            self.create_system("CBC Rubric", "cbc", cbc, curriculum_id=curriculum_id, is_default=True),
        ]


def get_grading_service(db: Session, school_id: str) -> GradingService:
    return GradingService(db, school_id)
