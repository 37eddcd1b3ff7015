"""Unit tests for grade band validation and lookup."""

from decimal import Decimal

import pytest

from school_api.core.errors import ServiceError
from school_api.models.grading import GradeScale, GradingSystem
from school_api.services.cbc import level_for_score, score_for_level
from school_api.services.grading import (
    CBC_BANDS,
    SECONDARY_BANDS,
    get_grading_service,
    grade_for_score,
    validate_scales,
)

pytestmark = pytest.mark.unit


def _system(bands, name="Test Scale") -> GradingSystem:
    return GradingSystem(
        name=name,
        type="subject",
        scales=[
            GradeScale(grade=g, min_score=Decimal(str(lo)), max_score=Decimal(str(hi)), points=p, remarks=r)
            for g, lo, hi, p, r in bands
        ],
    )


def _as_dicts(bands):
    return [{"grade": g, "min_score": lo, "max_score": hi, "points": p} for g, lo, hi, p, _ in bands]


class TestGradeForScore:
    @pytest.mark.parametrize(
        "score,grade,points",
        [
            (100, "A", 12),
            (80, "A", 12),
            (79, "A-", 11),
            (79.5, "A-", 11),
            (62, "B-", 8),
            (30, "D-", 2),
            (0, "E", 1),
        ],
    )
    def test_secondary_bands(self, score, grade, points):
        band = grade_for_score(_system(SECONDARY_BANDS), score)
        assert (band.grade, band.points) == (grade, points)

    def test_above_top_band_raises(self):
        with pytest.raises(ServiceError):
            grade_for_score(_system(SECONDARY_BANDS), Decimal("100.01"))

    def test_below_lowest_band_raises(self):
        bands = [("P", 50, 100, 1, "Pass")]
        with pytest.raises(ServiceError):
            grade_for_score(_system(bands), 49)

    def test_empty_system_raises(self):
        with pytest.raises(ServiceError):
            grade_for_score(GradingSystem(name="Empty", type="subject", scales=[]), 50)


class TestValidateScales:
    def test_defaults_are_valid(self):
        validate_scales("subject", _as_dicts(SECONDARY_BANDS))
        validate_scales("cbc", _as_dicts(CBC_BANDS))

    def test_overlapping_bands_rejected(self):
        with pytest.raises(ServiceError, match="overlap"):
            validate_scales(
                "subject",
                [
                    {"grade": "A", "min_score": 70, "max_score": 100, "points": 2},
                    {"grade": "B", "min_score": 50, "max_score": 70, "points": 1},
                ],
            )

    def test_out_of_range_rejected(self):
        with pytest.raises(ServiceError):
            validate_scales("cbc", [{"grade": "EE", "min_score": 3, "max_score": 5, "points": 4}])

    def test_duplicate_grade_rejected(self):
        with pytest.raises(ServiceError, match="more than once"):
            validate_scales(
                "subject",
                [
                    {"grade": "A", "min_score": 50, "max_score": 100, "points": 2},
                    {"grade": "A", "min_score": 0, "max_score": 49, "points": 1},
                ],
            )

    def test_inverted_band_rejected(self):
        with pytest.raises(ServiceError):
            validate_scales("subject", [{"grade": "A", "min_score": 90, "max_score": 80, "points": 1}])

    def test_unknown_type_rejected(self):
        with pytest.raises(ServiceError):
            validate_scales("gpa", _as_dicts(SECONDARY_BANDS))


class TestCbcLevels:
    @pytest.mark.parametrize(
        "score,level", [(4, "EE"), (3.5, "EE"), (3.49, "ME"), (2.5, "ME"), (2, "AE"), (1, "BE")]
    )
    def test_level_for_score_without_rubric(self, score, level):
        assert level_for_score(score) == level

    def test_level_for_score_with_rubric(self):
        rubric = _system(CBC_BANDS, name="CBC Rubric")
        assert level_for_score(Decimal("3.6"), rubric) == "EE"
        assert level_for_score(Decimal("1.2"), rubric) == "BE"

    def test_score_out_of_rubric_range(self):
        with pytest.raises(ServiceError):
            level_for_score(4.5)
        with pytest.raises(ServiceError):
            level_for_score(0.5)

    def test_score_for_level(self):
        assert score_for_level("me") == 3
        with pytest.raises(ServiceError):
            score_for_level("XX")


class TestGradingService:
    def test_single_default_per_type(self, db):
        service = get_grading_service(db, "school-1")
        first, _, _ = service.seed_defaults()
        second = service.create_system(
            "Strict Scale", "subject", _as_dicts(SECONDARY_BANDS), is_default=True
        )
        db.flush()
        db.refresh(first)
        assert second.is_default
        assert not first.is_default
        assert service.get_default("subject").id == second.id

    def test_update_scale_rejects_overlap(self, db):
        service = get_grading_service(db, "school-1")
        subject_system = service.seed_defaults()[0]
        a_band = next(s for s in subject_system.scales if s.grade == "A")
        with pytest.raises(ServiceError):
            service.update_scale(a_band.id, min_score=Decimal("70"))

    def test_other_school_cannot_see_system(self, db):
        system = get_grading_service(db, "school-1").seed_defaults()[0]
        with pytest.raises(ServiceError):
            get_grading_service(db, "school-2").get_system(system.id)
