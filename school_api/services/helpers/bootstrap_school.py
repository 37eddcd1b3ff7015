# school_api/services/helpers/bootstrap_school.py
import calendar
import logging
from datetime import date

from sqlalchemy.orm import Session

from school_api.models.academic import AcademicTerm, AcademicYear, Curriculum
from school_api.models.accounting import GLAccount
from school_api.models.school import School
from school_api.models.subject import Subject
from school_api.services.grading import get_grading_service

logger = logging.getLogger(__name__)

CURRICULA = {
    "CBC": ("Competency Based Curriculum", "Kenya's competency based curriculum (PP1 - Grade 12)"),
    "8-4-4": ("8-4-4 System", "8 years primary, 4 years secondary, 4 years university"),
}

# Learning areas seeded for CBC schools, keyed by category
CBC_LEARNING_AREAS = {
    "Languages": [("ENG", "English"), ("KIS", "Kiswahili")],
    "Mathematics": [("MAT", "Mathematics")],
    "Sciences": [("SCI", "Integrated Science"), ("AGR", "Agriculture")],
    "Humanities": [("SST", "Social Studies"), ("CRE", "Christian Religious Education")],
    "Creative Arts": [("CAS", "Creative Arts and Sports")],
}

TERMS = [
    {"term": 1, "name": "Term 1", "start_month": 1, "end_month": 4},
    {"term": 2, "name": "Term 2", "start_month": 5, "end_month": 8},
    {"term": 3, "name": "Term 3", "start_month": 9, "end_month": 11},
]

GL_ACCOUNTS = [
    ("1000", "Cash & Bank", "ASSET"),
    ("1100", "Accounts Receivable (Students)", "ASSET"),
    ("2000", "Unearned Revenue", "LIABILITY"),
    ("4000", "Tuition Fees", "INCOME"),
    ("4010", "Activity Fees", "INCOME"),
    ("4020", "Lunch", "INCOME"),
    ("4030", "Transport", "INCOME"),
    ("5000", "Stationery", "EXPENSE"),
    ("5010", "Utilities", "EXPENSE"),
    ("5020", "Salaries", "EXPENSE"),
]


def bootstrap_school(*, db: Session, school: School, today: date | None = None) -> None:
    """Seed a freshly created school. Runs inside the caller's transaction."""
    today = today or date.today()

    # 1) Academic year and its 3 terms, Term 1 current
    _create_academic_year_and_terms(db, school.id, today.year)

    # 2) Curriculum (+ CBC learning areas)
    curriculum = _create_curriculum(db, school.id, school.curriculum_type)
    if school.curriculum_type == "CBC":
        _create_learning_areas(db, school.id, curriculum.id)

    # 3) Default grading systems
    get_grading_service(db, school.id).seed_defaults(
        curriculum_id=curriculum.id if school.curriculum_type == "CBC" else None
    )

    # 4) Minimal GL chart
    _create_gl_accounts(db, school.id)

    db.flush()
    logger.info(f"Bootstrapped school {school.id} ({school.curriculum_type}) for {today.year}")


def _create_academic_year_and_terms(db: Session, school_id: str, year: int) -> AcademicYear:
    academic_year = AcademicYear(
        school_id=school_id,
        year_name=str(year),
        start_date=date(year, 1, 1),
        end_date=date(year, 12, 31),
        is_current=True,
    )
    for term_info in TERMS:
        last_day = calendar.monthrange(year, term_info["end_month"])[1]
        academic_year.terms.append(
            AcademicTerm(
                school_id=school_id,
                term_name=term_info["name"],
                term_number=term_info["term"],
                start_date=date(year, term_info["start_month"], 1),
                end_date=date(year, term_info["end_month"], last_day),
                is_current=term_info["term"] == 1,
            )
        )
    db.add(academic_year)
    db.flush()
    return academic_year


def _create_curriculum(db: Session, school_id: str, code: str) -> Curriculum:
    name, description = CURRICULA.get(code, (code, None))
    curriculum = Curriculum(school_id=school_id, name=name, code=code, description=description)
    db.add(curriculum)
    db.flush()
    return curriculum


def _create_learning_areas(db: Session, school_id: str, curriculum_id: str) -> None:
    for category, areas in CBC_LEARNING_AREAS.items():
        for code, name in areas:
            db.add(Subject(school_id=school_id, code=code, name=name, category=category, curriculum_id=curriculum_id))


def _create_gl_accounts(db: Session, school_id: str) -> None:
    for code, name, account_type in GL_ACCOUNTS:
        db.add(GLAccount(school_id=school_id, code=code, name=name, type=account_type))
