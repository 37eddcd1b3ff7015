# school_api/services/setup.py
"""School onboarding: slug/code checks and creation of a school with its first admin."""

import logging
import random
import re
from dataclasses import dataclass
from typing import Any, Dict

from sqlalchemy import select
from sqlalchemy.orm import Session

from school_api.core.config import settings
from school_api.core.errors import ConflictError, NotFoundError, ServiceError
from school_api.core.security import hash_password
from school_api.models.school import School, SchoolMember
from school_api.models.user import User
from school_api.services.helpers.bootstrap_school import bootstrap_school

logger = logging.getLogger(__name__)

SLUG_RE = re.compile(r"^[a-z0-9](?:[a-z0-9-]{1,48}[a-z0-9])$")
CURRICULUM_TYPES = ("CBC", "8-4-4")


def is_valid_slug(slug: str) -> bool:
    return bool(SLUG_RE.match(slug or ""))


@dataclass
class SetupResult:
    school: School
    user: User


class SetupService:
    def __init__(self, db: Session):
        self.db = db

    def suggest_school_code(self, attempts: int = 50) -> str:
        for _ in range(attempts):
            code = f"SCH{random.randint(0, 9999):04d}"
            if not self._code_taken(code):
                return code
        raise ServiceError("Could not find a free school code, please enter one manually")

    def _code_taken(self, code: str) -> bool:
        return self.db.execute(select(School.id).where(School.school_code == code)).first() is not None

    def _slug_taken(self, slug: str) -> bool:
        return self.db.execute(select(School.id).where(School.slug == slug)).first() is not None

    def check_slug(self, slug: str) -> Dict[str, Any]:
        valid = is_valid_slug(slug)
        return {"slug": slug, "valid": valid, "available": valid and not self._slug_taken(slug)}

    def create_school(self, data: Dict[str, Any], admin: Dict[str, Any]) -> SetupResult:
        slug = data["slug"].strip().lower()
        if not is_valid_slug(slug):
            raise ServiceError("Slug may only contain lowercase letters, digits and hyphens (3-50 chars)")
        if data.get("curriculum_type", "CBC") not in CURRICULUM_TYPES:
            raise ServiceError(f"curriculum_type must be one of {', '.join(CURRICULUM_TYPES)}")

        if self._slug_taken(slug):
            raise ConflictError(f"Slug '{slug}' is already in use")
        if self._code_taken(data["school_code"]):
            raise ConflictError(f"School code '{data['school_code']}' is already in use")

        email = admin["email"].lower()
        if self.db.execute(select(User.id).where(User.email == email)).first():
            raise ConflictError("A user with this email already exists")

        school = School(
            name=data["name"],
            slug=slug,
            school_code=data["school_code"],
            email=data["email"],
            phone=data.get("phone"),
            address=data.get("address"),
            website=data.get("website"),
            curriculum_type=data.get("curriculum_type", "CBC"),
            currency=settings.DEFAULT_CURRENCY,
            primary_color=data.get("primary_color"),
            portal_title=data.get("portal_title"),
            welcome_message=data.get("welcome_message"),
        )
        self.db.add(school)

        user = User(
            email=email,
            first_name=admin["first_name"],
            last_name=admin["last_name"],
            phone=admin.get("phone"),
            gender=admin.get("gender"),
            password_hash=hash_password(admin["password"]),
        )
        self.db.add(user)
        self.db.flush()

        self.db.add(SchoolMember(school_id=school.id, user_id=user.id, role="ADMIN"))
        bootstrap_school(db=self.db, school=school)

        logger.info(f"School created: {slug} (ID: {school.id}), admin {user.email}")
        return SetupResult(school=school, user=user)

    def get_by_slug(self, slug: str) -> School:
        school = self.db.execute(select(School).where(School.slug == slug)).scalar_one_or_none()
        if not school:
            raise NotFoundError("School not found")
        return school


def public_school_info(school: School) -> Dict[str, Any]:
    return {
        "id": school.id,
        "name": school.name,
        "slug": school.slug,
        "school_code": school.school_code,
        "curriculum_type": school.curriculum_type,
        "primary_color": school.primary_color,
        "portal_title": school.portal_title,
        "welcome_message": school.welcome_message,
        "website": school.website,
    }


def get_setup_service(db: Session) -> SetupService:
    return SetupService(db)
