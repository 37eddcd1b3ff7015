# school_api/services/auth.py
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from school_api.core.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
)
from school_api.core.security import hash_password, verify_password
from school_api.models.school import ROLES, School, SchoolMember
from school_api.models.user import User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


@dataclass
class LoginResult:
    user: User
    school: School
    roles: List[str]


def roles_for(db: Session, user_id: str, school_id: str) -> List[str]:
    rows = db.execute(
        select(SchoolMember.role).where(SchoolMember.user_id == user_id, SchoolMember.school_id == school_id)
    ).scalars().all()
    # stable order, matches ROLES
    return [r for r in ROLES if r in set(rows)]


def authenticate(db: Session, email: str, password: str, slug: str) -> LoginResult:
    """
    Resolve a login attempt.

    Raises NotFoundError (unknown school), AuthenticationError (bad
    credentials) or PermissionDeniedError (inactive / not a member).
    """
    school = db.execute(select(School).where(School.slug == slug.lower())).scalar_one_or_none()
    if not school:
        raise NotFoundError("School not found")

    user = db.execute(select(User).where(User.email == email.lower())).scalar_one_or_none()
    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")

    if not user.is_active:
        raise PermissionDeniedError("Your account has been deactivated")

    roles = roles_for(db, user.id, school.id)
    if not roles:
        raise PermissionDeniedError("You do not have access to this school")

    user.last_login_at = datetime.utcnow()
    return LoginResult(user=user, school=school, roles=roles)


def create_user(
    db: Session,
    *,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    phone: Optional[str] = None,
    gender: Optional[str] = None,
) -> User:
    email = email.lower()
    if db.execute(select(User.id).where(User.email == email)).first():
        raise ConflictError("A user with this email already exists")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ServiceError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    user = User(
        email=email,
        first_name=first_name,
        last_name=last_name,
        phone=phone,
        gender=gender,
        password_hash=hash_password(password),
    )
    db.add(user)
    db.flush()
    return user


def ensure_membership(db: Session, school_id: str, user_id: str, role: str) -> SchoolMember:
    member = db.execute(
        select(SchoolMember).where(
            SchoolMember.school_id == school_id,
            SchoolMember.user_id == user_id,
            SchoolMember.role == role,
        )
    ).scalar_one_or_none()
    if member:
        return member
    member = SchoolMember(school_id=school_id, user_id=user_id, role=role)
    db.add(member)
    db.flush()
    return member


def update_profile(db: Session, user: User, **fields) -> User:
    for key in ("first_name", "last_name", "phone", "gender"):
        value = fields.get(key)
        if value is not None:
            setattr(user, key, value)
    db.flush()
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password_hash):
        raise ServiceError("Current password is incorrect")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ServiceError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if current_password == new_password:
        raise ServiceError("New password must differ from the current one")
    user.password_hash = hash_password(new_password)
    db.flush()
    logger.info(f"Password changed for user {user.id}")


def set_user_status(db: Session, school_id: str, actor: User, user_id: str, is_active: bool) -> User:
    if user_id == actor.id and not is_active:
        raise ServiceError("You cannot deactivate your own account")

    member = db.execute(
        select(SchoolMember.id).where(SchoolMember.school_id == school_id, SchoolMember.user_id == user_id)
    ).first()
    if not member:
        raise NotFoundError("User not found")

    user = db.get(User, user_id)
    user.is_active = is_active
    db.flush()
    logger.info(f"User {user_id} {'activated' if is_active else 'deactivated'} in school {school_id}")
    return user
