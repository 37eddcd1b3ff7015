# school_api/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from passlib.context import CryptContext

from school_api.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS = "access"
REFRESH = "refresh"


def hash_password(pw: str) -> str:
    return pwd_context.hash(pw)


def verify_password(pw: str, hashed: str) -> bool:
    return pwd_context.verify(pw, hashed)


def create_token(
    sub: str,
    roles: list[str],
    active_school_id: Optional[str],
    minutes: int | None = None,
    full_name: str | None = None,
    email: str | None = None,
    token_type: str = ACCESS,
) -> str:
    now = datetime.now(tz=timezone.utc)
    if minutes is None:
        minutes = settings.JWT_EXPIRES_MINUTES
    payload: dict[str, Any] = {
        "sub": sub,
        "roles": roles,
        "active_school_id": active_school_id,
        "type": token_type,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=minutes)).timestamp()),
    }
    if full_name:
        payload["full_name"] = full_name
    if email:
        payload["email"] = email

    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def create_refresh_token(sub: str, roles: list[str], active_school_id: Optional[str]) -> str:
    return create_token(
        sub=sub,
        roles=roles,
        active_school_id=active_school_id,
        minutes=settings.REFRESH_EXPIRES_DAYS * 24 * 60,
        token_type=REFRESH,
    )


def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
