# school_api/api/deps/auth.py
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from school_api.core.db import get_db
from school_api.core.security import ACCESS, decode_token
from school_api.models.user import User

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """
    Decode the bearer JWT and load its user.
    Returns: {"user": User, "claims": dict, "roles": list[str]}
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    try:
        claims = decode_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid token")

    if claims.get("type", ACCESS) != ACCESS:
        raise _unauthorized("Invalid token type")

    user_id = claims.get("sub")
    if not user_id:
        raise _unauthorized("Token missing user ID")

    user = db.execute(select(User).where(User.id == user_id)).scalar_one_or_none()
    if not user:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is deactivated")

    return {"user": user, "claims": claims, "roles": list(claims.get("roles") or [])}


def require_roles(*roles: str):
    """Dependency factory: the caller must hold at least one of ``roles``."""

    def checker(ctx: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if not set(ctx["roles"]) & set(roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires one of: {', '.join(roles)}",
            )
        return ctx

    return checker


def has_role(ctx: Dict[str, Any], role: str) -> bool:
    return role in ctx["roles"]


def client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None
