# school_api/api/routers/auth.py
from typing import Optional

import jwt
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from school_api.api.deps.auth import client_ip, get_current_user, require_roles
from school_api.api.deps.tenancy import require_school
from school_api.core.config import settings
from school_api.core.db import get_db
from school_api.core.errors import ServiceError
from school_api.core.rate_limit import limiter
from school_api.core.security import REFRESH, create_refresh_token, create_token, decode_token
from school_api.models.school import School, SchoolMember
from school_api.models.user import User
from school_api.schemas.auth import (
    LoginIn,
    LoginOut,
    PasswordChange,
    ProfileUpdate,
    RefreshIn,
    SchoolBrief,
    TokenOut,
    UserCreate,
    UserStatusIn,
    user_out,
)
from school_api.services import auth as auth_service
from school_api.services.audit import record_audit

router = APIRouter(tags=["Auth"])


def _primary_role(roles: list[str]) -> Optional[str]:
    return roles[0] if roles else None


@router.post("/auth/login", response_model=LoginOut)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
def login(request: Request, payload: LoginIn, db: Session = Depends(get_db)):
    ip = client_ip(request)
    try:
        result = auth_service.authenticate(db, payload.email, payload.password, payload.slug)
    except ServiceError as e:
        school_id = db.execute(select(School.id).where(School.slug == payload.slug.lower())).scalar_one_or_none()
        record_audit(
            db,
            action="LOGIN_FAILED",
            school_id=school_id,
            actor_name=payload.email,
            details=e.message,
            ip_address=ip,
            severity="CRITICAL",
        )
        # keep the audit row even though the request fails
        db.commit()
        raise

    user, school, roles = result.user, result.school, result.roles
    record_audit(
        db,
        action="LOGIN",
        school_id=school.id,
        user=user,
        role=_primary_role(roles),
        details=f"Signed in to {school.slug}",
        ip_address=ip,
        severity="SUCCESS",
    )
    db.commit()

    return LoginOut(
        access_token=create_token(
            sub=user.id,
            roles=roles,
            active_school_id=school.id,
            full_name=user.full_name,
            email=user.email,
        ),
        refresh_token=create_refresh_token(user.id, roles, school.id),
        user=user_out(user),
        roles=roles,
        school=SchoolBrief(id=school.id, name=school.name, slug=school.slug, curriculum_type=school.curriculum_type),
    )


@router.post("/auth/refresh", response_model=TokenOut)
def refresh(payload: RefreshIn, db: Session = Depends(get_db)):
    try:
        claims = decode_token(payload.refresh_token)
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")
    if claims.get("type") != REFRESH:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not a refresh token")

    user = db.get(User, claims.get("sub"))
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")

    # roles are re-read so revoked memberships take effect on refresh
    school_id = claims.get("active_school_id")
    roles = auth_service.roles_for(db, user.id, school_id) if school_id else []
    if school_id and not roles:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You no longer have access to this school")

    return TokenOut(
        access_token=create_token(
            sub=user.id, roles=roles, active_school_id=school_id, full_name=user.full_name, email=user.email
        )
    )


@router.get("/auth/me")
def me(ctx=Depends(get_current_user), db: Session = Depends(get_db)):
    school_id = ctx["claims"].get("active_school_id")
    school = db.get(School, school_id) if school_id else None
    return {
        "user": user_out(ctx["user"]),
        "roles": ctx["roles"],
        "school": SchoolBrief(
            id=school.id, name=school.name, slug=school.slug, curriculum_type=school.curriculum_type
        ) if school else None,
    }


@router.post("/auth/logout")
def logout(
    request: Request,
    ctx=Depends(get_current_user),
    school_id: str = Depends(require_school),
    db: Session = Depends(get_db),
):
    record_audit(
        db,
        action="LOGOUT",
        school_id=school_id,
        user=ctx["user"],
        role=_primary_role(ctx["roles"]),
        ip_address=client_ip(request),
    )
    db.commit()
    return {"success": True}


# ---- users ------------------------------------------------------------------

@router.get("/auth/users")
def list_users(
    role: Optional[str] = Query(None),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    query = (
        select(User, SchoolMember.role)
        .join(SchoolMember, SchoolMember.user_id == User.id)
        .where(SchoolMember.school_id == school_id)
        .order_by(User.first_name, User.last_name)
    )
    if role:
        query = query.where(SchoolMember.role == role.upper())
    return [{**user_out(u).model_dump(), "role": r} for u, r in db.execute(query).all()]


@router.post("/auth/users", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    """Create an admin, bursar or parent login. Teachers go through /auth/teachers."""
    user = auth_service.create_user(
        db,
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
        gender=payload.gender,
    )
    auth_service.ensure_membership(db, school_id, user.id, payload.role)
    record_audit(
        db,
        action="USER_CREATED",
        school_id=school_id,
        user=ctx["user"],
        role="ADMIN",
        details=f"Created {payload.role} {user.email}",
    )
    db.commit()
    return {**user_out(user).model_dump(), "role": payload.role}


@router.patch("/auth/users/{user_id}/status")
def set_user_status(
    user_id: str,
    payload: UserStatusIn,
    request: Request,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN")),
    db: Session = Depends(get_db),
):
    user = auth_service.set_user_status(db, school_id, ctx["user"], user_id, payload.is_active)
    record_audit(
        db,
        action="USER_ACTIVATED" if payload.is_active else "USER_DEACTIVATED",
        school_id=school_id,
        user=ctx["user"],
        role="ADMIN",
        details=f"{user.email} is_active={payload.is_active}",
        ip_address=client_ip(request),
        severity="INFO" if payload.is_active else "CRITICAL",
    )
    db.commit()
    return user_out(user)


@router.get("/users/profile")
def get_profile(ctx=Depends(get_current_user)):
    return user_out(ctx["user"])


@router.put("/users/profile")
def update_profile(payload: ProfileUpdate, ctx=Depends(get_current_user), db: Session = Depends(get_db)):
    user = auth_service.update_profile(db, ctx["user"], **payload.model_dump(exclude_unset=True))
    db.commit()
    return user_out(user)


@router.post("/users/change-password")
def change_password(payload: PasswordChange, ctx=Depends(get_current_user), db: Session = Depends(get_db)):
    auth_service.change_password(db, ctx["user"], payload.current_password, payload.new_password)
    db.commit()
    return {"success": True}
