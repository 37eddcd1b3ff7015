# school_api/api/routers/setup.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from school_api.core.db import get_db
from school_api.core.security import create_refresh_token, create_token
from school_api.schemas.auth import user_out
from school_api.schemas.setup import PublicSchoolOut, SchoolSetupIn
from school_api.services.setup import get_setup_service, public_school_info

router = APIRouter(tags=["Setup"])


@router.get("/setup/suggest-school-code")
def suggest_school_code(db: Session = Depends(get_db)):
    return {"school_code": get_setup_service(db).suggest_school_code()}


@router.get("/setup/check-slug/{slug}")
def check_slug(slug: str, db: Session = Depends(get_db)):
    return get_setup_service(db).check_slug(slug)


@router.post("/setup", status_code=status.HTTP_201_CREATED)
def setup_school(payload: SchoolSetupIn, db: Session = Depends(get_db)):
    """Create a school, its first admin and the default academic/finance setup."""
    data = payload.model_dump(exclude={"admin"})
    result = get_setup_service(db).create_school(data, payload.admin.model_dump())
    db.commit()

    school, user = result.school, result.user
    roles = ["ADMIN"]
    return {
        "school": public_school_info(school),
        "user": user_out(user),
        "roles": roles,
        "access_token": create_token(
            sub=user.id, roles=roles, active_school_id=school.id, full_name=user.full_name, email=user.email
        ),
        "refresh_token": create_refresh_token(user.id, roles, school.id),
        "token_type": "bearer",
    }


@router.get("/schools/check/{slug}")
def school_exists(slug: str, db: Session = Depends(get_db)):
    check = get_setup_service(db).check_slug(slug)
    return {"slug": slug, "exists": check["valid"] and not check["available"]}


@router.get("/schools/{slug}", response_model=PublicSchoolOut)
def public_school(slug: str, db: Session = Depends(get_db)):
    return public_school_info(get_setup_service(db).get_by_slug(slug))
