# school_api/schemas/auth.py
from typing import Literal

from pydantic import BaseModel, EmailStr, Field


class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)


class RefreshIn(BaseModel):
    refresh_token: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserOut(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    full_name: str
    phone: str | None = None
    gender: str | None = None
    is_active: bool


class SchoolBrief(BaseModel):
    id: str
    name: str
    slug: str
    curriculum_type: str


class LoginOut(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserOut
    roles: list[str]
    school: SchoolBrief


class ProfileUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=1)
    last_name: str | None = Field(None, min_length=1)
    phone: str | None = None
    gender: str | None = None


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)


class UserStatusIn(BaseModel):
    is_active: bool


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    phone: str | None = None
    gender: str | None = None
    role: Literal["ADMIN", "BURSAR", "PARENT"]


def user_out(u) -> UserOut:
    return UserOut(
        id=u.id,
        email=u.email,
        first_name=u.first_name,
        last_name=u.last_name,
        full_name=u.full_name,
        phone=u.phone,
        gender=u.gender,
        is_active=u.is_active,
    )
