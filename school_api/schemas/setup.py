# school_api/schemas/setup.py
from typing import Literal

from pydantic import BaseModel, EmailStr, Field


class AdminIn(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    phone: str | None = None
    gender: str | None = None


class SchoolSetupIn(BaseModel):
    school_code: str = Field(..., min_length=3, max_length=16)
    name: str = Field(..., min_length=2)
    email: EmailStr
    slug: str
    address: str | None = None
    phone: str | None = None
    website: str | None = None
    curriculum_type: Literal["CBC", "8-4-4"] = "CBC"
    primary_color: str | None = None
    portal_title: str | None = None
    welcome_message: str | None = None
    admin: AdminIn


class PublicSchoolOut(BaseModel):
    id: str
    name: str
    slug: str
    school_code: str
    curriculum_type: str
    primary_color: str | None = None
    portal_title: str | None = None
    welcome_message: str | None = None
    website: str | None = None
