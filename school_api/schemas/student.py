# school_api/schemas/student.py
from datetime import date

from pydantic import BaseModel, Field


class StudentCreate(BaseModel):
    admission_number: str = Field(..., min_length=1)
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    gender: str | None = None
    date_of_birth: date | None = None
    stream_id: str | None = None
    parent_user_id: str | None = None


class StudentUpdate(BaseModel):
    admission_number: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    gender: str | None = None
    date_of_birth: date | None = None
    stream_id: str | None = None
    parent_user_id: str | None = None
    status: str | None = None


class StudentOut(BaseModel):
    id: str
    admission_number: str
    first_name: str
    last_name: str
    full_name: str
    gender: str | None = None
    date_of_birth: date | None = None
    status: str
    stream_id: str | None = None
    stream_name: str | None = None
    class_id: str | None = None
    class_name: str | None = None
    parent_user_id: str | None = None
