# school_api/services/classes.py
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from school_api.core.errors import ConflictError, NotFoundError
from school_api.models.class_model import Class, Stream
from school_api.models.student import Student


class ClassService:
    def __init__(self, db: Session, school_id: str):
        self.db = db
        self.school_id = school_id

    def list_classes(self) -> List[Dict[str, Any]]:
        stream_counts = (
            select(Stream.class_id, func.count(Stream.id).label("stream_count"))
            .where(Stream.school_id == self.school_id)
            .group_by(Stream.class_id)
            .subquery()
        )
        rows = self.db.execute(
            select(Class, func.coalesce(stream_counts.c.stream_count, 0))
            .outerjoin(stream_counts, stream_counts.c.class_id == Class.id)
            .where(Class.school_id == self.school_id)
            .order_by(Class.class_level.asc(), Class.class_name.asc())
        ).all()
        return [{**class_dict(c), "stream_count": int(n)} for c, n in rows]

    def get_class(self, class_id: str) -> Class:
        klass = self.db.execute(
            select(Class).where(Class.id == class_id, Class.school_id == self.school_id)
        ).scalar_one_or_none()
        if not klass:
            raise NotFoundError("Class not found")
        return klass

    def _name_taken(self, name: str, exclude_id: Optional[str] = None) -> bool:
        query = select(Class.id).where(Class.school_id == self.school_id, Class.class_name == name)
        if exclude_id:
            query = query.where(Class.id != exclude_id)
        return self.db.execute(query).first() is not None

    def create_class(self, class_name: str, class_level: int, curriculum_id: Optional[str] = None) -> Class:
        if self._name_taken(class_name):
            raise ConflictError(f"Class '{class_name}' already exists")
        klass = Class(
            school_id=self.school_id,
            class_name=class_name,
            class_level=class_level,
            curriculum_id=curriculum_id,
        )
        self.db.add(klass)
        self.db.flush()
        return klass

    def update_class(self, class_id: str, **fields: Any) -> Class:
        klass = self.get_class(class_id)
        name = fields.get("class_name")
        if name and name != klass.class_name:
            if self._name_taken(name, exclude_id=klass.id):
                raise ConflictError(f"Class '{name}' already exists")
            klass.class_name = name
        if fields.get("class_level") is not None:
            klass.class_level = fields["class_level"]
        if "curriculum_id" in fields:
            klass.curriculum_id = fields["curriculum_id"]
        self.db.flush()
        return klass

    def delete_class(self, class_id: str) -> None:
        klass = self.get_class(class_id)
        students = self.db.execute(
            select(func.count(Student.id))
            .join(Stream, Stream.id == Student.stream_id)
            .where(Stream.class_id == klass.id, Student.school_id == self.school_id)
        ).scalar_one()
        if students:
            raise ConflictError(f"Class '{klass.class_name}' still has {students} student(s)")
        self.db.delete(klass)
        self.db.flush()

    # ---- streams -----------------------------------------------------------

    def list_streams(self, class_id: Optional[str] = None) -> List[Stream]:
        query = select(Stream).where(Stream.school_id == self.school_id)
        if class_id:
            self.get_class(class_id)
            query = query.where(Stream.class_id == class_id)
        return list(self.db.execute(query.order_by(Stream.name)).scalars().all())

    def get_stream(self, stream_id: str) -> Stream:
        stream = self.db.execute(
            select(Stream).where(Stream.id == stream_id, Stream.school_id == self.school_id)
        ).scalar_one_or_none()
        if not stream:
            raise NotFoundError("Stream not found")
        return stream

    def create_stream(self, class_id: str, name: str, capacity: Optional[int] = None) -> Stream:
        klass = self.get_class(class_id)
        exists = self.db.execute(
            select(Stream.id).where(Stream.class_id == klass.id, Stream.name == name)
        ).first()
        if exists:
            raise ConflictError(f"Stream '{name}' already exists in {klass.class_name}")
        stream = Stream(school_id=self.school_id, class_id=klass.id, name=name, capacity=capacity)
        self.db.add(stream)
        self.db.flush()
        return stream

    def delete_stream(self, stream_id: str) -> None:
        stream = self.get_stream(stream_id)
        students = self.db.execute(
            select(func.count(Student.id)).where(Student.stream_id == stream.id)
        ).scalar_one()
        if students:
            raise ConflictError(f"Stream '{stream.name}' still has {students} student(s)")
        self.db.delete(stream)
        self.db.flush()


def class_dict(c: Class) -> Dict[str, Any]:
    return {
        "id": c.id,
        "class_name": c.class_name,
        "class_level": c.class_level,
        "curriculum_id": c.curriculum_id,
    }


def stream_dict(s: Stream) -> Dict[str, Any]:
    return {
        "id": s.id,
        "class_id": s.class_id,
        "name": s.name,
        "capacity": s.capacity,
    }


def get_class_service(db: Session, school_id: str) -> ClassService:
    return ClassService(db, school_id)
