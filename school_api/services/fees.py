# school_api/services/fees.py
"""
Fee structures and term invoicing.

A structure prices one class for one term. Once published it is frozen
and can be billed: every ACTIVE student in the class's streams receives
one invoice per term.
"""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from school_api.core.config import settings
from school_api.core.errors import ConflictError, NotFoundError, ServiceError
from school_api.models.academic import AcademicTerm
from school_api.models.class_model import Stream
from school_api.models.fee import FEE_CATEGORIES, FeeItem, FeeStructure
from school_api.models.payment import Invoice, InvoiceLine
from school_api.models.student import Student
from school_api.services.academic import get_academic_service
from school_api.services.classes import get_class_service
from school_api.services.ledger import RECEIVABLES, TUITION, post_journal

logger = logging.getLogger(__name__)


def _items(structure: FeeStructure, items: List[Dict[str, Any]]) -> List[FeeItem]:
    built = []
    for item in items:
        amount = Decimal(str(item.get("amount", 0)))
        if amount < 0:
            raise ServiceError(f"Fee item '{item.get('item_name')}' has a negative amount")
        category = (item.get("category") or "OTHER").upper()
        if category not in FEE_CATEGORIES:
            raise ServiceError(f"category must be one of {', '.join(FEE_CATEGORIES)}")
        built.append(
            FeeItem(
                school_id=structure.school_id,
                item_name=item["item_name"],
                amount=amount,
                is_optional=bool(item.get("is_optional", False)),
                category=category,
            )
        )
    return built


class FeesService:
    def __init__(self, db: Session, school_id: str):
        self.db = db
        self.school_id = school_id

    # ---- structures --------------------------------------------------------

    def list_structures(self, term_id: Optional[str] = None, class_id: Optional[str] = None) -> List[FeeStructure]:
        query = (
            select(FeeStructure)
            .where(FeeStructure.school_id == self.school_id)
            .options(selectinload(FeeStructure.items))
        )
        if term_id:
            query = query.where(FeeStructure.term_id == term_id)
        if class_id:
            query = query.where(FeeStructure.class_id == class_id)
        return list(self.db.execute(query.order_by(FeeStructure.name)).scalars().all())

    def get_structure(self, structure_id: str) -> FeeStructure:
        structure = self.db.execute(
            select(FeeStructure).where(FeeStructure.id == structure_id, FeeStructure.school_id == self.school_id)
        ).scalar_one_or_none()
        if not structure:
            raise NotFoundError("Fee structure not found")
        return structure

    def create_structure(
        self, name: str, class_id: str, term_id: str, items: List[Dict[str, Any]]
    ) -> FeeStructure:
        get_class_service(self.db, self.school_id).get_class(class_id)
        get_academic_service(self.db, self.school_id).get_term(term_id)

        exists = self.db.execute(
            select(FeeStructure.id).where(
                FeeStructure.school_id == self.school_id,
                FeeStructure.class_id == class_id,
                FeeStructure.term_id == term_id,
            )
        ).first()
        if exists:
            raise ConflictError("A fee structure already exists for this class and term")

        structure = FeeStructure(school_id=self.school_id, name=name, class_id=class_id, term_id=term_id)
        structure.items.extend(_items(structure, items))
        self.db.add(structure)
        self.db.flush()
        logger.info(f"Fee structure {structure.id} created for school {self.school_id}")
        return structure

    def replace_items(self, structure_id: str, items: List[Dict[str, Any]]) -> FeeStructure:
        structure = self.get_structure(structure_id)
        if structure.is_published:
            raise ConflictError("A published fee structure cannot be changed")
        structure.items.clear()
        self.db.flush()
        structure.items.extend(_items(structure, items))
        self.db.flush()
        return structure

    def publish(self, structure_id: str) -> FeeStructure:
        structure = self.get_structure(structure_id)
        if structure.is_published:
            raise ConflictError("Fee structure is already published")
        if not structure.items or sum(Decimal(i.amount) for i in structure.items) <= 0:
            raise ServiceError("Cannot publish a fee structure with no priced items")
        structure.is_published = True
        self.db.flush()
        logger.info(f"Fee structure {structure.id} published")
        return structure

    # ---- invoices ----------------------------------------------------------

    def _next_invoice_number(self, year: int) -> str:
        prefix = f"INV-{year}-"
        count = self.db.execute(
            select(func.count(Invoice.id)).where(
                Invoice.school_id == self.school_id, Invoice.invoice_number.like(f"{prefix}%")
            )
        ).scalar_one()
        return f"{prefix}{count + 1:05d}"

    def generate_invoices_for_term(
        self,
        term_id: str,
        class_ids: Optional[List[str]] = None,
        include_optional: bool = False,
        due_date: Optional[date] = None,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        term: AcademicTerm = get_academic_service(self.db, self.school_id).get_term(term_id)
        today = today or date.today()
        due_date = due_date or today + timedelta(days=settings.INVOICE_DUE_DAYS)

        query = (
            select(FeeStructure)
            .where(
                FeeStructure.school_id == self.school_id,
                FeeStructure.term_id == term.id,
                FeeStructure.is_published.is_(True),
            )
            .options(selectinload(FeeStructure.items))
        )
        if class_ids:
            query = query.where(FeeStructure.class_id.in_(class_ids))
        structures = self.db.execute(query).scalars().all()
        if not structures:
            raise ServiceError("No published fee structure found for this term")

        already_billed = set(
            self.db.execute(
                select(Invoice.student_id).where(Invoice.school_id == self.school_id, Invoice.term_id == term.id)
            ).scalars().all()
        )

        created: List[Invoice] = []
        skipped = 0
        for structure in structures:
            billable = [i for i in structure.items if include_optional or not i.is_optional]
            total = sum((Decimal(i.amount) for i in billable), Decimal("0"))
            if total <= 0:
                continue

            students = self.db.execute(
                select(Student)
                .join(Stream, Stream.id == Student.stream_id)
                .where(
                    Student.school_id == self.school_id,
                    Stream.class_id == structure.class_id,
                    Student.status == "ACTIVE",
                )
                .order_by(Student.admission_number)
            ).scalars().all()

            for student in students:
                if student.id in already_billed:
                    skipped += 1
                    continue

                invoice = Invoice(
                    school_id=self.school_id,
                    invoice_number=self._next_invoice_number(today.year),
                    student_id=student.id,
                    term_id=term.id,
                    total=total,
                    amount_paid=Decimal("0"),
                    status="UNPAID",
                    due_date=due_date,
                )
                for item in billable:
                    invoice.lines.append(
                        InvoiceLine(
                            school_id=self.school_id,
                            item_name=item.item_name,
                            category=item.category,
                            amount=item.amount,
                        )
                    )
                self.db.add(invoice)
                self.db.flush()

                # A/R (1100) DR, Tuition Fees (4000) CR
                post_journal(
                    self.db,
                    self.school_id,
                    on=today,
                    memo=f"Invoice {invoice.invoice_number}",
                    lines=[(RECEIVABLES, total, 0), (TUITION, 0, total)],
                    source_id=invoice.id,
                )
                already_billed.add(student.id)
                created.append(invoice)

        logger.info(f"Term {term.id}: {len(created)} invoices generated, {skipped} skipped")
        return {"invoices": created, "skipped": skipped}

    def list_invoices(
        self,
        student_id: Optional[str] = None,
        term_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Invoice]:
        query = select(Invoice).where(Invoice.school_id == self.school_id)
        if student_id:
            query = query.where(Invoice.student_id == student_id)
        if term_id:
            query = query.where(Invoice.term_id == term_id)
        if status:
            query = query.where(Invoice.status == status.upper())
        return list(self.db.execute(query.order_by(Invoice.created_at.desc())).scalars().all())


def structure_dict(s: FeeStructure) -> Dict[str, Any]:
    items = [
        {
            "id": i.id,
            "item_name": i.item_name,
            "amount": float(i.amount),
            "is_optional": i.is_optional,
            "category": i.category,
        }
        for i in s.items
    ]
    return {
        "id": s.id,
        "name": s.name,
        "class_id": s.class_id,
        "term_id": s.term_id,
        "is_published": s.is_published,
        "total": sum(i["amount"] for i in items if not i["is_optional"]),
        "items": items,
    }


def invoice_dict(inv: Invoice) -> Dict[str, Any]:
    return {
        "id": inv.id,
        "invoice_number": inv.invoice_number,
        "student_id": inv.student_id,
        "term_id": inv.term_id,
        "total": float(inv.total),
        "amount_paid": float(inv.amount_paid),
        "balance": float(inv.balance),
        "status": inv.status,
        "due_date": inv.due_date,
        "created_at": inv.created_at,
        "lines": [
            {"item_name": l.item_name, "category": l.category, "amount": float(l.amount)} for l in inv.lines
        ],
    }


def get_fees_service(db: Session, school_id: str) -> FeesService:
    return FeesService(db, school_id)
