# school_api/services/payments.py
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from school_api.core.errors import ConflictError, NotFoundError, ServiceError
from school_api.models.payment import PAYMENT_METHODS, REFERENCED_METHODS, Invoice, Payment
from school_api.models.student import Student
from school_api.models.user import User
from school_api.services.ledger import CASH, RECEIVABLES, post_journal

logger = logging.getLogger(__name__)


class PaymentService:
    def __init__(self, db: Session, school_id: str):
        self.db = db
        self.school_id = school_id

    def _student(self, student_id: str) -> Student:
        student = self.db.execute(
            select(Student).where(Student.id == student_id, Student.school_id == self.school_id)
        ).scalar_one_or_none()
        if not student:
            raise NotFoundError("Student not found")
        return student

    def _target_invoice(self, student: Student, invoice_id: Optional[str]) -> Invoice:
        if invoice_id:
            inv = self.db.get(Invoice, invoice_id)
            if not inv or inv.school_id != self.school_id:
                raise NotFoundError("Invoice not found")
            if inv.student_id != student.id:
                raise ServiceError("Invoice does not belong to this student")
            return inv

        # Oldest outstanding invoice first
        inv = self.db.execute(
            select(Invoice)
            .where(
                Invoice.school_id == self.school_id,
                Invoice.student_id == student.id,
                Invoice.status != "PAID",
            )
            .order_by(Invoice.created_at.asc(), Invoice.invoice_number.asc())
            .limit(1)
        ).scalar_one_or_none()
        if not inv:
            raise ServiceError("Student has no outstanding invoice")
        return inv

    def _next_receipt_number(self, on: date) -> str:
        prefix = f"RCT-{on:%Y%m%d}-"
        count = self.db.execute(
            select(func.count(Payment.id)).where(
                Payment.school_id == self.school_id, Payment.receipt_number.like(f"{prefix}%")
            )
        ).scalar_one()
        return f"{prefix}{count + 1:04d}"

    def post_payment(
        self,
        *,
        student_id: str,
        amount: Any,
        method: str,
        transaction_ref: Optional[str] = None,
        invoice_id: Optional[str] = None,
        paid_at: Optional[date] = None,
        recorded_by: Optional[User] = None,
    ) -> Payment:
        method = method.upper()
        if method not in PAYMENT_METHODS:
            raise ServiceError(f"method must be one of {', '.join(PAYMENT_METHODS)}")
        amount = Decimal(str(amount))
        if amount <= 0:
            raise ServiceError("Amount must be greater than zero")

        transaction_ref = (transaction_ref or "").strip() or None
        if method in REFERENCED_METHODS and not transaction_ref:
            raise ServiceError(f"transaction_ref is required for {method} payments")
        if transaction_ref:
            dup = self.db.execute(
                select(Payment.id).where(
                    Payment.school_id == self.school_id, Payment.transaction_ref == transaction_ref
                )
            ).first()
            if dup:
                raise ConflictError(f"Transaction {transaction_ref} has already been recorded")

        student = self._student(student_id)
        inv = self._target_invoice(student, invoice_id)
        balance = inv.balance
        if amount > balance:
            raise ServiceError(f"Payment of {amount} exceeds the invoice balance of {balance}")

        paid_at = paid_at or date.today()
        payment = Payment(
            school_id=self.school_id,
            receipt_number=self._next_receipt_number(paid_at),
            student_id=student.id,
            invoice_id=inv.id,
            amount=amount,
            method=method,
            transaction_ref=transaction_ref,
            paid_at=paid_at,
            recorded_by=recorded_by.id if recorded_by else None,
        )
        self.db.add(payment)

        inv.amount_paid = Decimal(inv.amount_paid) + amount
        inv.status = "PAID" if inv.amount_paid >= Decimal(inv.total) else "PARTIAL"
        self.db.flush()

        # Cash/Bank (1000) DR, A/R (1100) CR
        post_journal(
            self.db,
            self.school_id,
            on=paid_at,
            memo=f"Payment {payment.receipt_number} {transaction_ref or ''}".strip(),
            lines=[(CASH, amount, 0), (RECEIVABLES, 0, amount)],
            source_id=payment.id,
        )
        logger.info(
            f"Payment {payment.receipt_number} of {amount} via {method} applied to invoice {inv.invoice_number}"
        )
        return payment

    def list_payments(
        self,
        student_id: Optional[str] = None,
        method: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        query = (
            select(Payment, Student, Invoice.invoice_number)
            .join(Student, Student.id == Payment.student_id)
            .join(Invoice, Invoice.id == Payment.invoice_id)
            .where(Payment.school_id == self.school_id)
        )
        if student_id:
            query = query.where(Payment.student_id == student_id)
        if method:
            query = query.where(Payment.method == method.upper())
        if date_from:
            query = query.where(Payment.paid_at >= date_from)
        if date_to:
            query = query.where(Payment.paid_at <= date_to)
        rows = self.db.execute(query.order_by(Payment.paid_at.desc(), Payment.created_at.desc())).all()
        return [{**payment_dict(p), "student_name": s.full_name, "invoice_number": n} for p, s, n in rows]

    def statement(self, student_id: str) -> Dict[str, Any]:
        """Invoices and payments in date order with a running balance."""
        student = self._student(student_id)
        invoices = self.db.execute(
            select(Invoice).where(Invoice.school_id == self.school_id, Invoice.student_id == student.id)
        ).scalars().all()
        payments = self.db.execute(
            select(Payment).where(Payment.school_id == self.school_id, Payment.student_id == student.id)
        ).scalars().all()

        events = [
            (inv.created_at.date(), 0, inv.created_at, {
                "type": "INVOICE",
                "reference": inv.invoice_number,
                "debit": Decimal(inv.total),
                "credit": Decimal("0"),
            })
            for inv in invoices
        ] + [
            (p.paid_at, 1, p.created_at, {
                "type": "PAYMENT",
                "reference": p.receipt_number,
                "method": p.method,
                "debit": Decimal("0"),
                "credit": Decimal(p.amount),
            })
            for p in payments
        ]
        events.sort(key=lambda e: (e[0], e[1], e[2]))

        running = Decimal("0")
        entries = []
        for on, _, _, row in events:
            running += row["debit"] - row["credit"]
            entries.append(
                {**row, "date": on, "debit": float(row["debit"]), "credit": float(row["credit"]), "balance": float(running)}
            )

        total_invoiced = sum((Decimal(i.total) for i in invoices), Decimal("0"))
        total_paid = sum((Decimal(p.amount) for p in payments), Decimal("0"))
        return {
            "student_id": student.id,
            "student_name": student.full_name,
            "admission_number": student.admission_number,
            "total_invoiced": float(total_invoiced),
            "total_paid": float(total_paid),
            "balance": float(total_invoiced - total_paid),
            "entries": entries,
        }

    def balance_for(self, student_id: str) -> Dict[str, Any]:
        student = self._student(student_id)
        invoices = self.db.execute(
            select(Invoice)
            .where(Invoice.school_id == self.school_id, Invoice.student_id == student.id)
            .order_by(Invoice.created_at.desc())
        ).scalars().all()
        total = sum((Decimal(i.total) for i in invoices), Decimal("0"))
        paid = sum((Decimal(i.amount_paid) for i in invoices), Decimal("0"))
        return {
            "student_id": student.id,
            "student_name": student.full_name,
            "total_invoiced": float(total),
            "total_paid": float(paid),
            "balance": float(total - paid),
            "invoices": [
                {
                    "id": i.id,
                    "invoice_number": i.invoice_number,
                    "term_id": i.term_id,
                    "total": float(i.total),
                    "amount_paid": float(i.amount_paid),
                    "balance": float(i.balance),
                    "status": i.status,
                    "due_date": i.due_date,
                }
                for i in invoices
            ],
        }


def payment_dict(p: Payment) -> Dict[str, Any]:
    return {
        "id": p.id,
        "receipt_number": p.receipt_number,
        "student_id": p.student_id,
        "invoice_id": p.invoice_id,
        "amount": float(p.amount),
        "method": p.method,
        "transaction_ref": p.transaction_ref,
        "paid_at": p.paid_at,
    }


def get_payment_service(db: Session, school_id: str) -> PaymentService:
    return PaymentService(db, school_id)
