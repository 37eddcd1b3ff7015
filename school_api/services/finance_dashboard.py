# school_api/services/finance_dashboard.py
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from school_api.models.class_model import Class, Stream
from school_api.models.payment import Invoice, Payment
from school_api.models.student import Student

ZERO = Decimal("0")


def _rate(collected: Decimal, invoiced: Decimal) -> float:
    return round(float(collected / invoiced * 100), 2) if invoiced > 0 else 0.0


class FinanceDashboardService:
    """Read-only roll-ups for the bursar/admin finance dashboard."""

    def __init__(self, db: Session, school_id: str):
        self.db = db
        self.school_id = school_id

    def summary(self, term_id: Optional[str] = None, today: Optional[date] = None) -> Dict[str, Any]:
        today = today or date.today()
        inv_q = select(
            func.coalesce(func.sum(Invoice.total), 0),
            func.coalesce(func.sum(Invoice.amount_paid), 0),
            func.count(Invoice.id),
        ).where(Invoice.school_id == self.school_id)
        if term_id:
            inv_q = inv_q.where(Invoice.term_id == term_id)
        invoiced, paid_on_invoices, invoice_count = self.db.execute(inv_q).one()
        invoiced = Decimal(str(invoiced))
        paid_on_invoices = Decimal(str(paid_on_invoices))

        pay_q = select(func.coalesce(func.sum(Payment.amount), 0)).where(Payment.school_id == self.school_id)
        if term_id:
            pay_q = pay_q.join(Invoice, Invoice.id == Payment.invoice_id).where(Invoice.term_id == term_id)
        collected = Decimal(str(self.db.execute(pay_q).scalar_one()))

        today_total, today_count = self.db.execute(
            select(func.coalesce(func.sum(Payment.amount), 0), func.count(Payment.id)).where(
                Payment.school_id == self.school_id, Payment.paid_at == today
            )
        ).one()

        students = self.db.execute(
            select(func.count(Student.id)).where(Student.school_id == self.school_id, Student.status == "ACTIVE")
        ).scalar_one()

        return {
            "total_invoiced": float(invoiced),
            "total_collected": float(collected),
            "outstanding": float(invoiced - paid_on_invoices),
            "collection_rate": _rate(collected, invoiced),
            "invoice_count": invoice_count,
            "student_count": students,
            "today_collections": float(Decimal(str(today_total))),
            "today_payment_count": today_count,
        }

    def student_ledger(
        self,
        class_id: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        One row per student with invoiced / paid / balance.

        ``status`` filters on the derived fee status: PAID, PARTIAL,
        UNPAID or NO_INVOICE.
        """
        totals = (
            select(
                Invoice.student_id,
                func.sum(Invoice.total).label("invoiced"),
                func.sum(Invoice.amount_paid).label("paid"),
            )
            .where(Invoice.school_id == self.school_id)
            .group_by(Invoice.student_id)
            .subquery()
        )
        query = (
            select(Student, Stream, Class, totals.c.invoiced, totals.c.paid)
            .outerjoin(Stream, Stream.id == Student.stream_id)
            .outerjoin(Class, Class.id == Stream.class_id)
            .outerjoin(totals, totals.c.student_id == Student.id)
            .where(Student.school_id == self.school_id)
        )
        if class_id:
            query = query.where(Class.id == class_id)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.where(
                or_(
                    Student.first_name.ilike(pattern),
                    Student.last_name.ilike(pattern),
                    Student.admission_number.ilike(pattern),
                )
            )

        rows = []
        for student, stream, klass, invoiced, paid in self.db.execute(query.order_by(Student.admission_number)).all():
            invoiced = Decimal(str(invoiced or 0))
            paid = Decimal(str(paid or 0))
            balance = invoiced - paid
            if invoiced == 0:
                fee_status = "NO_INVOICE"
            elif balance <= 0:
                fee_status = "PAID"
            elif paid > 0:
                fee_status = "PARTIAL"
            else:
                fee_status = "UNPAID"
            if status and status.upper() != fee_status:
                continue
            rows.append(
                {
                    "student_id": student.id,
                    "student_name": student.full_name,
                    "admission_number": student.admission_number,
                    "class_id": klass.id if klass else None,
                    "class_name": klass.class_name if klass else None,
                    "stream_name": stream.name if stream else None,
                    "total_invoiced": float(invoiced),
                    "total_paid": float(paid),
                    "balance": float(balance),
                    "status": fee_status,
                }
            )
        return rows

    def class_summary(self) -> List[Dict[str, Any]]:
        by_class: Dict[str, Dict[str, Any]] = {}
        for row in self.student_ledger():
            if not row["class_id"]:
                continue
            c = by_class.setdefault(
                row["class_id"],
                {
                    "class_id": row["class_id"],
                    "class_name": row["class_name"],
                    "student_count": 0,
                    "invoiced": ZERO,
                    "collected": ZERO,
                },
            )
            c["student_count"] += 1
            c["invoiced"] += Decimal(str(row["total_invoiced"]))
            c["collected"] += Decimal(str(row["total_paid"]))

        out = []
        for c in sorted(by_class.values(), key=lambda c: c["class_name"]):
            out.append(
                {
                    "class_id": c["class_id"],
                    "class_name": c["class_name"],
                    "student_count": c["student_count"],
                    "total_invoiced": float(c["invoiced"]),
                    "total_collected": float(c["collected"]),
                    "outstanding": float(c["invoiced"] - c["collected"]),
                    "collection_rate": _rate(c["collected"], c["invoiced"]),
                }
            )
        return out

    def top_debtors(self, limit: int = 10) -> List[Dict[str, Any]]:
        debtors = [r for r in self.student_ledger() if r["balance"] > 0]
        debtors.sort(key=lambda r: r["balance"], reverse=True)
        return debtors[:limit]

    def recent_activities(self, limit: int = 10) -> List[Dict[str, Any]]:
        payments = self.db.execute(
            select(Payment, Student)
            .join(Student, Student.id == Payment.student_id)
            .where(Payment.school_id == self.school_id)
            .order_by(Payment.created_at.desc())
            .limit(limit)
        ).all()
        invoices = self.db.execute(
            select(Invoice, Student)
            .join(Student, Student.id == Invoice.student_id)
            .where(Invoice.school_id == self.school_id)
            .order_by(Invoice.created_at.desc())
            .limit(limit)
        ).all()

        events = [
            {
                "type": "PAYMENT",
                "reference": p.receipt_number,
                "student_id": s.id,
                "student_name": s.full_name,
                "amount": float(p.amount),
                "method": p.method,
                "at": p.created_at,
            }
            for p, s in payments
        ] + [
            {
                "type": "INVOICE",
                "reference": i.invoice_number,
                "student_id": s.id,
                "student_name": s.full_name,
                "amount": float(i.total),
                "method": None,
                "at": i.created_at,
            }
            for i, s in invoices
        ]
        events.sort(key=lambda e: e["at"], reverse=True)
        return events[:limit]


def get_finance_dashboard_service(db: Session, school_id: str) -> FinanceDashboardService:
    return FinanceDashboardService(db, school_id)
