# school_api/services/reconciliation.py
"""
Statement reconciliation.

Each external statement line is matched to a recorded payment by its
transaction reference:

* ``matched``          reference found, amounts equal
* ``amount_mismatch``  reference found, amounts differ
* ``unmatched``        no payment carries the reference

Recorded MPESA/BANK payments dated inside the statement window but absent
from it are reported as ``missing_from_statement``.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from school_api.models.payment import REFERENCED_METHODS, Payment
from school_api.models.student import Student
from school_api.services.mpesa import StatementTransaction

logger = logging.getLogger(__name__)


class ReconciliationService:
    def __init__(self, db: Session, school_id: str):
        self.db = db
        self.school_id = school_id

    def reconcile(
        self,
        transactions: Sequence[StatementTransaction],
        source: str = "MPESA",
        window: Optional[tuple[date, date]] = None,
    ) -> Dict[str, Any]:
        refs = [t.reference.strip() for t in transactions]
        payments: Dict[str, Any] = {}
        if refs:
            rows = self.db.execute(
                select(Payment, Student)
                .join(Student, Student.id == Payment.student_id)
                .where(Payment.school_id == self.school_id, Payment.transaction_ref.in_(refs))
            ).all()
            payments = {p.transaction_ref: (p, s) for p, s in rows}

        lines: List[Dict[str, Any]] = []
        counts = {"matched": 0, "amount_mismatch": 0, "unmatched": 0}
        for txn in transactions:
            ref = txn.reference.strip()
            amount = Decimal(str(txn.amount))
            row: Dict[str, Any] = {
                "reference": ref,
                "amount": float(amount),
                "sender_name": txn.sender_name,
                "sender_account": txn.sender_account,
                "transaction_date": txn.transaction_date,
                "payment_id": None,
                "receipt_number": None,
                "student_id": None,
                "student_name": None,
                "recorded_amount": None,
            }
            hit = payments.get(ref)
            if hit is None:
                row["status"] = "unmatched"
            else:
                payment, student = hit
                row.update(
                    payment_id=payment.id,
                    receipt_number=payment.receipt_number,
                    student_id=student.id,
                    student_name=student.full_name,
                    recorded_amount=float(payment.amount),
                    status="matched" if Decimal(payment.amount) == amount else "amount_mismatch",
                )
            counts[row["status"]] += 1
            lines.append(row)

        if window is None and transactions:
            dates = [t.transaction_date.date() for t in transactions]
            window = (min(dates), max(dates))

        missing: List[Dict[str, Any]] = []
        if window is not None:
            methods = (source.upper(),) if source.upper() in REFERENCED_METHODS else REFERENCED_METHODS
            recorded = self.db.execute(
                select(Payment, Student)
                .join(Student, Student.id == Payment.student_id)
                .where(
                    Payment.school_id == self.school_id,
                    Payment.method.in_(methods),
                    Payment.paid_at >= window[0],
                    Payment.paid_at <= window[1],
                )
                .order_by(Payment.paid_at)
            ).all()
            seen = set(refs)
            missing = [
                {
                    "payment_id": p.id,
                    "receipt_number": p.receipt_number,
                    "transaction_ref": p.transaction_ref,
                    "amount": float(p.amount),
                    "paid_at": p.paid_at,
                    "student_id": s.id,
                    "student_name": s.full_name,
                }
                for p, s in recorded
                if p.transaction_ref not in seen
            ]

        logger.info(
            f"{source} statement reconciled: {len(lines)} lines, {counts['matched']} matched, "
            f"{counts['amount_mismatch']} mismatched, {counts['unmatched']} unmatched, {len(missing)} missing"
        )
        return {
            "source": source.upper(),
            "window": {"from": window[0], "to": window[1]} if window else None,
            "summary": {**counts, "total": len(lines), "missing_from_statement": len(missing)},
            "transactions": lines,
            "missing_from_statement": missing,
        }


def get_reconciliation_service(db: Session, school_id: str) -> ReconciliationService:
    return ReconciliationService(db, school_id)
