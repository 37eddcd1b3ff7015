# school_api/services/ledger.py
"""Double-entry postings against the school's GL chart."""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from school_api.core.errors import ServiceError
from school_api.models.accounting import GLAccount, JournalEntry, JournalLine

CASH = "1000"
RECEIVABLES = "1100"
TUITION = "4000"


def _get_account(db: Session, school_id: str, code: str) -> str:
    acc = db.execute(
        select(GLAccount.id).where(GLAccount.school_id == school_id, GLAccount.code == code)
    ).scalar_one_or_none()
    if not acc:
        raise ServiceError(f"GL account {code} missing")
    return acc


def post_journal(
    db: Session,
    school_id: str,
    *,
    on: date,
    memo: str,
    lines: Iterable[Tuple[str, Any, Any]],
    source_id: Optional[str] = None,
) -> JournalEntry:
    """Post ``(account_code, debit, credit)`` lines; debits must equal credits."""
    lines = [(code, Decimal(str(dr)), Decimal(str(cr))) for code, dr, cr in lines]
    if sum(dr for _, dr, _ in lines) != sum(cr for _, _, cr in lines):
        raise ServiceError("Journal entry does not balance")

    je = JournalEntry(school_id=school_id, date=on, memo=memo, source_id=source_id)
    db.add(je)
    db.flush()
    for code, dr, cr in lines:
        db.add(
            JournalLine(
                school_id=school_id,
                journal_id=je.id,
                account_id=_get_account(db, school_id, code),
                debit=dr,
                credit=cr,
            )
        )
    return je


def ledger_report(db: Session, school_id: str, limit: int = 200) -> Dict[str, Any]:
    rows = db.execute(
        select(JournalLine, JournalEntry, GLAccount)
        .join(JournalEntry, JournalEntry.id == JournalLine.journal_id)
        .join(GLAccount, GLAccount.id == JournalLine.account_id)
        .where(JournalLine.school_id == school_id)
        .order_by(JournalEntry.date.desc(), JournalEntry.created_at.desc(), GLAccount.code)
        .limit(limit)
    ).all()

    totals = db.execute(
        select(
            GLAccount.code,
            GLAccount.name,
            func.coalesce(func.sum(JournalLine.debit), 0),
            func.coalesce(func.sum(JournalLine.credit), 0),
        )
        .join(JournalLine, JournalLine.account_id == GLAccount.id)
        .where(GLAccount.school_id == school_id)
        .group_by(GLAccount.code, GLAccount.name)
        .order_by(GLAccount.code)
    ).all()

    total_debit = sum((Decimal(str(dr)) for _, _, dr, _ in totals), Decimal("0"))
    total_credit = sum((Decimal(str(cr)) for _, _, _, cr in totals), Decimal("0"))

    return {
        "lines": [
            {
                "journal_id": je.id,
                "date": je.date,
                "memo": je.memo,
                "account_code": acc.code,
                "account_name": acc.name,
                "debit": float(line.debit),
                "credit": float(line.credit),
            }
            for line, je, acc in rows
        ],
        "trial_balance": {
            "accounts": [
                {
                    "code": code,
                    "name": name,
                    "debit": float(dr),
                    "credit": float(cr),
                    "balance": float(Decimal(str(dr)) - Decimal(str(cr))),
                }
                for code, name, dr, cr in totals
            ],
            "total_debit": float(total_debit),
            "total_credit": float(total_credit),
            "balanced": total_debit == total_credit,
        },
    }
