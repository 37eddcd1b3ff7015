# school_api/api/routers/reconciliation.py
import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from school_api.api.deps.auth import client_ip, has_role, require_roles
from school_api.api.deps.mpesa import get_mpesa_gateway
from school_api.api.deps.tenancy import require_school
from school_api.core.db import get_db
from school_api.services.audit import record_audit
from school_api.services.mpesa import MpesaGateway, StatementTransaction
from school_api.services.reconciliation import get_reconciliation_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/finance/reconciliation", tags=["Reconciliation"])


class StatementLine(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reference: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    transaction_date: datetime = Field(..., alias="transactionDate")
    sender_name: Optional[str] = Field(None, alias="senderName")
    sender_account: Optional[str] = Field(None, alias="senderAccount")


class StatementUpload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source: Literal["MPESA", "BANK"] = "MPESA"
    date_from: Optional[date] = Field(None, alias="dateFrom")
    date_to: Optional[date] = Field(None, alias="dateTo")
    transactions: List[StatementLine]


def _audit(db, request, ctx, school_id, result) -> None:
    s = result["summary"]
    record_audit(
        db,
        action="RECONCILIATION_RUN",
        school_id=school_id,
        user=ctx["user"],
        role="BURSAR" if has_role(ctx, "BURSAR") else "ADMIN",
        details=(
            f"{result['source']}: {s['matched']} matched, {s['amount_mismatch']} mismatched, "
            f"{s['unmatched']} unmatched, {s['missing_from_statement']} missing"
        ),
        ip_address=client_ip(request),
        severity="INFO" if s["amount_mismatch"] or s["unmatched"] else "SUCCESS",
    )


@router.post("")
def reconcile_statement(
    payload: StatementUpload,
    request: Request,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "BURSAR")),
    db: Session = Depends(get_db),
):
    window = None
    if payload.date_from and payload.date_to:
        window = (payload.date_from, payload.date_to)
    transactions = [StatementTransaction(**t.model_dump()) for t in payload.transactions]
    result = get_reconciliation_service(db, school_id).reconcile(transactions, source=payload.source, window=window)
    _audit(db, request, ctx, school_id, result)
    db.commit()
    return result


@router.get("/mpesa")
def reconcile_mpesa(
    request: Request,
    days: int = Query(7, ge=1, le=90),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles("ADMIN", "BURSAR")),
    gateway: MpesaGateway = Depends(get_mpesa_gateway),
    db: Session = Depends(get_db),
):
    """Pull the last ``days`` of M-Pesa transactions and reconcile them."""
    transactions = gateway.get_recent_transactions(days=days)
    logger.info(f"Fetched {len(transactions)} M-Pesa transactions for the last {days} days")
    today = date.today()
    result = get_reconciliation_service(db, school_id).reconcile(
        transactions, source="MPESA", window=(today - timedelta(days=days), today)
    )
    _audit(db, request, ctx, school_id, result)
    db.commit()
    return result
