# school_api/api/routers/finance.py
from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from school_api.api.deps.auth import client_ip, has_role, require_roles
from school_api.api.deps.tenancy import require_school
from school_api.core.db import get_db
from school_api.services.audit import record_audit
from school_api.services.fees import get_fees_service, invoice_dict, structure_dict
from school_api.services.ledger import ledger_report
from school_api.services.payments import get_payment_service, payment_dict

router = APIRouter(prefix="/finance", tags=["Finance"])

FINANCE_ROLES = ("ADMIN", "BURSAR")


def _role(ctx) -> str:
    return "BURSAR" if has_role(ctx, "BURSAR") else "ADMIN"


class FeeItemIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    item_name: str = Field(..., min_length=1, alias="itemName")
    amount: Decimal = Field(..., ge=0)
    is_optional: bool = Field(False, alias="isOptional")
    category: str = "TUITION"


class FeeStructureCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    class_id: str = Field(..., alias="classId")
    term_id: str = Field(..., alias="termId")
    items: List[FeeItemIn] = []


class FeeItemsReplace(BaseModel):
    items: List[FeeItemIn]


class InvoiceGenerate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    term_id: str = Field(..., alias="termId")
    class_ids: Optional[List[str]] = Field(None, alias="classIds")
    include_optional: bool = Field(False, alias="includeOptional")
    due_date: Optional[date] = Field(None, alias="dueDate")


class PaymentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    student_id: str = Field(..., alias="studentId")
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    method: str
    transaction_ref: Optional[str] = Field(None, alias="transactionRef")
    invoice_id: Optional[str] = Field(None, alias="invoiceId")
    paid_at: Optional[date] = Field(None, alias="paidAt")


# ---- fee structures --------------------------------------------------------

@router.get("/fee-structures")
def list_fee_structures(
    term_id: Optional[str] = Query(None, alias="termId"),
    class_id: Optional[str] = Query(None, alias="classId"),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles(*FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    return [structure_dict(s) for s in get_fees_service(db, school_id).list_structures(term_id, class_id)]


@router.post("/fee-structures", status_code=status.HTTP_201_CREATED)
def create_fee_structure(
    payload: FeeStructureCreate,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles(*FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    structure = get_fees_service(db, school_id).create_structure(
        name=payload.name,
        class_id=payload.class_id,
        term_id=payload.term_id,
        items=[i.model_dump() for i in payload.items],
    )
    db.commit()
    return structure_dict(structure)


@router.put("/fee-structures/{structure_id}/items")
def replace_fee_items(
    structure_id: str,
    payload: FeeItemsReplace,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles(*FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    structure = get_fees_service(db, school_id).replace_items(structure_id, [i.model_dump() for i in payload.items])
    db.commit()
    return structure_dict(structure)


@router.post("/fee-structures/{structure_id}/publish")
def publish_fee_structure(
    structure_id: str,
    request: Request,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles(*FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    structure = get_fees_service(db, school_id).publish(structure_id)
    record_audit(
        db,
        action="FEE_STRUCTURE_PUBLISHED",
        school_id=school_id,
        user=ctx["user"],
        role=_role(ctx),
        details=f"Published fee structure '{structure.name}'",
        ip_address=client_ip(request),
        severity="SUCCESS",
    )
    db.commit()
    return structure_dict(structure)


# ---- invoices --------------------------------------------------------------

@router.post("/invoices/generate")
def generate_invoices(
    payload: InvoiceGenerate,
    request: Request,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles(*FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    result = get_fees_service(db, school_id).generate_invoices_for_term(
        term_id=payload.term_id,
        class_ids=payload.class_ids,
        include_optional=payload.include_optional,
        due_date=payload.due_date,
    )
    record_audit(
        db,
        action="INVOICES_GENERATED",
        school_id=school_id,
        user=ctx["user"],
        role=_role(ctx),
        details=f"{len(result['invoices'])} invoices generated, {result['skipped']} already billed",
        ip_address=client_ip(request),
        severity="SUCCESS",
    )
    db.commit()
    return {
        "created": len(result["invoices"]),
        "skipped": result["skipped"],
        "invoices": [invoice_dict(i) for i in result["invoices"]],
    }


@router.get("/invoices")
def list_invoices(
    student_id: Optional[str] = Query(None, alias="studentId"),
    term_id: Optional[str] = Query(None, alias="termId"),
    invoice_status: Optional[str] = Query(None, alias="status"),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles(*FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    rows = get_fees_service(db, school_id).list_invoices(student_id, term_id, invoice_status)
    return [invoice_dict(i) for i in rows]


# ---- payments --------------------------------------------------------------

@router.post("/payments", status_code=status.HTTP_201_CREATED)
def create_payment(
    payload: PaymentCreate,
    request: Request,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles(*FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    payment = get_payment_service(db, school_id).post_payment(
        **payload.model_dump(), recorded_by=ctx["user"]
    )
    record_audit(
        db,
        action="PAYMENT_RECORDED",
        school_id=school_id,
        user=ctx["user"],
        role=_role(ctx),
        details=f"{payment.method} payment {payment.receipt_number} of {payment.amount}",
        ip_address=client_ip(request),
        severity="SUCCESS",
    )
    db.commit()
    return payment_dict(payment)


@router.get("/payments")
def list_payments(
    student_id: Optional[str] = Query(None, alias="studentId"),
    method: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles(*FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    return get_payment_service(db, school_id).list_payments(student_id, method, date_from, date_to)


@router.get("/students/{student_id}/statement")
def student_statement(
    student_id: str,
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles(*FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    return get_payment_service(db, school_id).statement(student_id)


@router.get("/ledger")
def general_ledger(
    limit: int = Query(200, ge=1, le=1000),
    school_id: str = Depends(require_school),
    ctx=Depends(require_roles(*FINANCE_ROLES)),
    db: Session = Depends(get_db),
):
    return ledger_report(db, school_id, limit=limit)
