# routers/payments.py

from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from core.csv_export import rows_to_csv, csv_response
from core.descriptors import payment_to_descriptor
from core.errors import not_found
from core.logging_config import logger
from core.supabase_client import require_supabase_client
from core.supabase_helpers import execute, fetch_record, update_record, drop_unset
from dependencies.access import AccessGuard, get_access_guard
from models.enums import Action, PaymentStatus, ResourceKind, UserRole
from models.payment import PaymentUpdate, PAYMENT_EXPORT_COLUMNS
from models.subject import Subject

router = APIRouter(
    prefix="/payments",
    tags=["Payments"],
)


PAYMENT_COLUMNS = (
    "id, tenant_id, organization_id, vendor_id, invoice_id, amount, currency, "
    "status, method, transaction_id, paid_at, due_date, created_at, updated_at"
)


def _payments_query(
    client,
    subject: Subject,
    vendor_id: Optional[str],
    status: Optional[PaymentStatus],
    start_date: Optional[date],
    end_date: Optional[date],
):
    """Tenant and organization scoped candidate query shared by list and export."""
    query = (
        client.table("payments")
        .select(PAYMENT_COLUMNS)
        .eq("tenant_id", subject.tenant_id)
        .order("created_at", desc=True)
    )

    if subject.role == UserRole.vendor:
        query = query.eq("vendor_id", subject.organization_id)
    else:
        query = query.or_(
            f"organization_id.eq.{subject.organization_id},vendor_id.eq.{subject.organization_id}"
        )
        if vendor_id:
            query = query.eq("vendor_id", vendor_id)

    if status:
        query = query.eq("status", status.value)
    if start_date:
        query = query.gte("due_date", start_date.isoformat())
    if end_date:
        query = query.lte("due_date", end_date.isoformat())

    return query


# -----------------------------------------------------
# GET /payments
# -----------------------------------------------------
@router.get("/", summary="List payments")
async def list_payments(
    vendor_id: Optional[str] = Query(None, description="Company side only: filter by vendor"),
    status: Optional[PaymentStatus] = Query(None),
    start_date: Optional[date] = Query(None, description="Due on or after"),
    end_date: Optional[date] = Query(None, description="Due on or before"),
    guard: AccessGuard = Depends(get_access_guard),
):
    client = require_supabase_client()
    query = _payments_query(client, guard.subject, vendor_id, status, start_date, end_date)

    rows = await execute(query, "Failed to fetch payments")
    payments = await guard.filter_visible(rows, ResourceKind.payment)
    return {"payments": payments}


# -----------------------------------------------------
# GET /payments/export
# Declared before /{payment_id} so the path is not captured
# -----------------------------------------------------
@router.get("/export", summary="Export payments as CSV")
async def export_payments(
    vendor_id: Optional[str] = Query(None),
    status: Optional[PaymentStatus] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    guard: AccessGuard = Depends(get_access_guard),
):
    client = require_supabase_client()
    query = _payments_query(client, guard.subject, vendor_id, status, start_date, end_date)

    rows = await execute(query, "Failed to export payments")
    payments = await guard.filter_visible(rows, ResourceKind.payment, action=Action.download)

    logger.info(f"User {guard.subject.id} exported {len(payments)} payments")

    stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    return csv_response(rows_to_csv(payments, PAYMENT_EXPORT_COLUMNS), f"payments-{stamp}.csv")


# -----------------------------------------------------
# GET /payments/{id}
# -----------------------------------------------------
@router.get("/{payment_id}", summary="Get one payment")
async def get_payment(payment_id: str, guard: AccessGuard = Depends(get_access_guard)):
    client = require_supabase_client()
    payment = await fetch_record("payments", payment_id, PAYMENT_COLUMNS, client=client)
    if not payment:
        raise not_found("Payment")

    await guard.enforce(payment_to_descriptor(payment), Action.view)
    return {"payment": payment}


# -----------------------------------------------------
# PATCH /payments/{id}
# -----------------------------------------------------
@router.patch("/{payment_id}", summary="Update payment status")
async def update_payment(
    payment_id: str,
    payload: PaymentUpdate,
    guard: AccessGuard = Depends(get_access_guard),
):
    client = require_supabase_client()
    payment = await fetch_record("payments", payment_id, PAYMENT_COLUMNS, client=client)
    if not payment:
        raise not_found("Payment")

    await guard.enforce(payment_to_descriptor(payment), Action.update)

    updates = drop_unset(payload.model_dump(mode="json"))
    if not updates:
        raise HTTPException(400, "No fields to update")

    updated = await update_record("payments", payment_id, updates, client=client)

    if "status" in updates:
        logger.info(
            f"Payment {payment_id} status -> {updates['status']} by user {guard.subject.id}"
        )

    return {"payment": updated}
