# routers/statements.py

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.csv_export import rows_to_csv, csv_response
from core.descriptors import statement_to_descriptor
from core.errors import not_found
from core.supabase_client import require_supabase_client
from core.supabase_helpers import execute, fetch_record
from dependencies.access import AccessGuard, get_access_guard
from models.enums import Action, ResourceKind, UserRole
from models.statement import STATEMENT_EXPORT_COLUMNS

router = APIRouter(
    prefix="/statements",
    tags=["Statements"],
)


STATEMENT_COLUMNS = (
    "id, tenant_id, organization_id, vendor_id, period_start, period_end, balance, "
    "currency, is_shared, created_at, updated_at, "
    "transactions(id, type, amount, description, date, reference)"
)


async def _load_statement(client, statement_id: str) -> dict:
    statement = await fetch_record(
        "statements", statement_id, "*, transactions(*)", client=client
    )
    if not statement:
        raise not_found("Statement")
    return statement


# -----------------------------------------------------
# GET /statements
# -----------------------------------------------------
@router.get("/", summary="List statements")
async def list_statements(
    vendor_id: Optional[str] = Query(None, description="Company side only: filter by vendor"),
    period_start: Optional[date] = Query(None),
    period_end: Optional[date] = Query(None),
    guard: AccessGuard = Depends(get_access_guard),
):
    subject = guard.subject
    client = require_supabase_client()

    query = (
        client.table("statements")
        .select(STATEMENT_COLUMNS)
        .eq("tenant_id", subject.tenant_id)
        .or_(f"organization_id.eq.{subject.organization_id},vendor_id.eq.{subject.organization_id}")
        .order("period_start", desc=True)
    )
    if vendor_id and subject.role != UserRole.vendor:
        query = query.eq("vendor_id", vendor_id)

    if period_start:
        query = query.gte("period_start", period_start.isoformat())
    if period_end:
        query = query.lte("period_end", period_end.isoformat())

    rows = await execute(query, "Failed to fetch statements")
    statements = await guard.filter_visible(rows, ResourceKind.statement)
    return {"statements": statements}


# -----------------------------------------------------
# GET /statements/{id}
# -----------------------------------------------------
@router.get("/{statement_id}", summary="Get one statement with its transactions")
async def get_statement(statement_id: str, guard: AccessGuard = Depends(get_access_guard)):
    client = require_supabase_client()
    statement = await _load_statement(client, statement_id)

    await guard.enforce(statement_to_descriptor(statement), Action.view)
    return {"statement": statement}


# -----------------------------------------------------
# GET /statements/{id}/export
# -----------------------------------------------------
@router.get("/{statement_id}/export", summary="Export a statement")
async def export_statement(
    statement_id: str,
    export_format: str = Query("csv", alias="format", pattern="^(csv|json)$"),
    guard: AccessGuard = Depends(get_access_guard),
):
    client = require_supabase_client()
    statement = await _load_statement(client, statement_id)

    await guard.enforce(statement_to_descriptor(statement), Action.download)

    if export_format == "json":
        return {"statement": statement}

    transactions = statement.get("transactions") or []
    return csv_response(
        rows_to_csv(transactions, STATEMENT_EXPORT_COLUMNS),
        f"statement-{statement_id}.csv",
    )
