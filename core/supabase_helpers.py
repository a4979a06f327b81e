# core/supabase_helpers.py

import asyncio
from typing import Any, Dict, List, Optional

from fastapi import HTTPException

from core.errors import handle_supabase_error
from core.supabase_client import require_supabase_client


# =================================================================
#  QUERY EXECUTION: supabase-py is synchronous, keep the loop free
# =================================================================

async def execute(query, operation: str = "Database operation") -> List[Dict[str, Any]]:
    """
    Run a built PostgREST query in a worker thread and return its rows.
    Client errors are translated by handle_supabase_error().
    """
    try:
        result = await asyncio.to_thread(query.execute)
    except HTTPException:
        raise
    except Exception as e:
        raise handle_supabase_error(e, operation)

    data = result.data if result is not None else None
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    return list(data)


async def fetch_record(
    table: str,
    record_id: str,
    columns: str = "*",
    *,
    client=None,
) -> Optional[Dict[str, Any]]:
    """
    Fetch one row by id, or None.
    Tenant scoping is deliberately NOT applied here: the policy evaluator
    decides on the row it is given, including cross-tenant denials.
    """
    client = client or require_supabase_client()
    rows = await execute(
        client.table(table).select(columns).eq("id", record_id).limit(1),
        f"Failed to fetch {table}",
    )
    return rows[0] if rows else None


async def update_record(
    table: str,
    record_id: str,
    data: Dict[str, Any],
    *,
    client=None,
) -> Optional[Dict[str, Any]]:
    client = client or require_supabase_client()
    rows = await execute(
        client.table(table).update(data).eq("id", record_id),
        f"Failed to update {table}",
    )
    return rows[0] if rows else None


async def delete_record(table: str, record_id: str, *, client=None) -> None:
    client = client or require_supabase_client()
    await execute(
        client.table(table).delete().eq("id", record_id),
        f"Failed to delete from {table}",
    )


def drop_unset(data: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only explicitly provided, non-None values (PATCH semantics)."""
    return {k: v for k, v in data.items() if v is not None}
