# core/supabase_client.py

from typing import Dict, Optional
from fastapi import HTTPException
from supabase import create_client, Client
from core.config import settings
from core.logging_config import logger

# Tables every authorization path reads from
PORTAL_TABLES = ("users", "documents", "payments", "statements", "vendor_relationships")


def get_supabase_client() -> Optional[Client]:
    """
    Service-role client, or None when credentials are missing or the SDK fails.

    Row-level security is bypassed with this key. Every record read through
    it must pass core.authorization before it leaves the API.
    """
    url = settings.SUPABASE_URL
    key = settings.SUPABASE_SERVICE_ROLE_KEY

    if not url or not key:
        logger.error(
            f"Supabase not configured (url={'set' if url else 'missing'}, "
            f"service role key={'set' if key else 'missing'})"
        )
        return None

    try:
        return create_client(url, key)
    except Exception as e:
        logger.error(f"Supabase client init failed: {e}", exc_info=True)
        return None


def require_supabase_client() -> Client:
    """Routers use this: no client means a 500, never a partial answer."""
    client = get_supabase_client()
    if client is None:
        raise HTTPException(500, "Supabase client not configured")
    return client


def _check_table(client: Client, table: str) -> Dict:
    try:
        res = client.table(table).select("id").limit(1).execute()
        return {"status": "ok", "rows_found": len(res.data or [])}
    except Exception as err:
        return {"status": "error", "detail": str(err)}


def ping_supabase() -> dict:
    """
    Reachability of each portal table. Auth schema is not touched.
    Overall status is "degraded" when any table fails.
    """
    client = get_supabase_client()
    if client is None:
        return {"service": "Supabase", "status": "not_configured"}

    tables = {table: _check_table(client, table) for table in PORTAL_TABLES}
    healthy = all(t["status"] == "ok" for t in tables.values())

    return {
        "service": "Supabase",
        "status": "ok" if healthy else "degraded",
        "tables": tables,
    }
