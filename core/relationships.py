# core/relationships.py

"""
Relationship oracle: "is company C in an active relationship with vendor V
under tenant T?"

Reads the latest committed `vendor_relationships` state on every new
request. Answers are memoized per oracle instance only, and one instance
is created per request (see get_relationship_oracle), so a deactivation
takes effect on the very next request.

Fails closed: a timeout, a client error or a missing client all answer
False and log a warning.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

from core.config import settings
from core.errors import extract_supabase_error
from core.logging_config import logger
from core.supabase_client import get_supabase_client
from models.enums import RelationshipStatus
from models.relationship import RelationshipQuery


RELATIONSHIPS_TABLE = "vendor_relationships"


class RelationshipOracle(ABC):
    """
    Per-request memoizing front for a relationship lookup.
    Subclasses supply _lookup; lookup failures deny.
    """

    def __init__(self):
        self._memo: Dict[Tuple[str, str, str], bool] = {}
        self.lookups = 0

    async def is_active_relationship(self, company_id: str, vendor_id: str, tenant_id: str) -> bool:
        key = (company_id, vendor_id, tenant_id)
        if key in self._memo:
            return self._memo[key]

        self.lookups += 1
        try:
            active = bool(await self._lookup(company_id, vendor_id, tenant_id))
        except asyncio.TimeoutError:
            logger.warning(
                f"Relationship lookup timed out (company={company_id}, vendor={vendor_id}, "
                f"tenant={tenant_id}); denying"
            )
            return False
        except Exception as e:
            logger.warning(
                f"Relationship lookup failed (company={company_id}, vendor={vendor_id}, "
                f"tenant={tenant_id}): {extract_supabase_error(e)}; denying"
            )
            return False

        self._memo[key] = active
        return active

    async def check(self, query: RelationshipQuery) -> bool:
        return await self.is_active_relationship(query.company_id, query.vendor_id, query.tenant_id)

    @abstractmethod
    async def _lookup(self, company_id: str, vendor_id: str, tenant_id: str) -> bool:
        ...


class SupabaseRelationshipOracle(RelationshipOracle):
    """Backed by the `vendor_relationships` table."""

    def __init__(self, client=None, timeout_seconds: Optional[float] = None):
        super().__init__()
        self._client = client
        self.timeout_seconds = (
            timeout_seconds
            if timeout_seconds is not None
            else settings.RELATIONSHIP_LOOKUP_TIMEOUT_SECONDS
        )

    async def _lookup(self, company_id: str, vendor_id: str, tenant_id: str) -> bool:
        # supabase-py is synchronous; keep the event loop free
        return await asyncio.wait_for(
            asyncio.to_thread(self._query, company_id, vendor_id, tenant_id),
            timeout=self.timeout_seconds,
        )

    def _query(self, company_id: str, vendor_id: str, tenant_id: str) -> bool:
        client = self._client or get_supabase_client()
        if client is None:
            raise RuntimeError("Supabase client not configured")

        result = (
            client.table(RELATIONSHIPS_TABLE)
            .select("id")
            .eq("company_id", company_id)
            .eq("vendor_id", vendor_id)
            .eq("tenant_id", tenant_id)
            .eq("status", RelationshipStatus.active.value)
            .limit(1)
            .execute()
        )
        return bool(result.data)


# -----------------------------------------------------
# FastAPI dependency: new instance per request
# -----------------------------------------------------
def get_relationship_oracle() -> RelationshipOracle:
    return SupabaseRelationshipOracle()
