# core/audit.py

"""
Audit emitter for access decisions.

record() is best-effort: it runs after the decision has been made, and a
failed write is logged at ERROR but never raised, so it cannot block or
reverse the decision.
"""

import asyncio
from typing import Optional

from fastapi import Request

from core.config import settings
from core.errors import extract_supabase_error
from core.logging_config import logger
from core.supabase_client import get_supabase_client
from models.audit import AccessContext, AccessLogEntry
from models.decision import Decision
from models.enums import Action, DecisionReason, ResourceKind
from models.resource import ResourceDescriptor
from models.subject import Subject


# ============================================================
# Request → AccessContext
# ============================================================
def access_context_from_request(request: Request) -> AccessContext:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip() or None
    else:
        ip_address = request.headers.get("x-real-ip") or (
            request.client.host if request.client else None
        )

    return AccessContext(
        request_id=request.headers.get("x-request-id"),
        ip_address=ip_address,
        user_agent=request.headers.get("user-agent"),
        request_method=request.method,
        request_path=request.url.path,
    )


# ============================================================
# Emitter
# ============================================================
class AuditEmitter:
    def __init__(
        self,
        client=None,
        *,
        log_views: Optional[bool] = None,
        table: Optional[str] = None,
        document_table: Optional[str] = None,
    ):
        self._client = client
        self.log_views = settings.AUDIT_LOG_VIEWS if log_views is None else log_views
        self.table = table or settings.AUDIT_LOG_TABLE
        self.document_table = document_table or settings.DOCUMENT_ACCESS_LOG_TABLE

    def should_record(self, action: Action, decision: Decision) -> bool:
        """Every denial and every allow except (optionally) plain views."""
        if not decision.allowed:
            return True
        if action == Action.view:
            return self.log_views
        return True

    def build_entry(
        self,
        subject: Subject,
        resource: ResourceDescriptor,
        action: Action,
        decision: Decision,
        context: Optional[AccessContext] = None,
    ) -> AccessLogEntry:
        context = context or AccessContext()
        return AccessLogEntry(
            user_id=subject.id,
            action=f"{resource.kind.value}.{action.value}",
            resource_type=resource.kind.value,
            resource_id=resource.resource_id,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            request_method=context.request_method,
            request_path=context.request_path,
            status_code=200 if decision.allowed else 403,
            metadata={
                "allowed": decision.allowed,
                "reason": decision.reason.value,
                "role": subject.role.value,
                "organization_id": subject.organization_id,
                "tenant_id": subject.tenant_id,
                "resource_tenant_id": resource.tenant_id,
                "request_id": context.request_id,
            },
        )

    async def record(
        self,
        subject: Subject,
        resource: ResourceDescriptor,
        action: Action,
        decision: Decision,
        context: Optional[AccessContext] = None,
    ) -> None:
        if decision.reason == DecisionReason.tenant_mismatch:
            logger.error(
                f"Cross-tenant access attempt blocked: user={subject.id} "
                f"tenant={subject.tenant_id} resource={resource.kind.value}:{resource.resource_id} "
                f"resource_tenant={resource.tenant_id} action={action.value}"
            )
        elif not decision.allowed:
            logger.info(
                f"Access denied ({decision.reason.value}): user={subject.id} role={subject.role.value} "
                f"{resource.kind.value}:{resource.resource_id} action={action.value}"
            )

        if not self.should_record(action, decision):
            return

        entry = self.build_entry(subject, resource, action, decision, context)
        try:
            await asyncio.to_thread(self._write, entry, resource, action, decision)
        except Exception as e:
            logger.error(
                f"Failed to write audit entry {entry.action} for user {entry.user_id}: "
                f"{extract_supabase_error(e)}"
            )

    def _write(
        self,
        entry: AccessLogEntry,
        resource: ResourceDescriptor,
        action: Action,
        decision: Decision,
    ) -> None:
        client = self._client or get_supabase_client()
        if client is None:
            raise RuntimeError("Supabase client not configured")

        client.table(self.table).insert(entry.model_dump()).execute()

        if (
            decision.allowed
            and resource.kind == ResourceKind.document
            and resource.resource_id is not None
        ):
            client.table(self.document_table).insert({
                "document_id": resource.resource_id,
                "user_id": entry.user_id,
                "action": action.value,
            }).execute()


# -----------------------------------------------------
# FastAPI dependency
# -----------------------------------------------------
def get_audit_emitter() -> AuditEmitter:
    return AuditEmitter()
