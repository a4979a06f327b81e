from typing import Any, Iterable, List, Mapping

from fastapi import BackgroundTasks, Depends, Request

from core.audit import AuditEmitter, access_context_from_request, get_audit_emitter
from core.authorization import authorize, enforce, filter_visible
from core.relationships import RelationshipOracle, get_relationship_oracle
from dependencies.auth import get_current_subject
from models.audit import AccessContext
from models.decision import Decision
from models.enums import Action, ResourceKind
from models.resource import ResourceDescriptor
from models.subject import Subject


class AccessGuard:
    """Everything a route needs to authorize within one request."""

    def __init__(
        self,
        subject: Subject,
        oracle: RelationshipOracle,
        audit: AuditEmitter,
        context: AccessContext,
        background_tasks: BackgroundTasks,
    ):
        self.subject = subject
        self.oracle = oracle
        self.audit = audit
        self.context = context
        self.background_tasks = background_tasks

    async def authorize(self, resource: ResourceDescriptor, action: Action) -> Decision:
        return await authorize(
            self.subject,
            resource,
            action,
            oracle=self.oracle,
            audit=self.audit,
            context=self.context,
            background_tasks=self.background_tasks,
        )

    async def enforce(self, resource: ResourceDescriptor, action: Action) -> Decision:
        return await enforce(
            self.subject,
            resource,
            action,
            oracle=self.oracle,
            audit=self.audit,
            context=self.context,
            background_tasks=self.background_tasks,
        )

    async def filter_visible(
        self,
        records: Iterable[Mapping[str, Any]],
        kind: ResourceKind,
        action: Action = Action.view,
    ) -> List[Mapping[str, Any]]:
        return await filter_visible(self.subject, records, kind, oracle=self.oracle, action=action)


def get_access_guard(
    request: Request,
    background_tasks: BackgroundTasks,
    subject: Subject = Depends(get_current_subject),
    oracle: RelationshipOracle = Depends(get_relationship_oracle),
    audit: AuditEmitter = Depends(get_audit_emitter),
) -> AccessGuard:
    return AccessGuard(
        subject=subject,
        oracle=oracle,
        audit=audit,
        context=access_context_from_request(request),
        background_tasks=background_tasks,
    )
