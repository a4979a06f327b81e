# core/authorization.py

"""
Enforcement point between the routers and the pure policy evaluator.

authorize() asks the relationship oracle only when the evaluator would
reach the relationship gate, evaluates, and hands the decision to the
audit emitter without waiting for the write. enforce() turns a denial
into a generic 403.
"""

import asyncio
from typing import Any, Iterable, List, Mapping, Optional

from fastapi import BackgroundTasks

from core.audit import AuditEmitter
from core.descriptors import build_descriptor
from core.errors import access_denied
from core.policy import evaluate, relationship_query_for, requires_relationship_check
from core.relationships import RelationshipOracle
from models.audit import AccessContext
from models.decision import Decision
from models.enums import Action, ResourceKind
from models.resource import ResourceDescriptor
from models.subject import Subject


# Strong references to detached audit tasks until they finish
_pending_audits: set = set()


async def decide(
    subject: Subject,
    resource: ResourceDescriptor,
    action: Action,
    oracle: RelationshipOracle,
) -> Decision:
    """Evaluate, consulting the oracle only if the relationship gate is reachable."""
    relationship_active = None
    if requires_relationship_check(subject, resource, action):
        relationship_active = await oracle.check(relationship_query_for(subject, resource))
    return evaluate(subject, resource, action, relationship_active=relationship_active)


def dispatch_audit(
    audit: Optional[AuditEmitter],
    subject: Subject,
    resource: ResourceDescriptor,
    action: Action,
    decision: Decision,
    context: Optional[AccessContext] = None,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Optional[asyncio.Task]:
    """Queue the audit write. Returns the task when it was detached."""
    if audit is None:
        return None

    # Background tasks only run when the endpoint returns normally; a denial
    # ends in HTTPException, so it is written from a detached task instead.
    if background_tasks is not None and decision.allowed:
        background_tasks.add_task(audit.record, subject, resource, action, decision, context)
        return None

    task = asyncio.get_running_loop().create_task(
        audit.record(subject, resource, action, decision, context)
    )
    _pending_audits.add(task)
    task.add_done_callback(_pending_audits.discard)
    return task


async def authorize(
    subject: Subject,
    resource: ResourceDescriptor,
    action: Action,
    *,
    oracle: RelationshipOracle,
    audit: Optional[AuditEmitter] = None,
    context: Optional[AccessContext] = None,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Decision:
    decision = await decide(subject, resource, action, oracle)
    task = dispatch_audit(audit, subject, resource, action, decision, context, background_tasks)
    if task is not None:
        # One loop turn so the audit task starts before the request unwinds
        await asyncio.sleep(0)
    return decision


async def enforce(
    subject: Subject,
    resource: ResourceDescriptor,
    action: Action,
    *,
    oracle: RelationshipOracle,
    audit: Optional[AuditEmitter] = None,
    context: Optional[AccessContext] = None,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Decision:
    """authorize(), raising HTTPException(403, "Access denied") on denial."""
    decision = await authorize(
        subject,
        resource,
        action,
        oracle=oracle,
        audit=audit,
        context=context,
        background_tasks=background_tasks,
    )
    if not decision.allowed:
        raise access_denied()
    return decision


async def filter_visible(
    subject: Subject,
    records: Iterable[Mapping[str, Any]],
    kind: ResourceKind,
    *,
    oracle: RelationshipOracle,
    action: Action = Action.view,
) -> List[Mapping[str, Any]]:
    """
    Keep the listed rows the subject may act on. Listing is not audited
    per row; malformed rows raise like any other descriptor build.
    """
    visible = []
    for record in records:
        resource = build_descriptor(kind, record)
        decision = await decide(subject, resource, action, oracle)
        if decision.allowed:
            visible.append(record)
    return visible
