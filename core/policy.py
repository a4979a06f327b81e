# core/policy.py

"""
Policy evaluator: one ordered rule list shared by every route.

    evaluate(subject, resource, action) -> Decision

Pure and synchronous. The only external fact it can depend on, whether a
company/vendor relationship is active, is passed in by the caller as
`relationship_active` (see core.authorization, which asks the oracle only
when `requires_relationship_check` says so). Unknown (None) counts as
inactive.

Rule order (first applicable denial wins):
    1. tenant isolation            -> TENANT_MISMATCH
    2. role gate table             -> ROLE_FORBIDDEN
    3. ownership disjunction       -> allow, or remember NOT_SHARED
         owner match
         tenant-wide kind
         vendor-shared match        (vendor role, capped by COUNTERPART_ACTIONS)
         reverse vendor-owned match (company roles, capped likewise)
    4. relationship gate           -> NO_ACTIVE_RELATIONSHIP
    5. self-authored delete        -> allow, or NOT_CREATOR
    6. default                     -> NOT_OWNER
"""

from typing import Optional

from core.permissions import (
    SELF_AUTHORED_DELETE_KINDS,
    TENANT_WIDE_KINDS,
    counterpart_actions,
    is_role_forbidden,
)
from models.decision import Decision
from models.enums import Action, DecisionReason, UserRole
from models.relationship import RelationshipQuery
from models.resource import ResourceDescriptor
from models.subject import Subject


# -----------------------------------------------------
# Predicates
# -----------------------------------------------------
def _same_tenant(subject: Subject, resource: ResourceDescriptor) -> bool:
    return resource.tenant_id == subject.tenant_id


def _is_owner(subject: Subject, resource: ResourceDescriptor) -> bool:
    return (
        resource.owner_organization_id is not None
        and resource.owner_organization_id == subject.organization_id
    )


def _is_vendor_side(subject: Subject, resource: ResourceDescriptor) -> bool:
    """Vendor user whose organization is the record's vendor organization."""
    return (
        subject.role == UserRole.vendor
        and resource.vendor_organization_id is not None
        and resource.vendor_organization_id == subject.organization_id
    )


def _is_reverse_vendor_owned(subject: Subject, resource: ResourceDescriptor) -> bool:
    """
    Company user whose organization sits in the record's vendor slot.
    The sharing flag does not apply here; the relationship gate does.
    """
    return (
        subject.role != UserRole.vendor
        and resource.vendor_organization_id is not None
        and resource.vendor_organization_id == subject.organization_id
    )


def _counterpart_may(resource: ResourceDescriptor, action: Action) -> bool:
    return action in counterpart_actions(resource.kind)


# -----------------------------------------------------
# Relationship gate helpers
# -----------------------------------------------------
def requires_relationship_check(
    subject: Subject,
    resource: ResourceDescriptor,
    action: Action,
) -> bool:
    """
    True exactly when evaluate() would reach the relationship gate,
    i.e. when the caller has to consult the oracle first.
    """
    return (
        _same_tenant(subject, resource)
        and not is_role_forbidden(subject.role, resource.kind, action)
        and not _is_owner(subject, resource)
        and resource.kind not in TENANT_WIDE_KINDS
        and _is_reverse_vendor_owned(subject, resource)
        and _counterpart_may(resource, action)
        and resource.owner_organization_id is not None
    )


def relationship_query_for(subject: Subject, resource: ResourceDescriptor) -> RelationshipQuery:
    """
    The edge that must be active for the reverse vendor-owned branch.

    The subject's organization occupies the record's vendor slot, so the
    other party of the edge is the record's owner organization.
    """
    return RelationshipQuery(
        company_id=subject.organization_id,
        vendor_id=resource.owner_organization_id,
        tenant_id=subject.tenant_id,
    )


# -----------------------------------------------------
# Evaluator
# -----------------------------------------------------
def evaluate(
    subject: Subject,
    resource: ResourceDescriptor,
    action: Action,
    *,
    relationship_active: Optional[bool] = None,
) -> Decision:
    """
    Decide whether `subject` may perform `action` on `resource`.

    Never raises for well-formed input and never performs I/O. Calling it
    twice with the same arguments returns equal decisions.
    """
    # 1. Tenant isolation (organization ids are only unique per tenant)
    if not _same_tenant(subject, resource):
        return Decision.deny(DecisionReason.tenant_mismatch)

    # 2. Role gate
    if is_role_forbidden(subject.role, resource.kind, action):
        return Decision.deny(DecisionReason.role_forbidden)

    # 3. Ownership / side of the relationship
    if _is_owner(subject, resource):
        return Decision.allow()

    if resource.kind in TENANT_WIDE_KINDS:
        return Decision.allow()

    if _is_vendor_side(subject, resource) and _counterpart_may(resource, action):
        if resource.is_shared:
            return Decision.allow()
        return Decision.deny(DecisionReason.not_shared)

    # 4. Relationship gate for the reverse vendor-owned branch
    if _is_reverse_vendor_owned(subject, resource) and _counterpart_may(resource, action):
        if relationship_active is True and resource.owner_organization_id is not None:
            return Decision.allow()
        return Decision.deny(DecisionReason.no_active_relationship)

    # 5. Self-authored delete override
    if action == Action.delete and resource.kind in SELF_AUTHORED_DELETE_KINDS:
        if resource.creator_id is not None and resource.creator_id == subject.id:
            return Decision.allow()
        return Decision.deny(DecisionReason.not_creator)

    # 6. Default deny
    return Decision.deny(DecisionReason.not_owner)
