# tests/test_policy.py

"""
Tests for the policy evaluator and its rule tables.
"""

import itertools

import pytest

from core.permissions import (
    COUNTERPART_ACTIONS,
    ROLE_FORBIDDEN_ACTIONS,
    SELF_AUTHORED_DELETE_KINDS,
    TENANT_WIDE_KINDS,
)
from core.policy import evaluate, relationship_query_for, requires_relationship_check
from models.decision import Decision
from models.enums import Action, DecisionReason, ResourceKind, UserRole
from models.resource import ResourceDescriptor
from models.subject import Subject


def subject(org="A", tenant="T", role=UserRole.company_admin, user_id="U1"):
    return Subject(id=user_id, role=role, organization_id=org, tenant_id=tenant)


def resource(kind=ResourceKind.document, tenant="T", owner="A", vendor=None, shared=False, creator=None):
    return ResourceDescriptor(
        kind=kind,
        tenant_id=tenant,
        owner_organization_id=owner,
        vendor_organization_id=vendor,
        is_shared=shared,
        creator_id=creator,
        resource_id="R1",
    )


# -----------------------------------------------------
# Concrete scenarios
# -----------------------------------------------------
def test_owner_company_admin_can_view_unshared():
    decision = evaluate(subject(), resource(owner="A", shared=False), Action.view)
    assert decision == Decision(allowed=True, reason=DecisionReason.ok)


def test_vendor_views_shared_document():
    decision = evaluate(
        subject(org="B", role=UserRole.vendor),
        resource(owner="A", vendor="B", shared=True),
        Action.view,
    )
    assert decision.allowed is True
    assert decision.reason == DecisionReason.ok


def test_vendor_denied_unshared_document():
    decision = evaluate(
        subject(org="B", role=UserRole.vendor),
        resource(owner="A", vendor="B", shared=False),
        Action.view,
    )
    assert decision.allowed is False
    assert decision.reason == DecisionReason.not_shared


@pytest.mark.parametrize("action", list(Action))
def test_cross_tenant_denied_for_every_action(action):
    decision = evaluate(
        subject(org="B", role=UserRole.vendor),
        resource(tenant="T2", owner="A"),
        action,
    )
    assert decision.allowed is False
    assert decision.reason == DecisionReason.tenant_mismatch


def test_vendor_cannot_update_payment_it_is_payee_of():
    decision = evaluate(
        subject(org="B", role=UserRole.vendor),
        resource(kind=ResourceKind.payment, owner="A", vendor="B", shared=True),
        Action.update,
    )
    assert decision.reason == DecisionReason.role_forbidden


def test_creator_can_delete_document_owned_elsewhere():
    decision = evaluate(
        subject(org="A", role=UserRole.company_user, user_id="U1"),
        resource(owner="C", creator="U1"),
        Action.delete,
    )
    assert decision.allowed is True


# -----------------------------------------------------
# Rule order
# -----------------------------------------------------
def test_tenant_mismatch_wins_over_owner_match():
    decision = evaluate(subject(org="A"), resource(tenant="T2", owner="A"), Action.view)
    assert decision.reason == DecisionReason.tenant_mismatch


def test_role_gate_wins_over_owner_match():
    # Vendor owns the payment row but payments are company-issued
    decision = evaluate(
        subject(org="B", role=UserRole.vendor),
        resource(kind=ResourceKind.payment, owner="B"),
        Action.update,
    )
    assert decision.reason == DecisionReason.role_forbidden


def test_shared_vendor_cannot_update_or_delete():
    vendor = subject(org="B", role=UserRole.vendor, user_id="V1")
    shared = resource(owner="A", vendor="B", shared=True, creator="U9")

    assert evaluate(vendor, shared, Action.download).allowed is True
    assert evaluate(vendor, shared, Action.update).reason == DecisionReason.not_owner
    assert evaluate(vendor, shared, Action.delete).reason == DecisionReason.not_creator


def test_shared_vendor_who_created_document_may_delete():
    vendor = subject(org="B", role=UserRole.vendor, user_id="V1")
    shared = resource(owner="A", vendor="B", shared=True, creator="V1")
    assert evaluate(vendor, shared, Action.delete).allowed is True


def test_delete_without_creator_match_is_not_creator():
    decision = evaluate(subject(org="A"), resource(owner="C", creator="someone-else"), Action.delete)
    assert decision.reason == DecisionReason.not_creator


def test_default_deny_is_not_owner():
    decision = evaluate(subject(org="A"), resource(owner="C"), Action.view)
    assert decision == Decision.deny(DecisionReason.not_owner)


def test_self_authored_override_only_for_delete():
    decision = evaluate(subject(org="A", user_id="U1"), resource(owner="C", creator="U1"), Action.update)
    assert decision.reason == DecisionReason.not_owner


def test_self_authored_override_only_for_listed_kinds():
    decision = evaluate(
        subject(org="A", user_id="U1"),
        resource(kind=ResourceKind.webhook, owner="C", creator="U1"),
        Action.delete,
    )
    assert decision.reason == DecisionReason.not_owner


# -----------------------------------------------------
# Reverse vendor-owned branch and the relationship gate
# -----------------------------------------------------
def reverse_case():
    company = subject(org="B", role=UserRole.company_user)
    statement = resource(kind=ResourceKind.statement, owner="V", vendor="B")
    return company, statement


@pytest.mark.parametrize("relationship_active", [None, False])
def test_relationship_gate_fails_closed(relationship_active):
    company, statement = reverse_case()
    decision = evaluate(company, statement, Action.view, relationship_active=relationship_active)
    assert decision.reason == DecisionReason.no_active_relationship


def test_relationship_gate_allows_with_active_relationship():
    company, statement = reverse_case()
    decision = evaluate(company, statement, Action.view, relationship_active=True)
    assert decision.allowed is True


def test_relationship_gate_does_not_extend_to_writes():
    company, statement = reverse_case()
    decision = evaluate(company, statement, Action.update, relationship_active=True)
    assert decision.reason == DecisionReason.not_owner


def test_requires_relationship_check_only_for_reverse_branch():
    company, statement = reverse_case()
    assert requires_relationship_check(company, statement, Action.view) is True
    assert requires_relationship_check(company, statement, Action.update) is False

    # Owner match short-circuits before the gate
    owned = resource(kind=ResourceKind.statement, owner="B", vendor="B")
    assert requires_relationship_check(company, owned, Action.view) is False

    # Different tenant never reaches the gate
    foreign = resource(kind=ResourceKind.statement, tenant="T2", owner="V", vendor="B")
    assert requires_relationship_check(company, foreign, Action.view) is False

    # Vendors take the shared branch instead
    vendor = subject(org="B", role=UserRole.vendor)
    assert requires_relationship_check(vendor, statement, Action.view) is False


def test_relationship_query_pairs_subject_with_owner():
    company, statement = reverse_case()
    query = relationship_query_for(company, statement)
    assert query.company_id == "B"
    assert query.vendor_id == "V"
    assert query.tenant_id == "T"
    # The vendor slot holds the subject itself; querying it would ask about a self-edge
    assert query.vendor_id != statement.vendor_organization_id


def test_unshared_counterpart_record_denied_only_for_vendor_role():
    statement = resource(kind=ResourceKind.statement, owner="V", vendor="B", shared=False)

    vendor = subject(org="B", role=UserRole.vendor)
    assert evaluate(vendor, statement, Action.view, relationship_active=True).reason == DecisionReason.not_shared

    company = subject(org="B", role=UserRole.company_user)
    assert evaluate(company, statement, Action.view, relationship_active=True) == Decision.allow()


# -----------------------------------------------------
# Tenant-wide kinds
# -----------------------------------------------------
@pytest.mark.parametrize("kind", sorted(TENANT_WIDE_KINDS, key=str))
def test_tenant_wide_kinds_visible_to_every_role(kind):
    for role in UserRole:
        decision = evaluate(subject(role=role), resource(kind=kind, owner=None), Action.view)
        assert decision.allowed is True


@pytest.mark.parametrize("role", [UserRole.vendor, UserRole.company_user])
def test_only_admins_administer_tenant(role):
    decision = evaluate(subject(role=role), resource(kind=ResourceKind.tenant, owner=None), Action.administer)
    assert decision.reason == DecisionReason.role_forbidden


def test_admin_administers_company_group():
    decision = evaluate(
        subject(role=UserRole.company_admin),
        resource(kind=ResourceKind.company_group, owner=None),
        Action.administer,
    )
    assert decision.allowed is True


def test_vendor_cannot_create_thread():
    decision = evaluate(
        subject(org="B", role=UserRole.vendor),
        resource(kind=ResourceKind.message_thread, owner="B", vendor="X", shared=True),
        Action.create,
    )
    assert decision.reason == DecisionReason.role_forbidden


def test_vendor_replies_in_thread_with_company():
    decision = evaluate(
        subject(org="B", role=UserRole.vendor),
        resource(kind=ResourceKind.message_thread, owner="A", vendor="B", shared=True),
        Action.reply,
    )
    assert decision.allowed is True


# -----------------------------------------------------
# Properties by enumeration
# -----------------------------------------------------
STATES = [
    dict(owner=owner, vendor=vendor, shared=shared, creator=creator)
    for owner, vendor, shared, creator in itertools.product(
        ["A", "B", "C"], [None, "A", "B"], [True, False], [None, "U1"]
    )
]


def test_role_forbidden_for_every_resource_state():
    for role, kinds in ROLE_FORBIDDEN_ACTIONS.items():
        for kind, actions in kinds.items():
            for action in actions:
                for state in STATES:
                    owner = None if kind in TENANT_WIDE_KINDS else state["owner"]
                    res = resource(kind=kind, **{**state, "owner": owner})
                    for active in (None, True):
                        decision = evaluate(subject(org="B", role=role), res, action, relationship_active=active)
                        assert decision.reason == DecisionReason.role_forbidden, (role, kind, action, state)


def test_owner_always_has_view():
    kinds = [k for k in ResourceKind if k not in TENANT_WIDE_KINDS]
    for role, kind, state in itertools.product(UserRole, kinds, STATES):
        res = resource(kind=kind, **{**state, "owner": "A"})
        assert evaluate(subject(org="A", role=role), res, Action.view).allowed is True


def test_counterpart_never_exceeds_counterpart_actions():
    # Subject sits only in the vendor slot: no owner match, no creator match
    kinds = [k for k in ResourceKind if k not in TENANT_WIDE_KINDS]
    for role, kind, action in itertools.product(UserRole, kinds, Action):
        res = resource(kind=kind, owner="A", vendor="B", shared=True, creator="someone-else")
        decision = evaluate(subject(org="B", role=role, user_id="U1"), res, action, relationship_active=True)
        if decision.allowed:
            assert action in COUNTERPART_ACTIONS.get(kind, frozenset()), (role, kind, action)


def test_every_decision_carries_exactly_one_reason():
    kinds = [k for k in ResourceKind if k not in TENANT_WIDE_KINDS]
    for role, kind, action, state in itertools.product(UserRole, kinds, Action, STATES):
        decision = evaluate(subject(org="B", role=role), resource(kind=kind, **state), action)
        assert isinstance(decision.reason, DecisionReason)
        assert decision.allowed == (decision.reason == DecisionReason.ok)


def test_unshared_counterpart_resource_denies_vendor():
    for kind in (ResourceKind.document, ResourceKind.statement):
        for action in (Action.view, Action.download):
            res = resource(kind=kind, owner="A", vendor="B", shared=False)
            decision = evaluate(subject(org="B", role=UserRole.vendor), res, action)
            assert decision.reason == DecisionReason.not_shared


def test_evaluate_is_deterministic():
    s = subject(org="B", role=UserRole.company_user)
    r = resource(kind=ResourceKind.payment, owner="V", vendor="B", shared=True)
    for active in (None, False, True):
        first = evaluate(s, r, Action.view, relationship_active=active)
        second = evaluate(s, r, Action.view, relationship_active=active)
        assert first == second


def test_self_authored_delete_kinds_table():
    assert ResourceKind.document in SELF_AUTHORED_DELETE_KINDS
