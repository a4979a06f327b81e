# tests/test_authorization.py

import asyncio
import logging
from unittest.mock import Mock

import pytest
from fastapi import BackgroundTasks, HTTPException

from core.audit import AuditEmitter
from core.authorization import _pending_audits, authorize, enforce, filter_visible
from core.errors import MalformedResourceError
from core.relationships import RelationshipOracle
from models.enums import Action, DecisionReason, ResourceKind, UserRole
from models.resource import ResourceDescriptor
from models.subject import Subject


class StubOracle(RelationshipOracle):
    def __init__(self, answer):
        super().__init__()
        self.answer = answer
        self.asked = []

    async def _lookup(self, company_id, vendor_id, tenant_id):
        self.asked.append((company_id, vendor_id, tenant_id))
        return self.answer


class ListAudit:
    def __init__(self):
        self.records = []

    async def record(self, subject, resource, action, decision, context=None):
        self.records.append((resource.resource_id, action, decision.reason))


COMPANY = Subject(id="u-c", role=UserRole.company_user, organization_id="org-c", tenant_id="t")
VENDOR = Subject(id="u-v", role=UserRole.vendor, organization_id="org-v", tenant_id="t")

# Vendor-issued statement in which the company sits in the vendor slot
REVERSE = ResourceDescriptor(
    kind=ResourceKind.statement,
    tenant_id="t",
    owner_organization_id="org-v",
    vendor_organization_id="org-c",
    resource_id="st-1",
)
OWNED = ResourceDescriptor(
    kind=ResourceKind.document,
    tenant_id="t",
    owner_organization_id="org-c",
    resource_id="doc-1",
)


def test_oracle_not_consulted_for_owner():
    oracle = StubOracle(True)
    decision = asyncio.run(authorize(COMPANY, OWNED, Action.view, oracle=oracle))

    assert decision.allowed is True
    assert oracle.asked == []


def test_oracle_consulted_for_reverse_branch():
    oracle = StubOracle(True)
    decision = asyncio.run(authorize(COMPANY, REVERSE, Action.view, oracle=oracle))

    assert decision.allowed is True
    assert oracle.asked == [("org-c", "org-v", "t")]


def test_inactive_relationship_denies():
    decision = asyncio.run(authorize(COMPANY, REVERSE, Action.download, oracle=StubOracle(False)))
    assert decision.reason == DecisionReason.no_active_relationship


def test_audit_dispatched_through_background_tasks():
    audit = ListAudit()
    tasks = BackgroundTasks()

    asyncio.run(authorize(COMPANY, OWNED, Action.view, oracle=StubOracle(True), audit=audit, background_tasks=tasks))

    # Queued, not yet written: the response goes out first
    assert audit.records == []
    assert len(tasks.tasks) == 1

    asyncio.run(tasks())
    assert audit.records == [("doc-1", Action.view, DecisionReason.ok)]


def test_denial_audited_without_background_tasks():
    audit = ListAudit()
    tasks = BackgroundTasks()

    async def run():
        with pytest.raises(HTTPException):
            await enforce(VENDOR, OWNED, Action.view, oracle=StubOracle(True), audit=audit, background_tasks=tasks)
        await asyncio.sleep(0)

    asyncio.run(run())
    assert tasks.tasks == []
    assert audit.records == [("doc-1", Action.view, DecisionReason.not_owner)]


def test_audit_dispatched_as_detached_task():
    audit = ListAudit()

    async def run():
        decision = await authorize(COMPANY, OWNED, Action.update, oracle=StubOracle(True), audit=audit)
        await asyncio.sleep(0)
        return decision

    assert asyncio.run(run()).allowed is True
    assert audit.records == [("doc-1", Action.update, DecisionReason.ok)]


def test_audit_failure_does_not_change_decision(caplog):
    failing_client = Mock()
    failing_client.table.return_value.insert.return_value.execute.side_effect = Exception("sink down")
    audit = AuditEmitter(client=failing_client)

    async def run():
        decision = await authorize(COMPANY, OWNED, Action.update, oracle=StubOracle(True), audit=audit)
        await asyncio.gather(*list(_pending_audits))
        return decision

    with caplog.at_level(logging.ERROR, logger="vendor_portal"):
        assert asyncio.run(run()).allowed is True
    assert "sink down" in caplog.text


def test_enforce_raises_generic_403():
    with pytest.raises(HTTPException) as exc:
        asyncio.run(enforce(VENDOR, OWNED, Action.view, oracle=StubOracle(True)))

    assert exc.value.status_code == 403
    # The reason stays in the audit trail, not in the response
    assert exc.value.detail == "Access denied"


def test_enforce_returns_decision_on_allow():
    decision = asyncio.run(enforce(COMPANY, OWNED, Action.delete, oracle=StubOracle(True)))
    assert decision.reason == DecisionReason.ok


def test_filter_visible_keeps_allowed_rows():
    rows = [
        {"id": "d1", "tenant_id": "t", "organization_id": "org-c", "vendor_id": "org-v", "is_shared": True},
        {"id": "d2", "tenant_id": "t", "organization_id": "org-c", "vendor_id": "org-v", "is_shared": False},
        {"id": "d3", "tenant_id": "t2", "organization_id": "org-c", "vendor_id": "org-v", "is_shared": True},
    ]
    visible = asyncio.run(filter_visible(VENDOR, rows, ResourceKind.document, oracle=StubOracle(True)))
    assert [row["id"] for row in visible] == ["d1"]


def test_filter_visible_surfaces_malformed_rows():
    rows = [{"id": "d1", "tenant_id": None, "organization_id": "org-c"}]
    with pytest.raises(MalformedResourceError):
        asyncio.run(filter_visible(COMPANY, rows, ResourceKind.document, oracle=StubOracle(True)))
