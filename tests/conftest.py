# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.
"""

import os

# Skip startup config validation (no Supabase credentials in tests)
os.environ.setdefault("ENV", "test")

from collections import defaultdict
from typing import Generator
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from core.audit import AuditEmitter, get_audit_emitter
from core.relationships import RelationshipOracle, get_relationship_oracle
from dependencies.auth import get_current_subject
from main import create_app
from models.enums import UserRole
from models.subject import Subject


ROUTER_MODULES = [
    "routers.documents",
    "routers.payments",
    "routers.statements",
    "routers.messages",
    "routers.tenants",
    "routers.company_groups",
    "routers.webhooks",
    "routers.gdpr",
]


# -----------------------------------------------------
# Supabase fakes
# -----------------------------------------------------
class FakeQuery:
    """Chainable PostgREST builder stand-in. Records every call."""

    def __init__(self, table: str, result):
        self.table_name = table
        self.result = result
        self.calls = []

    def __getattr__(self, name):
        if name.startswith("__"):
            raise AttributeError(name)

        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return method

    def called(self, name: str) -> bool:
        return any(call[0] == name for call in self.calls)

    def args_for(self, name: str):
        return [call[1] for call in self.calls if call[0] == name]

    def execute(self):
        if isinstance(self.result, Exception):
            raise self.result
        return Mock(data=self.result)


class FakeSupabase:
    """
    Queue results per table with respond(); each client.table(name) call
    consumes the next queued result (or [] when the queue is empty).
    """

    def __init__(self):
        self._responses = defaultdict(list)
        self.queries = []
        self.storage = Mock()
        self.auth = Mock()

    def respond(self, table: str, *results):
        self._responses[table].extend(results)
        return self

    def table(self, name: str) -> FakeQuery:
        queue = self._responses[name]
        query = FakeQuery(name, queue.pop(0) if queue else [])
        self.queries.append(query)
        return query

    def queries_for(self, table: str, operation: str = None):
        return [
            q for q in self.queries
            if q.table_name == table and (operation is None or q.called(operation))
        ]


class FakeOracle(RelationshipOracle):
    """Active edges are (company_id, vendor_id, tenant_id) triples."""

    def __init__(self, active=()):
        super().__init__()
        self.active = set(active)
        self.asked = []

    async def _lookup(self, company_id, vendor_id, tenant_id):
        self.asked.append((company_id, vendor_id, tenant_id))
        return (company_id, vendor_id, tenant_id) in self.active


class RecordingAudit(AuditEmitter):
    def __init__(self):
        super().__init__(client=Mock(), log_views=True)
        self.records = []

    async def record(self, subject, resource, action, decision, context=None):
        self.records.append((subject, resource, action, decision, context))


# -----------------------------------------------------
# Subjects
# -----------------------------------------------------
@pytest.fixture
def company_admin() -> Subject:
    return Subject(
        id="user-admin",
        role=UserRole.company_admin,
        organization_id="org-company",
        tenant_id="tenant-1",
        email="admin@company.test",
    )


@pytest.fixture
def company_user() -> Subject:
    return Subject(
        id="user-staff",
        role=UserRole.company_user,
        organization_id="org-company",
        tenant_id="tenant-1",
    )


@pytest.fixture
def vendor_user() -> Subject:
    return Subject(
        id="user-vendor",
        role=UserRole.vendor,
        organization_id="org-vendor",
        tenant_id="tenant-1",
    )


# -----------------------------------------------------
# App wiring
# -----------------------------------------------------
@pytest.fixture
def oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture
def audit() -> RecordingAudit:
    return RecordingAudit()


@pytest.fixture(scope="function")
def app(oracle, audit):
    """Create a test FastAPI application instance."""
    app = create_app()
    app.dependency_overrides[get_relationship_oracle] = lambda: oracle
    app.dependency_overrides[get_audit_emitter] = lambda: audit
    return app


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login(app):
    """Authenticate subsequent requests as the given Subject."""

    def _login(subject: Subject):
        app.dependency_overrides[get_current_subject] = lambda: subject

    return _login


@pytest.fixture
def supabase(monkeypatch) -> FakeSupabase:
    """Route every router's Supabase client to one FakeSupabase."""
    fake = FakeSupabase()
    for module in ROUTER_MODULES:
        monkeypatch.setattr(f"{module}.require_supabase_client", lambda: fake)
    return fake
