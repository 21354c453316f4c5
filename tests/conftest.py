import copy
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app.core.auth import get_current_user
from app.core.database import get_db
from app.core.errors import StoreUnavailable
from app.main import app
from app.models.user import AuthenticatedUser
from app.services import quotations_service as qs


class FakeStore:
    """
    In-memory stand-in for the Database handle covering the quotation cascade.

    Transactions snapshot the tables on entry and restore them when the block
    raises, the way PostgreSQL discards an aborted transaction.
    """

    def __init__(self):
        self.tables = {"quotations": {}, "quotation_versions": {}, "quotation_items": {}}
        self.statements = []
        self.fail_on = set()
        self.transactions = 0
        self.rollbacks = 0

    # fixtures

    def add_quotation(self, quotation_id, versions=0, items_per_version=0):
        self.tables["quotations"][quotation_id] = {"id": quotation_id, "client_id": "client-1", "title": quotation_id}
        for v in range(versions):
            version_id = f"{quotation_id}-v{v}"
            self.tables["quotation_versions"][version_id] = {"id": version_id, "quotation_id": quotation_id}
            for i in range(items_per_version):
                item_id = f"{version_id}-i{i}"
                self.tables["quotation_items"][item_id] = {"id": item_id, "quotation_version_id": version_id}

    def row_count(self):
        return sum(len(rows) for rows in self.tables.values())

    # statement handlers

    def _run(self, query, params):
        self.statements.append(query)
        if query in self.fail_on:
            raise StoreUnavailable()

        quotations = self.tables["quotations"]
        versions = self.tables["quotation_versions"]
        items = self.tables["quotation_items"]

        if query == qs.LOCK_QUOTATION:
            row = quotations.get(params[0])
            return [{"id": row["id"]}] if row else []
        if query == qs.SELECT_VERSION_IDS:
            return [{"id": v["id"]} for v in versions.values() if v["quotation_id"] == params[0]]
        if query == qs.DELETE_VERSION_ITEMS:
            doomed = [k for k, v in items.items() if v["quotation_version_id"] in params[0]]
            for key in doomed:
                del items[key]
            return len(doomed)
        if query == qs.DELETE_VERSIONS:
            doomed = [k for k in versions if k in params[0]]
            for key in doomed:
                del versions[key]
            return len(doomed)
        if query == qs.DELETE_QUOTATION:
            return 1 if quotations.pop(params[0], None) else 0
        raise AssertionError(f"unexpected statement: {query}")

    async def fetch(self, query, params=None):
        return self._run(query, params)

    async def fetchrow(self, query, params=None):
        rows = self._run(query, params)
        return rows[0] if rows else None

    async def execute(self, query, params=None):
        return self._run(query, params)

    @asynccontextmanager
    async def transaction(self):
        self.transactions += 1
        snapshot = copy.deepcopy(self.tables)
        try:
            yield self
        except BaseException:
            self.tables = snapshot
            self.rollbacks += 1
            raise


def client_row(**overrides):
    row = {
        "id": "client-1",
        "name": "Sunrise Farms",
        "contact_name": "Asha Patel",
        "email": "asha@sunrise.example",
        "created_at": "2026-01-05T09:00:00+00:00",
        "updated_at": "2026-01-05T09:00:00+00:00",
    }
    row.update(overrides)
    return row


def inquiry_row(**overrides):
    row = {
        "id": "inq-1",
        "client_id": "client-1",
        "title": "Rooftop 50kW",
        "status": "NEW",
        "created_at": "2026-01-06T09:00:00+00:00",
    }
    row.update(overrides)
    return row


def token_row(**overrides):
    row = {
        "id": "tok-1",
        "token": "AB12CD34",
        "client_id": "client-1",
        "inquiry_id": "inq-1",
        "allow_download": True,
        "expires_at": None,
        "created_at": datetime(2026, 1, 7, tzinfo=timezone.utc),
        "client": client_row(),
        "inquiry": inquiry_row(),
    }
    row.update(overrides)
    return row


def document_row(**overrides):
    row = {
        "id": "doc-1",
        "inquiry_id": "inq-1",
        "client_id": "client-1",
        "name": "Commissioning report",
        "file_url": "/uploads/documents/report.pdf",
        "created_at": datetime(2026, 2, 1, tzinfo=timezone.utc),
        "inquiry": inquiry_row(),
    }
    row.update(overrides)
    return row


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def operator():
    return AuthenticatedUser(uid="op-1", email="ops@solar.example")


@pytest.fixture
def api(operator):
    """TestClient bound to whatever store the test installs via ``api.store = ...``."""
    client = TestClient(app)
    client.store = None
    app.dependency_overrides[get_db] = lambda: client.store
    app.dependency_overrides[get_current_user] = lambda: operator
    try:
        yield client
    finally:
        app.dependency_overrides.clear()
