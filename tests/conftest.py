"""
Shared test fixtures
"""
import pytest
from fastapi.testclient import TestClient

from app.database.backend import BackendError, get_backend
from app.database.cache import TTLCache, get_session_store
from app.main import app


class FakeBackend:
    """
    In-memory stand-in for the hosted backend client

    - invoke/insert record their calls and pop queued failures first
    - select filters rows registered in `tables` by equality
    - invoke_gate (asyncio.Event) holds invoke calls until set
    """

    def __init__(self):
        self.tables = {}
        self.invocations = []
        self.inserts = []
        self.selects = []
        self.invoke_failures = []
        self.insert_failures = []
        self.select_failures = []
        self.invoke_gate = None

    async def invoke(self, function_name, body):
        self.invocations.append((function_name, body))
        if self.invoke_gate is not None:
            await self.invoke_gate.wait()
        if self.invoke_failures:
            raise self.invoke_failures.pop(0)
        return {"success": True, "data": {"id": f"lead-{len(self.invocations)}"}}

    async def insert(self, table, row):
        self.inserts.append((table, row))
        if self.insert_failures:
            raise self.insert_failures.pop(0)
        return {"id": f"{table}-{len(self.inserts)}", **row}

    async def select(self, table, filters=None, columns="*", order=None, limit=None):
        self.selects.append((table, filters))
        if self.select_failures:
            raise self.select_failures.pop(0)
        rows = [
            row for row in self.tables.get(table, [])
            if all(str(row.get(column)) == str(value) for column, value in (filters or {}).items())
        ]
        return rows[:limit] if limit else rows


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def backend_down():
    """Three queued failures: enough to exhaust the default retry budget"""
    return [BackendError("Database unavailable", status_code=503) for _ in range(3)]


@pytest.fixture
def sleeps():
    """Records requested retry waits without sleeping"""
    recorded = []

    async def fake_sleep(seconds):
        recorded.append(seconds)

    fake_sleep.recorded = recorded
    return fake_sleep


@pytest.fixture
def session_store():
    return TTLCache(ttl_seconds=60)


@pytest.fixture
def client(fake_backend, session_store, monkeypatch):
    """Test client wired to the fake backend and an isolated session store"""
    monkeypatch.setenv("LEAD_RETRY_DELAY_SECONDS", "0")
    monkeypatch.setenv("PUBLIC_BASE_URL", "https://quiz.example.com")
    app.dependency_overrides[get_backend] = lambda: fake_backend
    app.dependency_overrides[get_session_store] = lambda: session_store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
