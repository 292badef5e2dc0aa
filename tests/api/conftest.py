"""API test fixtures — FastAPI test client bound to the per-test database.

Invariants:
    - get_db_manager dependency overridden to use the test manager
    - db_manager patched so the readiness probe sees the test store
"""

import pytest
from httpx import ASGITransport, AsyncClient

import movr.infrastructure.database as db_module
from movr.infrastructure.database import get_db_manager
from movr.main import app


@pytest.fixture
async def client(db, monkeypatch):
    """FastAPI test client with DB dependency overridden."""
    app.dependency_overrides[get_db_manager] = lambda: db
    monkeypatch.setattr(db_module, "db_manager", db)

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
