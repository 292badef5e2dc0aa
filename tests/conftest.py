"""Root conftest — shared test configuration and seeded MovR data.

Invariants:
    - Every test gets a fresh SQLite file database with foreign keys enforced
    - The store is reached only through DatabaseSessionManager, as in production
    - Retry backoff is shortened so contention tests finish quickly

Design Decisions:
    - File database over :memory:: concurrent sessions need separate connections
      to contend the way real transactions do
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")

import pytest  # noqa: E402

from movr.core.domain_types import VehicleType  # noqa: E402
from movr.infrastructure.database import DatabaseSessionManager  # noqa: E402
from movr.infrastructure.transaction import RetryPolicy  # noqa: E402
from movr.services import users, vehicles  # noqa: E402

FAST_RETRY = RetryPolicy(max_retries=20, base_delay_ms=1, max_delay_ms=50)


@pytest.fixture
async def db(tmp_path):
    manager = await DatabaseSessionManager.open(
        f"sqlite+aiosqlite:///{tmp_path / 'movr.db'}",
        auto_create_schema=True,
        retry_policy=FAST_RETRY,
    )
    yield manager
    await manager.close()


@pytest.fixture
async def rider(db):
    """A seattle user who rides and owns vehicles."""
    return await users.add_user(db, "seattle", "Ada Rider", address="1 Pine St")


@pytest.fixture
async def vehicle(db, rider):
    """An available seattle scooter owned by rider."""
    return await vehicles.add_vehicle(
        db, "seattle", rider.id, VehicleType.SCOOTER, "Pike Place",
        ext={"color": "red", "brand": "Lime"},
    )
