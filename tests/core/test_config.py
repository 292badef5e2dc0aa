"""Configuration — verifies connection string normalization and defaults."""

import pytest

from movr.config import Settings, normalize_database_url


@pytest.mark.parametrize("url", [
    "cockroachdb://root@localhost:26257/movr",
    "postgresql://root@localhost:26257/movr",
    "postgres://root@localhost:26257/movr",
])
def test_wire_schemes_use_asyncpg(url):
    assert normalize_database_url(url) == (
        "postgresql+asyncpg://root@localhost:26257/movr"
    )


def test_other_schemes_untouched():
    url = "sqlite+aiosqlite:///movr.db"
    assert normalize_database_url(url) == url


def test_settings_normalizes_database_url():
    s = Settings(database_url="cockroachdb://root@db:26257/movr?sslmode=disable")
    assert s.database_url == "postgresql+asyncpg://root@db:26257/movr?sslmode=disable"


def test_retry_defaults_are_bounded():
    s = Settings()
    assert s.txn_max_retries == 100
    assert s.txn_base_delay_ms < s.txn_max_delay_ms
