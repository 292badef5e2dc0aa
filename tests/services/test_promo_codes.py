"""Promo Code Operations — verifies creation, expiry and at-most-once redemption."""

import asyncio
from datetime import timedelta
from uuid import uuid4

import pytest

from movr.core.clock import utc_now
from movr.core.errors import (
    ConstraintViolationError, DuplicateError, NotFoundError, PromoCodeExpiredError,
)
from movr.schemas.promo_code import AppliedPromo
from movr.services import promo_codes


async def test_create_and_list_promo_codes(db):
    await promo_codes.create_promo_code(db, "SUMMER", "10% off", rules={"percent": 10})
    await promo_codes.create_promo_code(db, "AUTUMN")

    listed = await promo_codes.get_promo_codes(db)

    assert [p.code for p in listed] == ["AUTUMN", "SUMMER"]
    assert listed[1].rules == {"percent": 10}


async def test_duplicate_promo_code(db):
    await promo_codes.create_promo_code(db, "SUMMER")
    with pytest.raises(DuplicateError):
        await promo_codes.create_promo_code(db, "SUMMER")


async def test_apply_promo_code(db, rider):
    await promo_codes.create_promo_code(db, "WELCOME")

    applied = await promo_codes.apply_promo_code(db, "seattle", rider.id, "WELCOME")

    assert applied.user_id == rider.id
    assert applied.city == "seattle"
    assert applied.usage_count == 0


async def test_apply_twice_raises_duplicate(db, rider):
    await promo_codes.create_promo_code(db, "WELCOME")
    await promo_codes.apply_promo_code(db, "seattle", rider.id, "WELCOME")
    with pytest.raises(DuplicateError):
        await promo_codes.apply_promo_code(db, "seattle", rider.id, "WELCOME")


async def test_concurrent_redemptions_admit_exactly_one(db, rider):
    await promo_codes.create_promo_code(db, "RACE")

    results = await asyncio.gather(
        promo_codes.apply_promo_code(db, "seattle", rider.id, "RACE"),
        promo_codes.apply_promo_code(db, "seattle", rider.id, "RACE"),
        return_exceptions=True,
    )

    assert sum(isinstance(r, AppliedPromo) for r in results) == 1
    assert sum(isinstance(r, DuplicateError) for r in results) == 1


async def test_expired_promo_code(db, rider):
    await promo_codes.create_promo_code(
        db, "OLD", expiration_time=utc_now() - timedelta(days=1),
    )
    with pytest.raises(PromoCodeExpiredError):
        await promo_codes.apply_promo_code(db, "seattle", rider.id, "OLD")


async def test_unknown_code_or_user(db, rider):
    with pytest.raises(NotFoundError):
        await promo_codes.apply_promo_code(db, "seattle", rider.id, "NOPE")

    await promo_codes.create_promo_code(db, "WELCOME")
    with pytest.raises(NotFoundError):
        await promo_codes.apply_promo_code(db, "seattle", uuid4(), "WELCOME")


async def test_missing_user_at_insert_is_not_duplicate(db, monkeypatch):
    """A redemption for a user that vanished fails on the foreign key, not as a duplicate."""
    async def user_checked_earlier(session, city, user_id):
        return None

    monkeypatch.setattr(promo_codes, "load_user", user_checked_earlier)
    await promo_codes.create_promo_code(db, "WELCOME")

    with pytest.raises(ConstraintViolationError) as exc_info:
        await promo_codes.apply_promo_code(db, "seattle", uuid4(), "WELCOME")

    assert not isinstance(exc_info.value, DuplicateError)
    assert exc_info.value.code == "CONSTRAINT_VIOLATION"
