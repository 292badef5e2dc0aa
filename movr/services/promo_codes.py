"""Promo Code Operations — create_promo_code, get_promo_codes, apply_promo_code.

Invariants:
    - A (city, user_id, code) redemption exists at most once
    - The duplicate check and the redemption insert share one transaction
    - Expired codes are never redeemed

Design Decisions:
    - Read-then-insert for a friendly DuplicateError, plus a unique violation on
      flush mapped to DuplicateError: when two redemptions race, the primary key
      decides and the loser sees the same error as a sequential duplicate
    - Other integrity failures (e.g. the user deleted meanwhile) propagate and
      surface as ConstraintViolationError
"""

import asyncio
import logging
from datetime import datetime
from functools import partial
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from movr.core.clock import as_utc, utc_now
from movr.core.domain_types import PromoCodeName, UserId
from movr.core.errors import (
    DuplicateError, ErrorContext, NotFoundError, PromoCodeExpiredError,
)
from movr.infrastructure.database import DatabaseSessionManager
from movr.infrastructure.db_errors import is_unique_violation
from movr.infrastructure.transaction import run_transaction
from movr.models.promo_code import PromoCode, UserPromoCode
from movr.schemas.promo_code import AppliedPromo, PromoCodeRecord
from movr.services.users import load_user

logger = logging.getLogger(__name__)


# ─── Transaction bodies ──────────────────────────────────────────

async def _create_promo_code_txn(
    session: AsyncSession, *, code: PromoCodeName, description: str | None,
    expiration_time: datetime | None, rules: dict[str, Any],
) -> PromoCodeRecord:
    if await session.get(PromoCode, code) is not None:
        raise DuplicateError(f"Promo code '{code}' already exists")
    promo = PromoCode(
        code=code, description=description, creation_time=utc_now(),
        expiration_time=expiration_time, rules=rules,
    )
    session.add(promo)
    try:
        await session.flush()
    except IntegrityError as e:
        if not is_unique_violation(e):
            raise
        raise DuplicateError(f"Promo code '{code}' already exists") from e
    return PromoCodeRecord.model_validate(promo)


async def _get_promo_codes_txn(
    session: AsyncSession, *, limit: int | None,
) -> list[PromoCodeRecord]:
    result = await session.execute(
        select(PromoCode).order_by(PromoCode.code).limit(limit),
    )
    return [PromoCodeRecord.model_validate(p) for p in result.scalars().all()]


async def _apply_promo_code_txn(
    session: AsyncSession, *, city: str, user_id: UserId, code: PromoCodeName,
) -> AppliedPromo:
    ctx = ErrorContext(city=city, operation="apply_promo_code")
    await load_user(session, city, user_id)
    promo = await session.get(PromoCode, code)
    if promo is None:
        raise NotFoundError("Promo code", code, ctx)
    if promo.expiration_time is not None and as_utc(promo.expiration_time) <= utc_now():
        raise PromoCodeExpiredError(code, ctx)

    duplicate = DuplicateError(
        f"Promo code '{code}' already applied by user '{user_id}'", ctx,
    )
    if await session.get(UserPromoCode, (city, user_id, code)) is not None:
        raise duplicate
    redemption = UserPromoCode(
        city=city, user_id=user_id, code=code,
        timestamp=utc_now(), usage_count=0,
    )
    session.add(redemption)
    try:
        await session.flush()
    except IntegrityError as e:
        if not is_unique_violation(e):
            raise
        raise duplicate from e
    return AppliedPromo.model_validate(redemption)


# ─── Operations ──────────────────────────────────────────────────

async def create_promo_code(
    db: DatabaseSessionManager,
    code: PromoCodeName,
    description: str | None = None,
    expiration_time: datetime | None = None,
    rules: dict[str, Any] | None = None,
    *,
    cancel_event: asyncio.Event | None = None,
) -> PromoCodeRecord:
    record = await run_transaction(
        db.new_session,
        partial(
            _create_promo_code_txn, code=code, description=description,
            expiration_time=expiration_time, rules=rules or {},
        ),
        policy=db.retry_policy, cancel_event=cancel_event,
        operation="create_promo_code",
    )
    logger.info(
        f"Promo code {code} created", extra={"operation": "create_promo_code"},
    )
    return record


async def get_promo_codes(
    db: DatabaseSessionManager, limit: int | None = None,
    *, cancel_event: asyncio.Event | None = None,
) -> list[PromoCodeRecord]:
    return await run_transaction(
        db.new_session,
        partial(_get_promo_codes_txn, limit=limit),
        policy=db.retry_policy, cancel_event=cancel_event,
        operation="get_promo_codes",
    )


async def apply_promo_code(
    db: DatabaseSessionManager,
    city: str,
    user_id: UserId,
    code: PromoCodeName,
    *,
    cancel_event: asyncio.Event | None = None,
) -> AppliedPromo:
    """Redeem code for (city, user_id); raises DuplicateError on a second redemption."""
    applied = await run_transaction(
        db.new_session,
        partial(_apply_promo_code_txn, city=city, user_id=user_id, code=code),
        policy=db.retry_policy, cancel_event=cancel_event,
        operation="apply_promo_code", city=city,
    )
    logger.info(
        f"Promo code {code} applied for user {user_id}",
        extra={"city": city, "operation": "apply_promo_code"},
    )
    return applied
