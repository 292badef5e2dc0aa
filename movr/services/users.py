"""User Operations — add_user, get_user, get_users, remove_user.

Invariants:
    - Users are addressed by (city, id); a user id alone never identifies a row
    - remove_user refuses while the user still owns vehicles or has rides
      (those rows reference the user within the same partition)
    - Promo redemptions are owned by the user and removed together with it
"""

import asyncio
import logging
import uuid
from functools import partial

from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from movr.core.domain_types import UserId
from movr.core.errors import ConstraintViolationError, ErrorContext, NotFoundError
from movr.infrastructure.database import DatabaseSessionManager
from movr.infrastructure.transaction import run_transaction
from movr.models.promo_code import UserPromoCode
from movr.models.ride import Ride
from movr.models.user import User
from movr.models.vehicle import Vehicle
from movr.schemas.user import UserRecord

logger = logging.getLogger(__name__)


async def load_user(session: AsyncSession, city: str, user_id: UserId) -> User:
    """Fetch a user row inside the current transaction or raise NotFoundError."""
    user = await session.get(User, (city, user_id))
    if user is None:
        raise NotFoundError("User", str(user_id), ErrorContext(city=city))
    return user


# ─── Transaction bodies ──────────────────────────────────────────

async def _add_user_txn(
    session: AsyncSession, *, city: str, name: str,
    address: str | None, credit_card: str | None,
) -> UserRecord:
    user = User(
        city=city, id=uuid.uuid4(), name=name,
        address=address, credit_card=credit_card,
    )
    session.add(user)
    await session.flush()
    return UserRecord.model_validate(user)


async def _get_user_txn(
    session: AsyncSession, *, city: str, user_id: UserId,
) -> UserRecord:
    return UserRecord.model_validate(await load_user(session, city, user_id))


async def _get_users_txn(
    session: AsyncSession, *, city: str, limit: int | None,
) -> list[UserRecord]:
    result = await session.execute(
        select(User)
        .where(User.city == city)
        .order_by(User.city, User.id)
        .limit(limit)
    )
    return [UserRecord.model_validate(u) for u in result.scalars().all()]


async def _remove_user_txn(
    session: AsyncSession, *, city: str, user_id: UserId,
) -> None:
    user = await load_user(session, city, user_id)
    owns_vehicles = await session.scalar(
        select(exists().where(Vehicle.city == city, Vehicle.owner_id == user_id)),
    )
    has_rides = await session.scalar(
        select(exists().where(Ride.city == city, Ride.rider_id == user_id)),
    )
    if owns_vehicles or has_rides:
        raise ConstraintViolationError(
            f"User '{user_id}' still owns vehicles or has rides",
            "user_references", ErrorContext(city=city, operation="remove_user"),
        )
    await session.execute(
        delete(UserPromoCode).where(
            UserPromoCode.city == city, UserPromoCode.user_id == user_id,
        ),
    )
    await session.delete(user)


# ─── Operations ──────────────────────────────────────────────────

async def add_user(
    db: DatabaseSessionManager,
    city: str,
    name: str,
    address: str | None = None,
    credit_card: str | None = None,
    *,
    cancel_event: asyncio.Event | None = None,
) -> UserRecord:
    """Create a user in the given city partition."""
    record = await run_transaction(
        db.new_session,
        partial(
            _add_user_txn, city=city, name=name,
            address=address, credit_card=credit_card,
        ),
        policy=db.retry_policy, cancel_event=cancel_event,
        operation="add_user", city=city,
    )
    logger.info(f"User {record.id} added", extra={"city": city, "operation": "add_user"})
    return record


async def get_user(
    db: DatabaseSessionManager, city: str, user_id: UserId,
    *, cancel_event: asyncio.Event | None = None,
) -> UserRecord:
    return await run_transaction(
        db.new_session,
        partial(_get_user_txn, city=city, user_id=user_id),
        policy=db.retry_policy, cancel_event=cancel_event,
        operation="get_user", city=city,
    )


async def get_users(
    db: DatabaseSessionManager, city: str, limit: int | None = None,
    *, cancel_event: asyncio.Event | None = None,
) -> list[UserRecord]:
    """Users of one city in key order, optionally capped at limit."""
    return await run_transaction(
        db.new_session,
        partial(_get_users_txn, city=city, limit=limit),
        policy=db.retry_policy, cancel_event=cancel_event,
        operation="get_users", city=city,
    )


async def remove_user(
    db: DatabaseSessionManager, city: str, user_id: UserId,
    *, cancel_event: asyncio.Event | None = None,
) -> None:
    await run_transaction(
        db.new_session,
        partial(_remove_user_txn, city=city, user_id=user_id),
        policy=db.retry_policy, cancel_event=cancel_event,
        operation="remove_user", city=city,
    )
    logger.info(
        f"User {user_id} removed", extra={"city": city, "operation": "remove_user"},
    )
