"""Vehicle Operations — add, list, read, remove, mark lost, and location history.

Invariants:
    - A vehicle is only ever created in its owner's city (checked here, and
      enforced again by the composite foreign key)
    - Vehicles in use cannot be removed or marked lost
    - Location history timestamps strictly increase per vehicle: a new entry is
      stamped max(now, last + 1µs)
    - ext is stored exactly as given

Design Decisions:
    - record_location is exported for rides.py: ride start/end/update append history
      inside their own transactions
    - get_vehicles materializes the page inside the transaction: the returned list
      is finite and can be iterated any number of times after the session is gone
"""

import asyncio
import logging
import uuid
from datetime import timedelta
from functools import partial

from sqlalchemy import delete, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from movr.core.clock import as_utc, utc_now
from movr.core.domain_types import (
    ExtensionDocument, RideId, UserId, VehicleId, VehicleStatus, VehicleType,
)
from movr.core.errors import (
    ConstraintViolationError, ErrorContext, InvalidInputError, NotFoundError,
    VehicleUnavailableError,
)
from movr.infrastructure.database import DatabaseSessionManager
from movr.infrastructure.transaction import run_transaction
from movr.models.ride import Ride
from movr.models.user import User
from movr.models.vehicle import Vehicle
from movr.models.vehicle_location_history import VehicleLocationHistory
from movr.schemas.vehicle import LocationRecord, VehicleRecord

logger = logging.getLogger(__name__)

_HISTORY_TICK = timedelta(microseconds=1)


async def load_vehicle(
    session: AsyncSession, city: str, vehicle_id: VehicleId, *, for_update: bool = False,
) -> Vehicle:
    """Fetch a vehicle row inside the current transaction or raise NotFoundError."""
    vehicle = await session.get(
        Vehicle, (city, vehicle_id), with_for_update=for_update,
    )
    if vehicle is None:
        raise NotFoundError("Vehicle", str(vehicle_id), ErrorContext(city=city))
    return vehicle


async def record_location(
    session: AsyncSession,
    city: str,
    vehicle_id: VehicleId,
    location: str,
    ride_id: RideId | None = None,
) -> VehicleLocationHistory:
    """Append a location entry, keeping timestamps strictly increasing per vehicle."""
    last = await session.scalar(
        select(func.max(VehicleLocationHistory.timestamp)).where(
            VehicleLocationHistory.city == city,
            VehicleLocationHistory.vehicle_id == vehicle_id,
        ),
    )
    stamp = utc_now()
    if last is not None and stamp <= as_utc(last):
        stamp = as_utc(last) + _HISTORY_TICK
    entry = VehicleLocationHistory(
        city=city, vehicle_id=vehicle_id, timestamp=stamp,
        ride_id=ride_id, location=location,
    )
    session.add(entry)
    await session.flush()
    return entry


# ─── Transaction bodies ──────────────────────────────────────────

async def _add_vehicle_txn(
    session: AsyncSession, *, city: str, owner_id: UserId, vehicle_type: str,
    current_location: str, ext: ExtensionDocument, status: VehicleStatus,
) -> VehicleRecord:
    if await session.get(User, (city, owner_id)) is None:
        raise ConstraintViolationError(
            f"Owner '{owner_id}' does not exist in city '{city}'",
            "fk_vehicles_owner", ErrorContext(city=city, operation="add_vehicle"),
        )
    vehicle = Vehicle(
        city=city, id=uuid.uuid4(), type=vehicle_type, owner_id=owner_id,
        creation_time=utc_now(), status=status.value,
        current_location=current_location, ext=ext,
    )
    session.add(vehicle)
    await session.flush()
    return VehicleRecord.model_validate(vehicle)


async def _get_vehicles_txn(
    session: AsyncSession, *, city: str, limit: int | None,
) -> list[VehicleRecord]:
    result = await session.execute(
        select(Vehicle)
        .where(Vehicle.city == city)
        .order_by(Vehicle.city, Vehicle.id)
        .limit(limit)
    )
    return [VehicleRecord.model_validate(v) for v in result.scalars().all()]


async def _get_vehicle_txn(
    session: AsyncSession, *, city: str, vehicle_id: VehicleId,
) -> VehicleRecord:
    return VehicleRecord.model_validate(await load_vehicle(session, city, vehicle_id))


async def _remove_vehicle_txn(
    session: AsyncSession, *, city: str, vehicle_id: VehicleId,
) -> None:
    vehicle = await load_vehicle(session, city, vehicle_id, for_update=True)
    if vehicle.status == VehicleStatus.IN_USE.value:
        raise VehicleUnavailableError(
            str(vehicle_id), vehicle.status, ErrorContext(city=city),
        )
    has_rides = await session.scalar(
        select(exists().where(
            Ride.vehicle_city == city, Ride.vehicle_id == vehicle_id,
        )),
    )
    if has_rides:
        raise ConstraintViolationError(
            f"Vehicle '{vehicle_id}' is referenced by rides",
            "fk_rides_vehicle", ErrorContext(city=city, operation="remove_vehicle"),
        )
    await session.execute(
        delete(VehicleLocationHistory).where(
            VehicleLocationHistory.city == city,
            VehicleLocationHistory.vehicle_id == vehicle_id,
        ),
    )
    await session.delete(vehicle)


async def _mark_vehicle_lost_txn(
    session: AsyncSession, *, city: str, vehicle_id: VehicleId,
) -> VehicleRecord:
    vehicle = await load_vehicle(session, city, vehicle_id, for_update=True)
    if vehicle.status == VehicleStatus.IN_USE.value:
        raise VehicleUnavailableError(
            str(vehicle_id), vehicle.status, ErrorContext(city=city),
        )
    vehicle.status = VehicleStatus.LOST.value
    await session.flush()
    return VehicleRecord.model_validate(vehicle)


async def _get_location_history_txn(
    session: AsyncSession, *, city: str, vehicle_id: VehicleId, limit: int | None,
) -> list[LocationRecord]:
    await load_vehicle(session, city, vehicle_id)
    result = await session.execute(
        select(VehicleLocationHistory)
        .where(
            VehicleLocationHistory.city == city,
            VehicleLocationHistory.vehicle_id == vehicle_id,
        )
        .order_by(VehicleLocationHistory.timestamp)
        .limit(limit)
    )
    return [LocationRecord.model_validate(h) for h in result.scalars().all()]


# ─── Operations ──────────────────────────────────────────────────

async def add_vehicle(
    db: DatabaseSessionManager,
    city: str,
    owner_id: UserId,
    vehicle_type: VehicleType | str,
    current_location: str,
    ext: ExtensionDocument | None = None,
    status: VehicleStatus = VehicleStatus.AVAILABLE,
    *,
    cancel_event: asyncio.Event | None = None,
) -> VehicleRecord:
    """Register a vehicle owned by (city, owner_id)."""
    try:
        kind = VehicleType(vehicle_type)
    except ValueError as e:
        raise InvalidInputError(
            "vehicle_type", vehicle_type,
            ErrorContext(city=city, operation="add_vehicle"),
        ) from e
    record = await run_transaction(
        db.new_session,
        partial(
            _add_vehicle_txn, city=city, owner_id=owner_id,
            vehicle_type=kind.value,
            current_location=current_location, ext=ext or {}, status=status,
        ),
        policy=db.retry_policy, cancel_event=cancel_event,
        operation="add_vehicle", city=city,
    )
    logger.info(
        f"Vehicle {record.id} added", extra={"city": city, "operation": "add_vehicle"},
    )
    return record


async def get_vehicles(
    db: DatabaseSessionManager, city: str, limit: int | None = None,
    *, cancel_event: asyncio.Event | None = None,
) -> list[VehicleRecord]:
    """Vehicles of one city ordered by (city, id), optionally capped at limit."""
    return await run_transaction(
        db.new_session,
        partial(_get_vehicles_txn, city=city, limit=limit),
        policy=db.retry_policy, cancel_event=cancel_event,
        operation="get_vehicles", city=city,
    )


async def get_vehicle(
    db: DatabaseSessionManager, city: str, vehicle_id: VehicleId,
    *, cancel_event: asyncio.Event | None = None,
) -> VehicleRecord:
    return await run_transaction(
        db.new_session,
        partial(_get_vehicle_txn, city=city, vehicle_id=vehicle_id),
        policy=db.retry_policy, cancel_event=cancel_event,
        operation="get_vehicle", city=city,
    )


async def remove_vehicle(
    db: DatabaseSessionManager, city: str, vehicle_id: VehicleId,
    *, cancel_event: asyncio.Event | None = None,
) -> None:
    """Delete a vehicle that is not in use, together with its location history."""
    await run_transaction(
        db.new_session,
        partial(_remove_vehicle_txn, city=city, vehicle_id=vehicle_id),
        policy=db.retry_policy, cancel_event=cancel_event,
        operation="remove_vehicle", city=city,
    )
    logger.info(
        f"Vehicle {vehicle_id} removed",
        extra={"city": city, "operation": "remove_vehicle"},
    )


async def mark_vehicle_lost(
    db: DatabaseSessionManager, city: str, vehicle_id: VehicleId,
    *, cancel_event: asyncio.Event | None = None,
) -> VehicleRecord:
    return await run_transaction(
        db.new_session,
        partial(_mark_vehicle_lost_txn, city=city, vehicle_id=vehicle_id),
        policy=db.retry_policy, cancel_event=cancel_event,
        operation="mark_vehicle_lost", city=city,
    )


async def get_vehicle_location_history(
    db: DatabaseSessionManager, city: str, vehicle_id: VehicleId,
    limit: int | None = None, *, cancel_event: asyncio.Event | None = None,
) -> list[LocationRecord]:
    """Location entries for one vehicle, oldest first."""
    return await run_transaction(
        db.new_session,
        partial(
            _get_location_history_txn, city=city,
            vehicle_id=vehicle_id, limit=limit,
        ),
        policy=db.retry_policy, cancel_event=cancel_event,
        operation="get_vehicle_location_history", city=city,
    )
