"""Ride Operations — start_ride, end_ride, update_ride_location, get_rides, get_active_rides.

Invariants:
    - start_ride: ride insert + vehicle status → in_use + history entry in ONE transaction
    - start_ride only succeeds while the vehicle is available
    - end_ride: ride completion + vehicle status → available + history entry in ONE transaction
    - end_ride on an already-ended ride raises RideAlreadyEndedError and changes nothing
    - A ride's vehicle always lives in the ride's city (vehicle_city == city)

Design Decisions:
    - Vehicle and ride rows read with SELECT ... FOR UPDATE: contending writers
      queue on the row instead of aborting at commit
    - start_address copied from the vehicle's current_location at start time
"""

import asyncio
import logging
import uuid
from decimal import Decimal
from functools import partial

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from movr.core.clock import utc_now
from movr.core.domain_types import RideId, UserId, VehicleId, VehicleStatus
from movr.core.errors import (
    ErrorContext, NotFoundError, RideAlreadyEndedError, VehicleUnavailableError,
)
from movr.infrastructure.database import DatabaseSessionManager
from movr.infrastructure.transaction import run_transaction
from movr.models.ride import Ride
from movr.schemas.ride import RideRecord, RideRef
from movr.schemas.vehicle import LocationRecord
from movr.services.users import load_user
from movr.services.vehicles import load_vehicle, record_location

logger = logging.getLogger(__name__)


async def _load_active_ride(
    session: AsyncSession, city: str, ride_id: RideId,
) -> Ride:
    ride = await session.get(Ride, (city, ride_id), with_for_update=True)
    if ride is None:
        raise NotFoundError("Ride", str(ride_id), ErrorContext(city=city))
    if not ride.is_active:
        raise RideAlreadyEndedError(str(ride_id), ErrorContext(city=city))
    return ride


# ─── Transaction bodies ──────────────────────────────────────────

async def _start_ride_txn(
    session: AsyncSession, *, city: str, rider_id: UserId, vehicle_id: VehicleId,
) -> RideRef:
    vehicle = await load_vehicle(session, city, vehicle_id, for_update=True)
    if vehicle.status != VehicleStatus.AVAILABLE.value:
        raise VehicleUnavailableError(
            str(vehicle_id), vehicle.status,
            ErrorContext(city=city, operation="start_ride"),
        )
    await load_user(session, city, rider_id)

    ride = Ride(
        city=city,
        id=uuid.uuid4(),
        vehicle_city=vehicle.city,
        rider_id=rider_id,
        vehicle_id=vehicle_id,
        start_address=vehicle.current_location,
        start_time=utc_now(),
    )
    session.add(ride)
    vehicle.status = VehicleStatus.IN_USE.value
    await session.flush()
    await record_location(
        session, city, vehicle_id, vehicle.current_location, ride_id=ride.id,
    )
    return RideRef(city=city, ride_id=ride.id)


async def _end_ride_txn(
    session: AsyncSession, *, city: str, ride_id: RideId,
    end_location: str, revenue: Decimal | None,
) -> None:
    ride = await _load_active_ride(session, city, ride_id)
    vehicle = await load_vehicle(
        session, ride.vehicle_city, ride.vehicle_id, for_update=True,
    )
    ride.end_address = end_location
    ride.end_time = utc_now()
    ride.revenue = revenue
    vehicle.status = VehicleStatus.AVAILABLE.value
    vehicle.current_location = end_location
    await session.flush()
    await record_location(
        session, city, vehicle.id, end_location, ride_id=ride.id,
    )


async def _update_ride_location_txn(
    session: AsyncSession, *, city: str, ride_id: RideId, location: str,
) -> LocationRecord:
    ride = await _load_active_ride(session, city, ride_id)
    vehicle = await load_vehicle(
        session, ride.vehicle_city, ride.vehicle_id, for_update=True,
    )
    vehicle.current_location = location
    entry = await record_location(session, city, vehicle.id, location, ride_id=ride.id)
    return LocationRecord.model_validate(entry)


async def _get_rides_txn(
    session: AsyncSession, *, city: str, rider_id: UserId | None,
    active_only: bool, limit: int | None,
) -> list[RideRecord]:
    query = select(Ride).where(Ride.city == city)
    if rider_id is not None:
        query = query.where(Ride.rider_id == rider_id)
    if active_only:
        query = query.where(Ride.end_time.is_(None))
    query = query.order_by(Ride.city, Ride.id).limit(limit)
    result = await session.execute(query)
    return [RideRecord.model_validate(r) for r in result.scalars().all()]


# ─── Operations ──────────────────────────────────────────────────

async def start_ride(
    db: DatabaseSessionManager,
    city: str,
    rider_id: UserId,
    vehicle_id: VehicleId,
    *,
    cancel_event: asyncio.Event | None = None,
) -> RideRef:
    """Start a ride on an available vehicle; both rows change together or not at all."""
    ref = await run_transaction(
        db.new_session,
        partial(_start_ride_txn, city=city, rider_id=rider_id, vehicle_id=vehicle_id),
        policy=db.retry_policy, cancel_event=cancel_event,
        operation="start_ride", city=city,
    )
    logger.info(
        f"Ride {ref.ride_id} started on vehicle {vehicle_id}",
        extra={"city": city, "operation": "start_ride"},
    )
    return ref


async def end_ride(
    db: DatabaseSessionManager,
    city: str,
    ride_id: RideId,
    end_location: str,
    revenue: Decimal | None = None,
    *,
    cancel_event: asyncio.Event | None = None,
) -> None:
    """Complete an active ride and release its vehicle at end_location."""
    await run_transaction(
        db.new_session,
        partial(
            _end_ride_txn, city=city, ride_id=ride_id,
            end_location=end_location, revenue=revenue,
        ),
        policy=db.retry_policy, cancel_event=cancel_event,
        operation="end_ride", city=city,
    )
    logger.info(
        f"Ride {ride_id} ended", extra={"city": city, "operation": "end_ride"},
    )


async def update_ride_location(
    db: DatabaseSessionManager, city: str, ride_id: RideId, location: str,
    *, cancel_event: asyncio.Event | None = None,
) -> LocationRecord:
    """Move the vehicle of an active ride and log the new position."""
    return await run_transaction(
        db.new_session,
        partial(
            _update_ride_location_txn, city=city, ride_id=ride_id, location=location,
        ),
        policy=db.retry_policy, cancel_event=cancel_event,
        operation="update_ride_location", city=city,
    )


async def get_rides(
    db: DatabaseSessionManager,
    city: str,
    rider_id: UserId | None = None,
    limit: int | None = None,
    *,
    cancel_event: asyncio.Event | None = None,
) -> list[RideRecord]:
    return await run_transaction(
        db.new_session,
        partial(
            _get_rides_txn, city=city, rider_id=rider_id,
            active_only=False, limit=limit,
        ),
        policy=db.retry_policy, cancel_event=cancel_event,
        operation="get_rides", city=city,
    )


async def get_active_rides(
    db: DatabaseSessionManager, city: str, limit: int | None = None,
    rider_id: UserId | None = None,
    *, cancel_event: asyncio.Event | None = None,
) -> list[RideRecord]:
    """Rides without an end_time, optionally restricted to one rider."""
    return await run_transaction(
        db.new_session,
        partial(
            _get_rides_txn, city=city, rider_id=rider_id,
            active_only=True, limit=limit,
        ),
        policy=db.retry_policy, cancel_event=cancel_event,
        operation="get_active_rides", city=city,
    )
