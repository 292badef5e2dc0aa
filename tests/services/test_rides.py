"""Ride Operations — verifies atomic start/end, partition rules and history order.

Invariants:
    - start_ride changes ride, vehicle and history together or not at all
    - end_ride twice raises RideAlreadyEndedError and changes nothing
    - Rides never cross city partitions
    - Location history timestamps strictly increase per vehicle
"""

import asyncio
import uuid
from decimal import Decimal
from uuid import uuid4

import pytest

from movr.core.clock import utc_now
from movr.core.domain_types import VehicleStatus
from movr.core.errors import (
    ConstraintViolationError, NotFoundError, RideAlreadyEndedError,
    VehicleUnavailableError,
)
from movr.infrastructure.transaction import run_transaction
from movr.models.ride import Ride
from movr.schemas.ride import RideRef
from movr.services import rides, users, vehicles


async def test_start_ride_marks_vehicle_in_use(db, rider, vehicle):
    ref = await rides.start_ride(db, "seattle", rider.id, vehicle.id)

    assert ref.city == "seattle"
    assert (await vehicles.get_vehicle(db, "seattle", vehicle.id)).status == (
        VehicleStatus.IN_USE
    )
    [active] = await rides.get_active_rides(db, "seattle")
    assert active.id == ref.ride_id
    assert active.vehicle_city == "seattle"
    assert active.start_address == "Pike Place"
    [entry] = await vehicles.get_vehicle_location_history(db, "seattle", vehicle.id)
    assert entry.ride_id == ref.ride_id


async def test_start_ride_twice_on_same_vehicle(db, rider, vehicle):
    await rides.start_ride(db, "seattle", rider.id, vehicle.id)
    with pytest.raises(VehicleUnavailableError):
        await rides.start_ride(db, "seattle", rider.id, vehicle.id)
    assert len(await rides.get_rides(db, "seattle")) == 1


async def test_start_ride_rolls_back_on_failure(db, rider, vehicle, monkeypatch):
    async def broken_record_location(*args, **kwargs):
        raise RuntimeError("history write failed")

    monkeypatch.setattr(rides, "record_location", broken_record_location)

    with pytest.raises(RuntimeError):
        await rides.start_ride(db, "seattle", rider.id, vehicle.id)

    assert (await vehicles.get_vehicle(db, "seattle", vehicle.id)).status == (
        VehicleStatus.AVAILABLE
    )
    assert await rides.get_rides(db, "seattle") == []


async def test_start_ride_rider_from_other_city(db, vehicle):
    outsider = await users.add_user(db, "boston", "Sam")
    with pytest.raises(NotFoundError):
        await rides.start_ride(db, "seattle", outsider.id, vehicle.id)
    assert (await vehicles.get_vehicle(db, "seattle", vehicle.id)).status == (
        VehicleStatus.AVAILABLE
    )


async def test_end_ride_releases_vehicle(db, rider, vehicle):
    ref = await rides.start_ride(db, "seattle", rider.id, vehicle.id)

    await rides.end_ride(db, "seattle", ref.ride_id, "Fremont Troll", Decimal("12.50"))

    released = await vehicles.get_vehicle(db, "seattle", vehicle.id)
    assert released.status == VehicleStatus.AVAILABLE
    assert released.current_location == "Fremont Troll"
    [ride] = await rides.get_rides(db, "seattle", rider_id=rider.id)
    assert ride.end_address == "Fremont Troll"
    assert ride.end_time is not None
    assert ride.revenue == Decimal("12.50")
    assert await rides.get_active_rides(db, "seattle") == []


async def test_end_ride_twice_raises_already_ended(db, rider, vehicle):
    ref = await rides.start_ride(db, "seattle", rider.id, vehicle.id)
    await rides.end_ride(db, "seattle", ref.ride_id, "Ballard")

    with pytest.raises(RideAlreadyEndedError):
        await rides.end_ride(db, "seattle", ref.ride_id, "Somewhere else")

    [ride] = await rides.get_rides(db, "seattle")
    assert ride.end_address == "Ballard"


async def test_end_unknown_ride(db):
    with pytest.raises(NotFoundError) as exc_info:
        await rides.end_ride(db, "seattle", uuid4(), "Ballard")
    assert not isinstance(exc_info.value, RideAlreadyEndedError)


async def test_location_history_strictly_increases(db, rider, vehicle):
    ref = await rides.start_ride(db, "seattle", rider.id, vehicle.id)
    for stop in ("1st Ave", "2nd Ave", "3rd Ave"):
        await rides.update_ride_location(db, "seattle", ref.ride_id, stop)
    await rides.end_ride(db, "seattle", ref.ride_id, "4th Ave")

    history = await vehicles.get_vehicle_location_history(db, "seattle", vehicle.id)

    assert [h.location for h in history] == [
        "Pike Place", "1st Ave", "2nd Ave", "3rd Ave", "4th Ave",
    ]
    stamps = [h.timestamp for h in history]
    assert all(a < b for a, b in zip(stamps, stamps[1:]))


async def test_update_location_after_end_refused(db, rider, vehicle):
    ref = await rides.start_ride(db, "seattle", rider.id, vehicle.id)
    await rides.end_ride(db, "seattle", ref.ride_id, "Ballard")
    with pytest.raises(RideAlreadyEndedError):
        await rides.update_ride_location(db, "seattle", ref.ride_id, "Lake Union")


async def test_cross_city_ride_rejected_by_store(db, rider, vehicle):
    """A raw insert pairing a boston ride with a seattle vehicle never commits."""
    outsider = await users.add_user(db, "boston", "Sam")

    async def insert_cross_city_ride(session):
        session.add(Ride(
            city="boston", id=uuid.uuid4(), vehicle_city="seattle",
            rider_id=outsider.id, vehicle_id=vehicle.id,
            start_address="Pike Place", start_time=utc_now(),
        ))
        await session.flush()

    with pytest.raises(ConstraintViolationError):
        await run_transaction(db.new_session, insert_cross_city_ride)

    assert await rides.get_rides(db, "boston") == []


async def test_concurrent_starts_on_one_vehicle_admit_one(db, rider, vehicle):
    results = await asyncio.gather(
        *[rides.start_ride(db, "seattle", rider.id, vehicle.id) for _ in range(4)],
        return_exceptions=True,
    )

    assert sum(isinstance(r, RideRef) for r in results) == 1
    assert sum(isinstance(r, VehicleUnavailableError) for r in results) == 3
    assert len(await rides.get_rides(db, "seattle")) == 1


async def test_concurrent_ends_of_one_ride_apply_once(db, rider, vehicle):
    ref = await rides.start_ride(db, "seattle", rider.id, vehicle.id)

    results = await asyncio.gather(
        rides.end_ride(db, "seattle", ref.ride_id, "Ballard"),
        rides.end_ride(db, "seattle", ref.ride_id, "Wallingford"),
        return_exceptions=True,
    )

    assert sum(r is None for r in results) == 1
    assert sum(isinstance(r, RideAlreadyEndedError) for r in results) == 1
    history = await vehicles.get_vehicle_location_history(db, "seattle", vehicle.id)
    assert len(history) == 2
