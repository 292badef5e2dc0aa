"""Vehicle Operations — verifies co-partitioning, listing, retirement and history.

Invariants:
    - A vehicle can only be added in its owner's city
    - get_vehicles returns a finite, restartable page in (city, id) order
    - Vehicles in use are neither removable nor reportable as lost
"""

from uuid import uuid4

import pytest

from movr.core.domain_types import VehicleStatus, VehicleType
from movr.core.errors import (
    ConstraintViolationError, InvalidInputError, NotFoundError,
    VehicleUnavailableError,
)
from movr.services import rides, users, vehicles


async def test_add_vehicle_keeps_ext_document(db, rider, vehicle):
    assert vehicle.city == "seattle"
    assert vehicle.owner_id == rider.id
    assert vehicle.type == VehicleType.SCOOTER
    assert vehicle.status == VehicleStatus.AVAILABLE
    assert vehicle.ext == {"color": "red", "brand": "Lime"}


async def test_add_vehicle_rejects_owner_from_other_city(db, rider):
    with pytest.raises(ConstraintViolationError) as exc_info:
        await vehicles.add_vehicle(db, "new york", rider.id, "bike", "Times Square")
    assert exc_info.value.constraint == "fk_vehicles_owner"
    assert await vehicles.get_vehicles(db, "new york") == []


async def test_add_vehicle_rejects_unknown_type(db, rider):
    with pytest.raises(InvalidInputError) as exc_info:
        await vehicles.add_vehicle(db, "seattle", rider.id, "hoverboard", "Pier 55")
    assert exc_info.value.field == "vehicle_type"
    assert exc_info.value.http_status == 400
    assert await vehicles.get_vehicles(db, "seattle") == []


async def test_get_vehicles_orders_by_key_and_limits(db, rider):
    added = [
        await vehicles.add_vehicle(db, "seattle", rider.id, "bike", f"Dock {i}")
        for i in range(3)
    ]
    owner_ny = await users.add_user(db, "new york", "Lin")
    await vehicles.add_vehicle(db, "new york", owner_ny.id, "bike", "SoHo")

    page = await vehicles.get_vehicles(db, "seattle", limit=2)

    assert [v.id for v in page] == sorted(v.id for v in added)[:2]
    assert await vehicles.get_vehicles(db, "seattle", limit=2) == page
    assert len(await vehicles.get_vehicles(db, "seattle")) == 3


async def test_get_vehicles_empty_city(db):
    assert await vehicles.get_vehicles(db, "atlantis", limit=5) == []


async def test_remove_vehicle_deletes_row(db, vehicle):
    await vehicles.remove_vehicle(db, "seattle", vehicle.id)
    with pytest.raises(NotFoundError):
        await vehicles.get_vehicle(db, "seattle", vehicle.id)


async def test_remove_vehicle_in_use_refused(db, rider, vehicle):
    await rides.start_ride(db, "seattle", rider.id, vehicle.id)
    with pytest.raises(VehicleUnavailableError):
        await vehicles.remove_vehicle(db, "seattle", vehicle.id)


async def test_remove_vehicle_with_ride_history_refused(db, rider, vehicle):
    ref = await rides.start_ride(db, "seattle", rider.id, vehicle.id)
    await rides.end_ride(db, "seattle", ref.ride_id, "Fremont")
    with pytest.raises(ConstraintViolationError):
        await vehicles.remove_vehicle(db, "seattle", vehicle.id)


async def test_mark_vehicle_lost_blocks_rides(db, rider, vehicle):
    lost = await vehicles.mark_vehicle_lost(db, "seattle", vehicle.id)
    assert lost.status == VehicleStatus.LOST

    with pytest.raises(VehicleUnavailableError):
        await rides.start_ride(db, "seattle", rider.id, vehicle.id)


async def test_location_history_unknown_vehicle(db):
    with pytest.raises(NotFoundError):
        await vehicles.get_vehicle_location_history(db, "seattle", uuid4())
