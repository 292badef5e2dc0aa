"""Ride Routes — start, end, track and list rides within a city."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from movr.infrastructure.database import DatabaseSessionManager, get_db_manager
from movr.schemas.ride import (
    RideEnd, RideLocationUpdate, RideRecord, RideRef, RideStart,
)
from movr.schemas.vehicle import LocationRecord
from movr.services import rides

router = APIRouter(prefix="/api/v1/cities/{city}/rides", tags=["rides"])


@router.post("", response_model=RideRef, status_code=status.HTTP_201_CREATED)
async def start_ride(
    city: str, body: RideStart,
    db: DatabaseSessionManager = Depends(get_db_manager),
):
    return await rides.start_ride(db, city, body.rider_id, body.vehicle_id)


@router.post("/{ride_id}/end", status_code=status.HTTP_204_NO_CONTENT)
async def end_ride(
    city: str, ride_id: UUID, body: RideEnd,
    db: DatabaseSessionManager = Depends(get_db_manager),
):
    await rides.end_ride(db, city, ride_id, body.end_location, body.revenue)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{ride_id}/locations", response_model=LocationRecord)
async def update_location(
    city: str, ride_id: UUID, body: RideLocationUpdate,
    db: DatabaseSessionManager = Depends(get_db_manager),
):
    return await rides.update_ride_location(db, city, ride_id, body.location)


@router.get("", response_model=list[RideRecord])
async def list_rides(
    city: str,
    rider_id: UUID | None = None,
    active: bool = False,
    limit: int | None = Query(None, ge=1, le=1000),
    db: DatabaseSessionManager = Depends(get_db_manager),
):
    if active:
        return await rides.get_active_rides(db, city, limit, rider_id=rider_id)
    return await rides.get_rides(db, city, rider_id=rider_id, limit=limit)
