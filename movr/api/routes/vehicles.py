"""Vehicle Routes — register, list, read, retire vehicles and read their location history."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from movr.infrastructure.database import DatabaseSessionManager, get_db_manager
from movr.schemas.vehicle import LocationRecord, VehicleCreate, VehicleRecord
from movr.services import vehicles

router = APIRouter(prefix="/api/v1/cities/{city}/vehicles", tags=["vehicles"])


@router.post("", response_model=VehicleRecord, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    city: str, body: VehicleCreate,
    db: DatabaseSessionManager = Depends(get_db_manager),
):
    return await vehicles.add_vehicle(
        db, city, body.owner_id, body.type, body.current_location, ext=body.ext,
    )


@router.get("", response_model=list[VehicleRecord])
async def list_vehicles(
    city: str,
    limit: int | None = Query(None, ge=1, le=1000),
    db: DatabaseSessionManager = Depends(get_db_manager),
):
    return await vehicles.get_vehicles(db, city, limit)


@router.get("/{vehicle_id}", response_model=VehicleRecord)
async def get_vehicle(
    city: str, vehicle_id: UUID,
    db: DatabaseSessionManager = Depends(get_db_manager),
):
    return await vehicles.get_vehicle(db, city, vehicle_id)


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle(
    city: str, vehicle_id: UUID,
    db: DatabaseSessionManager = Depends(get_db_manager),
):
    await vehicles.remove_vehicle(db, city, vehicle_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{vehicle_id}/lost", response_model=VehicleRecord)
async def report_lost(
    city: str, vehicle_id: UUID,
    db: DatabaseSessionManager = Depends(get_db_manager),
):
    return await vehicles.mark_vehicle_lost(db, city, vehicle_id)


@router.get("/{vehicle_id}/locations", response_model=list[LocationRecord])
async def location_history(
    city: str, vehicle_id: UUID,
    limit: int | None = Query(None, ge=1, le=1000),
    db: DatabaseSessionManager = Depends(get_db_manager),
):
    return await vehicles.get_vehicle_location_history(db, city, vehicle_id, limit)
