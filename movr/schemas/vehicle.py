"""Vehicle Schemas — vehicle creation body, vehicle record, location history record."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from movr.core.domain_types import VehicleStatus, VehicleType


class VehicleCreate(BaseModel):
    """Vehicle creation — ext is an opaque document, passed through untouched."""
    owner_id: UUID
    type: VehicleType
    current_location: str = Field(min_length=1, max_length=500)
    ext: dict[str, Any] = Field(default_factory=dict)


class VehicleRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    city: str
    id: UUID
    type: str
    owner_id: UUID
    creation_time: datetime
    status: VehicleStatus
    current_location: str
    ext: dict[str, Any]


class LocationRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    city: str
    vehicle_id: UUID
    timestamp: datetime
    ride_id: UUID | None = None
    location: str
