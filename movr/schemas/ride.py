"""Ride Schemas — start/end bodies, ride reference and ride record."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class RideStart(BaseModel):
    rider_id: UUID
    vehicle_id: UUID


class RideEnd(BaseModel):
    end_location: str = Field(min_length=1, max_length=500)
    revenue: Decimal | None = Field(None, ge=0)


class RideRef(BaseModel):
    """Identity of a newly started ride."""
    city: str
    ride_id: UUID


class RideRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    city: str
    id: UUID
    vehicle_city: str
    vehicle_id: UUID
    rider_id: UUID
    start_address: str
    end_address: str | None = None
    start_time: datetime
    end_time: datetime | None = None
    revenue: Decimal | None = None


class RideLocationUpdate(BaseModel):
    location: str = Field(min_length=1, max_length=500)
