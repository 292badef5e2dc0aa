"""VehicleLocationHistory ORM — append-only log of where each vehicle has been.

Invariants:
    - Primary key is (city, vehicle_id, timestamp)
    - timestamp strictly increases per vehicle (enforced by the writer, see
      services/vehicles.py record_location)
    - Rows are never updated; they are deleted only together with their vehicle
"""

import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, ForeignKeyConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from movr.db.base import Base


class VehicleLocationHistory(Base):
    """One observed location of a vehicle, optionally during a ride."""
    __tablename__ = "vehicle_location_histories"
    __table_args__ = (
        ForeignKeyConstraint(
            ["city", "vehicle_id"], ["vehicles.city", "vehicles.id"],
            name="fk_location_histories_vehicle",
        ),
    )

    city: Mapped[str] = mapped_column(String(100), primary_key=True)
    vehicle_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True,
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), primary_key=True,
    )
    ride_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True,
    )
    location: Mapped[str] = mapped_column(String(500), nullable=False)
