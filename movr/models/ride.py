"""Ride ORM — a single trip of one rider on one vehicle.

Invariants:
    - Primary key is (city, id)
    - vehicle_city must equal city (CHECK): rides never cross partitions
    - (city, rider_id) references users; (vehicle_city, vehicle_id) references vehicles
    - end_address / end_time are NULL while the ride is active
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    String, DateTime, Numeric, ForeignKeyConstraint, CheckConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from movr.db.base import Base


class Ride(Base):
    """Ride entity — created by start_ride, completed by end_ride."""
    __tablename__ = "rides"
    __table_args__ = (
        ForeignKeyConstraint(
            ["city", "rider_id"], ["users.city", "users.id"],
            name="fk_rides_rider",
        ),
        ForeignKeyConstraint(
            ["vehicle_city", "vehicle_id"], ["vehicles.city", "vehicles.id"],
            name="fk_rides_vehicle",
        ),
        CheckConstraint("vehicle_city = city", name="ck_rides_vehicle_city"),
        Index("ix_rides_city_rider", "city", "rider_id"),
        Index("ix_rides_vehicle", "vehicle_city", "vehicle_id"),
    )

    city: Mapped[str] = mapped_column(String(100), primary_key=True)
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    vehicle_city: Mapped[str] = mapped_column(String(100), nullable=False)
    rider_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False,
    )
    vehicle_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False,
    )
    start_address: Mapped[str] = mapped_column(String(500), nullable=False)
    end_address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    end_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    revenue: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 2), nullable=True,
    )

    @property
    def is_active(self) -> bool:
        return self.end_time is None
