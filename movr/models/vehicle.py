"""Vehicle ORM — shared bikes, scooters and skateboards.

Invariants:
    - Primary key is (city, id)
    - (city, owner_id) references users(city, id): a vehicle lives in its owner's city
    - status is one of: available, in_use, lost
    - ext is an opaque JSON document, never inspected by the core
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String, DateTime, JSON, ForeignKeyConstraint, CheckConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from movr.db.base import Base
from movr.core.domain_types import VehicleStatus


class Vehicle(Base):
    """Vehicle entity — one row per physical vehicle."""
    __tablename__ = "vehicles"
    __table_args__ = (
        ForeignKeyConstraint(
            ["city", "owner_id"], ["users.city", "users.id"],
            name="fk_vehicles_owner",
        ),
        CheckConstraint(
            "status IN ('available', 'in_use', 'lost')",
            name="ck_vehicles_status",
        ),
        Index("ix_vehicles_city_owner", "city", "owner_id"),
    )

    city: Mapped[str] = mapped_column(String(100), primary_key=True)
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False,
    )
    creation_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=VehicleStatus.AVAILABLE.value,
    )
    current_location: Mapped[str] = mapped_column(String(500), nullable=False)
    ext: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
