"""User ORM — riders and vehicle owners, partitioned by city.

Invariants:
    - Primary key is (city, id); city first because it is the locality key
    - Vehicles and rides reference users only within the same city

Design Decisions:
    - credit_card kept as opaque text: payment processing is external
"""

import uuid

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from movr.db.base import Base


class User(Base):
    """MovR user — owns vehicles, takes rides, redeems promo codes."""
    __tablename__ = "users"

    city: Mapped[str] = mapped_column(String(100), primary_key=True)
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    credit_card: Mapped[str | None] = mapped_column(String(50), nullable=True)
