"""PromoCode / UserPromoCode ORM — promotional codes and their redemptions.

Invariants:
    - promo_codes is global (not partitioned): code is the primary key
    - user_promo_codes primary key is (city, user_id, code): one redemption per user/code
    - (city, user_id) references users(city, id)

Design Decisions:
    - Uniqueness enforced by the primary key, not by a read-then-write check alone:
      concurrent redemptions are decided by the store
    - rules stored as JSON: discount semantics are interpreted by billing, not here
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, DateTime, JSON, ForeignKey, ForeignKeyConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from movr.db.base import Base


class PromoCode(Base):
    """Promotional code definition."""
    __tablename__ = "promo_codes"

    code: Mapped[str] = mapped_column(String(100), primary_key=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    creation_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    expiration_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    rules: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)


class UserPromoCode(Base):
    """Redemption of a promo code by a user."""
    __tablename__ = "user_promo_codes"
    __table_args__ = (
        ForeignKeyConstraint(
            ["city", "user_id"], ["users.city", "users.id"],
            name="fk_user_promo_codes_user",
        ),
    )

    city: Mapped[str] = mapped_column(String(100), primary_key=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True,
    )
    code: Mapped[str] = mapped_column(
        String(100), ForeignKey("promo_codes.code", name="fk_user_promo_codes_code"),
        primary_key=True,
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    usage_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
