"""Promo Code Schemas — code creation, code record, and redemption record."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PromoCodeCreate(BaseModel):
    code: str = Field(min_length=1, max_length=100)
    description: str | None = Field(None, max_length=2000)
    expiration_time: datetime | None = None
    rules: dict[str, Any] = Field(default_factory=dict)


class PromoCodeApply(BaseModel):
    code: str = Field(min_length=1, max_length=100)


class PromoCodeRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    description: str | None = None
    creation_time: datetime
    expiration_time: datetime | None = None
    rules: dict[str, Any]


class AppliedPromo(BaseModel):
    """A successful redemption of a promo code by a user."""
    model_config = ConfigDict(from_attributes=True)

    city: str
    user_id: UUID
    code: str
    timestamp: datetime
    usage_count: int
