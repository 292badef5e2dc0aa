"""User Schemas — user creation body and user record."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserCreate(BaseModel):
    """User creation — name required, address/credit card optional."""
    name: str = Field(min_length=1, max_length=200)
    address: str | None = Field(None, max_length=500)
    credit_card: str | None = Field(None, max_length=50)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class UserRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    city: str
    id: UUID
    name: str
    address: str | None = None
    credit_card: str | None = None
