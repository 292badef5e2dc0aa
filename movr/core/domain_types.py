"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId, VehicleId, RideId wrap UUIDs — never use bare UUID in operation signatures
    - City is the partition key and leads every primary key
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import Any, NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

City = NewType("City", str)
UserId = NewType("UserId", UUID)
VehicleId = NewType("VehicleId", UUID)
RideId = NewType("RideId", UUID)
PromoCodeName = NewType("PromoCodeName", str)


# ─── Value Types ─────────────────────────────────────────────────

# Opaque schemaless document stored on Vehicle.ext
ExtensionDocument = dict[str, Any]


# ─── Enums ───────────────────────────────────────────────────────

class VehicleStatus(str, Enum):
    """Vehicle availability — maps to DB `status` column."""
    AVAILABLE = "available"
    IN_USE = "in_use"
    LOST = "lost"


class VehicleType(str, Enum):
    """Vehicle kinds offered by MovR."""
    BIKE = "bike"
    SCOOTER = "scooter"
    SKATEBOARD = "skateboard"
