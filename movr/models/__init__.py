"""ORM Models — SQLAlchemy declarative models for all MovR entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Every primary key leads with city (partition key)
    - Every foreign key carries city, so references never cross partitions

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all
"""

from movr.models.user import User  # noqa: F401
from movr.models.vehicle import Vehicle  # noqa: F401
from movr.models.ride import Ride  # noqa: F401
from movr.models.vehicle_location_history import VehicleLocationHistory  # noqa: F401
from movr.models.promo_code import PromoCode, UserPromoCode  # noqa: F401
