"""Initial schema — users, vehicles, rides, location histories, promo codes.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("id", UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("credit_card", sa.String(50), nullable=True),
        sa.PrimaryKeyConstraint("city", "id"),
    )

    op.create_table(
        "vehicles",
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("id", UUID(as_uuid=True), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("owner_id", UUID(as_uuid=True), nullable=False),
        sa.Column("creation_time", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("status", sa.String(20), nullable=False, server_default="available"),
        sa.Column("current_location", sa.String(500), nullable=False),
        sa.Column("ext", sa.JSON, nullable=False),
        sa.PrimaryKeyConstraint("city", "id"),
        sa.ForeignKeyConstraint(
            ["city", "owner_id"], ["users.city", "users.id"], name="fk_vehicles_owner",
        ),
        sa.CheckConstraint(
            "status IN ('available', 'in_use', 'lost')", name="ck_vehicles_status",
        ),
    )
    op.create_index("ix_vehicles_city_owner", "vehicles", ["city", "owner_id"])

    op.create_table(
        "rides",
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("id", UUID(as_uuid=True), nullable=False),
        sa.Column("vehicle_city", sa.String(100), nullable=False),
        sa.Column("rider_id", UUID(as_uuid=True), nullable=False),
        sa.Column("vehicle_id", UUID(as_uuid=True), nullable=False),
        sa.Column("start_address", sa.String(500), nullable=False),
        sa.Column("end_address", sa.String(500), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revenue", sa.Numeric(10, 2), nullable=True),
        sa.PrimaryKeyConstraint("city", "id"),
        sa.ForeignKeyConstraint(
            ["city", "rider_id"], ["users.city", "users.id"], name="fk_rides_rider",
        ),
        sa.ForeignKeyConstraint(
            ["vehicle_city", "vehicle_id"], ["vehicles.city", "vehicles.id"],
            name="fk_rides_vehicle",
        ),
        sa.CheckConstraint("vehicle_city = city", name="ck_rides_vehicle_city"),
    )
    op.create_index("ix_rides_city_rider", "rides", ["city", "rider_id"])
    op.create_index("ix_rides_vehicle", "rides", ["vehicle_city", "vehicle_id"])

    op.create_table(
        "vehicle_location_histories",
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("vehicle_id", UUID(as_uuid=True), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ride_id", UUID(as_uuid=True), nullable=True),
        sa.Column("location", sa.String(500), nullable=False),
        sa.PrimaryKeyConstraint("city", "vehicle_id", "timestamp"),
        sa.ForeignKeyConstraint(
            ["city", "vehicle_id"], ["vehicles.city", "vehicles.id"],
            name="fk_location_histories_vehicle",
        ),
    )

    op.create_table(
        "promo_codes",
        sa.Column("code", sa.String(100), primary_key=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("creation_time", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("expiration_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rules", sa.JSON, nullable=False),
    )

    op.create_table(
        "user_promo_codes",
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("user_id", UUID(as_uuid=True), nullable=False),
        sa.Column(
            "code", sa.String(100),
            sa.ForeignKey("promo_codes.code", name="fk_user_promo_codes_code"),
            nullable=False,
        ),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("usage_count", sa.Integer, nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("city", "user_id", "code"),
        sa.ForeignKeyConstraint(
            ["city", "user_id"], ["users.city", "users.id"],
            name="fk_user_promo_codes_user",
        ),
    )


def downgrade() -> None:
    op.drop_table("user_promo_codes")
    op.drop_table("promo_codes")
    op.drop_table("vehicle_location_histories")
    op.drop_index("ix_rides_vehicle", table_name="rides")
    op.drop_index("ix_rides_city_rider", table_name="rides")
    op.drop_table("rides")
    op.drop_index("ix_vehicles_city_owner", table_name="vehicles")
    op.drop_table("vehicles")
    op.drop_table("users")
