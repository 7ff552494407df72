"""Initial schema: users, vehicles, trips, telemetry and insights

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONType = sa.JSON().with_variant(JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("preferences", JSONType, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "vehicles",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("user_id", sa.Uuid, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("make", sa.String(100), nullable=True),
        sa.Column("model", sa.String(100), nullable=True),
        sa.Column("year", sa.Integer, nullable=True),
        sa.Column("fuel_type", sa.String(20), nullable=False, server_default="gasoline"),
        sa.Column("is_primary", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_vehicles_user_id", "vehicles", ["user_id"])

    op.create_table(
        "trips",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("user_id", sa.Uuid, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("vehicle_id", sa.Uuid, sa.ForeignKey("vehicles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_seconds", sa.Float, nullable=False),
        sa.Column("distance_km", sa.Float, nullable=False),
        sa.Column("avg_speed_kmh", sa.Float, nullable=True),
        sa.Column("max_speed_kmh", sa.Float, nullable=True),
        sa.Column("fuel_consumed_l", sa.Float, nullable=True),
        sa.Column("fuel_efficiency_l_100km", sa.Float, nullable=True),
        sa.Column("co2_emissions_kg", sa.Float, nullable=True),
        sa.Column("eco_score", sa.Integer, nullable=True),
        sa.Column("route_type", sa.String(20), nullable=True),
        sa.Column("waypoints", JSONType, nullable=True),
        sa.Column("weather_temperature_c", sa.Float, nullable=True),
        sa.Column("weather_conditions", sa.String(50), nullable=True),
        sa.Column("traffic_level", sa.String(20), nullable=True),
        sa.Column("harsh_accelerations", sa.Integer, nullable=False, server_default="0"),
        sa.Column("harsh_braking", sa.Integer, nullable=False, server_default="0"),
        sa.Column("harsh_cornering", sa.Integer, nullable=False, server_default="0"),
        sa.Column("speeding_events", sa.Integer, nullable=False, server_default="0"),
        sa.Column("rapid_lane_changes", sa.Integer, nullable=False, server_default="0"),
        sa.Column("idle_time_seconds", sa.Float, nullable=False, server_default="0"),
        sa.Column("source_filename", sa.String(255), nullable=True),
        sa.Column("sample_count", sa.Integer, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_trips_user_id_start_time", "trips", ["user_id", "start_time"])

    op.create_table(
        "telemetry",
        sa.Column("time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("trip_id", sa.Uuid, sa.ForeignKey("trips.id", ondelete="CASCADE"), nullable=False),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("speed_kmh", sa.Float, nullable=True),
        sa.Column("engine_rpm", sa.Float, nullable=True),
        sa.Column("throttle_position_pct", sa.Float, nullable=True),
        sa.Column("brake_pressure_bar", sa.Float, nullable=True),
        sa.Column("steering_angle_deg", sa.Float, nullable=True),
        sa.PrimaryKeyConstraint("time", "trip_id"),
    )
    op.create_index("ix_telemetry_trip_id", "telemetry", ["trip_id"])

    op.create_table(
        "insights",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("trip_id", sa.Uuid, sa.ForeignKey("trips.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("impact", sa.String(20), nullable=False),
        sa.Column("fuel_savings", sa.Float, nullable=False, server_default="0"),
        sa.Column("co2_savings", sa.Float, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_insights_trip_id", "insights", ["trip_id"])

    # Convert telemetry to TimescaleDB hypertable
    if op.get_bind().dialect.name == "postgresql":
        op.execute("SELECT create_hypertable('telemetry', 'time', if_not_exists => TRUE)")


def downgrade() -> None:
    op.drop_table("insights")
    op.drop_table("telemetry")
    op.drop_table("trips")
    op.drop_table("vehicles")
    op.drop_table("users")
