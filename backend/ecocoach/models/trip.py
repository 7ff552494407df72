import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import String, Float, Integer, Uuid, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ecocoach.database import Base, JSONType


class Trip(Base):
    __tablename__ = "trips"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    vehicle_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("vehicles.id", ondelete="SET NULL"),
        nullable=True,
    )
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration_seconds: Mapped[float] = mapped_column(Float, nullable=False)
    distance_km: Mapped[float] = mapped_column(Float, nullable=False)
    avg_speed_kmh: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    max_speed_kmh: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Fuel and emissions
    fuel_consumed_l: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    fuel_efficiency_l_100km: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    co2_emissions_kg: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    eco_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Trip context
    route_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    waypoints: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)
    weather_temperature_c: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    weather_conditions: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    traffic_level: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Driving behavior
    harsh_accelerations: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    harsh_braking: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    harsh_cornering: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    speeding_events: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rapid_lane_changes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    idle_time_seconds: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    source_filename: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    sample_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="trips")
    vehicle = relationship("Vehicle", back_populates="trips")
    telemetry = relationship("Telemetry", back_populates="trip", cascade="all, delete-orphan")
    insights = relationship(
        "Insight",
        back_populates="trip",
        cascade="all, delete-orphan",
        order_by="Insight.created_at",
    )
