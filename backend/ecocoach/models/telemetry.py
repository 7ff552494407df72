import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Float, Uuid, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ecocoach.database import Base


class Telemetry(Base):
    __tablename__ = "telemetry"

    time: Mapped[datetime] = mapped_column(DateTime(timezone=True), primary_key=True)
    trip_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("trips.id", ondelete="CASCADE"),
        primary_key=True,
    )
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    speed_kmh: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    engine_rpm: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    throttle_position_pct: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    brake_pressure_bar: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    steering_angle_deg: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    trip = relationship("Trip", back_populates="telemetry")
