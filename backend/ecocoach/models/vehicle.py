import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import String, Integer, Boolean, Uuid, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ecocoach.database import Base


class Vehicle(Base):
    __tablename__ = "vehicles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    make: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    model: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    fuel_type: Mapped[str] = mapped_column(String(20), nullable=False, default="gasoline")
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="vehicles")
    trips = relationship("Trip", back_populates="vehicle")
