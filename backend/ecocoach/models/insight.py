import uuid
from datetime import datetime

from sqlalchemy import String, Text, Float, Uuid, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ecocoach.database import Base


class Insight(Base):
    __tablename__ = "insights"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    trip_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("trips.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    impact: Mapped[str] = mapped_column(String(20), nullable=False)  # 'positive', 'negative'
    fuel_savings: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    co2_savings: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    trip = relationship("Trip", back_populates="insights")
