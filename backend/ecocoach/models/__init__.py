from ecocoach.models.user import User
from ecocoach.models.vehicle import Vehicle
from ecocoach.models.trip import Trip
from ecocoach.models.telemetry import Telemetry
from ecocoach.models.insight import Insight

__all__ = ["User", "Vehicle", "Trip", "Telemetry", "Insight"]
