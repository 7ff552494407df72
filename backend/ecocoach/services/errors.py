"""Exceptions raised by the coaching pipeline."""


class CoachingError(Exception):
    """Base class for coaching pipeline errors."""


class InvalidTripData(CoachingError):
    """Telemetry for a trip is empty or malformed; the trip cannot be finalized."""


class MissingFeatureInput(CoachingError):
    """A TripSummary field required for feature extraction is absent."""

    def __init__(self, field: str):
        super().__init__(f"Trip summary is missing required field '{field}'")
        self.field = field


class InvalidFeatureVector(CoachingError):
    """A feature vector handed to a scorer has the wrong shape or non-finite values."""


class UndefinedTrend(CoachingError):
    """Percent change against a zero baseline."""


class TripNotFound(CoachingError):
    """The requested trip does not exist for this user."""


class UserNotFound(CoachingError):
    """The calling user does not exist."""
