"""Dataclasses used across the RideRec AI driver recommender."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum

FEATURE_COLUMNS: tuple[str, ...] = (
    "driver_average_rating",
    "driver_total_rides",
    "average_ride_price",
    "ride_distance_km",
    "ride_duration_min",
    "time_of_day_bucket",
)


class RideStatus(str, Enum):
    REQUESTED = "requested"
    ACCEPTED = "accepted"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value: str | RideStatus) -> RideStatus:
        """Accept any casing, since the ride workflow stores statuses as free text."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


BUSY_STATUSES = frozenset({RideStatus.REQUESTED, RideStatus.ACCEPTED, RideStatus.ACTIVE})


def as_naive_utc(value: datetime | None) -> datetime | None:
    """Timestamps are compared as naive UTC; aware values are converted first."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class ReviewRecord:
    """A rider's rating of a driver for one ride."""

    review_id: int
    ride_id: int
    rider_id: int
    driver_id: int
    rating: float
    created_at: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "created_at", as_naive_utc(self.created_at))


@dataclass(frozen=True)
class RideRecord:
    """Read-only snapshot of a ride owned by the ride subsystem.

    ``driver_rating`` and ``driver_total_rides`` carry the driver's stats as
    loaded alongside the ride; training features are built from them.
    """

    ride_id: int
    rider_id: int
    driver_id: int
    status: RideStatus
    fare_estimate: float | None
    requested_at: datetime
    fare_final: float | None = None
    distance_km: float | None = None
    duration_min: float | None = None
    completed_at: datetime | None = None
    reviews: tuple[ReviewRecord, ...] = ()
    driver_rating: float | None = None
    driver_total_rides: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", RideStatus.parse(self.status))
        object.__setattr__(self, "requested_at", as_naive_utc(self.requested_at))
        object.__setattr__(self, "completed_at", as_naive_utc(self.completed_at))

    @property
    def event_time(self) -> datetime:
        return self.completed_at or self.requested_at

    def review_by(self, rider_id: int) -> ReviewRecord | None:
        return next((review for review in self.reviews if review.rider_id == rider_id), None)


@dataclass(frozen=True)
class DriverCandidate:
    """A driver available for recommendation at the time of the request."""

    driver_id: int
    average_rating: float | None
    total_rides: int
    status: str = "active"
    has_active_vehicle: bool = True
    first_name: str = ""
    last_name: str = ""


@dataclass(frozen=True)
class FeatureVector:
    """Fixed-schema numeric representation of a ride or a driver candidate."""

    driver_average_rating: float
    driver_total_rides: float
    average_ride_price: float
    ride_distance_km: float
    ride_duration_min: float
    time_of_day_bucket: float
    label: float | None = None

    def as_row(self) -> dict[str, float]:
        return {column: float(getattr(self, column)) for column in FEATURE_COLUMNS}


@dataclass(frozen=True)
class RiderAverages:
    """A rider's historical ride characteristics, used for prediction features."""

    avg_price: float
    avg_distance_km: float
    avg_duration_min: int


@dataclass(frozen=True)
class DriverSummary:
    """A recommended driver together with the score that ranked it."""

    driver_id: int
    average_rating: float | None
    total_rides: int
    score: float
    history_bonus: float
    strategy: str
    ml_score: float | None = None
    first_name: str = ""
    last_name: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class TrainingReport:
    """Outcome of one training run for a rider."""

    rider_id: int
    sample_count: int
    trained: bool
    reason: str
