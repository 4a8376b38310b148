"""Ride history and driver candidate sources for the recommender."""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Iterable, Protocol, Sequence

import pandas as pd

from .data_models import BUSY_STATUSES, DriverCandidate, RideRecord, RideStatus, ReviewRecord

logger = logging.getLogger(__name__)

DRIVER_COLUMNS = ["driver_id", "status", "rating_avg", "total_rides", "has_active_vehicle"]
RIDE_COLUMNS = ["ride_id", "rider_id", "driver_id", "status", "fare_estimate", "requested_at"]
REVIEW_COLUMNS = ["review_id", "ride_id", "rider_id", "driver_id", "rating", "created_at"]


class RideHistoryProvider(Protocol):
    def get_ride_history(self, rider_id: int) -> list[RideRecord]:
        ...


class CandidateSource(Protocol):
    def get_eligible_drivers(self) -> list[DriverCandidate]:
        ...


def select_eligible_drivers(drivers: Iterable[DriverCandidate], rides: Iterable[RideRecord]) -> list[DriverCandidate]:
    """Active drivers with an active vehicle who are not on a requested, accepted or active ride."""
    busy = {ride.driver_id for ride in rides if ride.status in BUSY_STATUSES}
    return [
        driver
        for driver in drivers
        if driver.status.strip().lower() == "active" and driver.has_active_vehicle and driver.driver_id not in busy
    ]


class InMemoryRideRepository:
    """Serves both collaborator roles from lists held in memory."""

    def __init__(self, drivers: Sequence[DriverCandidate] = (), rides: Sequence[RideRecord] = ()) -> None:
        self.drivers = list(drivers)
        self.rides = list(rides)

    def get_ride_history(self, rider_id: int) -> list[RideRecord]:
        return [ride for ride in self.rides if ride.rider_id == rider_id]

    def get_eligible_drivers(self) -> list[DriverCandidate]:
        return select_eligible_drivers(self.drivers, self.rides)


class CsvRideRepository(InMemoryRideRepository):
    """Loads ``drivers.csv``, ``rides.csv`` and ``reviews.csv`` from a directory."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir)
        drivers_df = self._read_csv("drivers.csv", DRIVER_COLUMNS)
        rides_df = self._read_csv("rides.csv", RIDE_COLUMNS)
        reviews_df = self._read_csv("reviews.csv", REVIEW_COLUMNS)

        drivers = [self._to_candidate(row) for row in drivers_df.itertuples(index=False)]
        reviews_by_ride: dict[int, list[ReviewRecord]] = defaultdict(list)
        for row in reviews_df.itertuples(index=False):
            review = self._to_review(row)
            reviews_by_ride[review.ride_id].append(review)
        by_driver = {driver.driver_id: driver for driver in drivers}
        rides = [self._to_ride(row, reviews_by_ride, by_driver) for row in rides_df.itertuples(index=False)]

        super().__init__(drivers, rides)
        logger.info(
            "Loaded %d drivers, %d rides and %d reviews from %s",
            len(drivers),
            len(rides),
            len(reviews_df),
            self.data_dir,
        )

    def _read_csv(self, name: str, required: list[str]) -> pd.DataFrame:
        path = self.data_dir / name
        if not path.exists():
            raise FileNotFoundError(f"Expected {name} under {self.data_dir.resolve()}")
        df = pd.read_csv(path)
        missing = [column for column in required if column not in df.columns]
        if missing:
            raise ValueError(f"{name} missing columns: {missing}")
        return df

    @staticmethod
    def _to_candidate(row) -> DriverCandidate:
        return DriverCandidate(
            driver_id=int(row.driver_id),
            average_rating=_optional_float(row.rating_avg),
            total_rides=int(row.total_rides),
            status=str(row.status),
            has_active_vehicle=_as_bool(row.has_active_vehicle),
            first_name=_optional_str(getattr(row, "first_name", "")),
            last_name=_optional_str(getattr(row, "last_name", "")),
        )

    @staticmethod
    def _to_review(row) -> ReviewRecord:
        return ReviewRecord(
            review_id=int(row.review_id),
            ride_id=int(row.ride_id),
            rider_id=int(row.rider_id),
            driver_id=int(row.driver_id),
            rating=float(row.rating),
            created_at=_parse_datetime(row.created_at),
        )

    @staticmethod
    def _to_ride(row, reviews_by_ride: dict[int, list[ReviewRecord]], drivers: dict[int, DriverCandidate]) -> RideRecord:
        ride_id = int(row.ride_id)
        driver = drivers.get(int(row.driver_id))
        completed_at = getattr(row, "completed_at", None)
        return RideRecord(
            ride_id=ride_id,
            rider_id=int(row.rider_id),
            driver_id=int(row.driver_id),
            status=RideStatus.parse(row.status),
            fare_estimate=_optional_float(row.fare_estimate),
            fare_final=_optional_float(getattr(row, "fare_final", None)),
            distance_km=_optional_float(getattr(row, "distance_km", None)),
            duration_min=_optional_float(getattr(row, "duration_min", None)),
            requested_at=_parse_datetime(row.requested_at),
            completed_at=None if _is_missing(completed_at) else _parse_datetime(completed_at),
            reviews=tuple(reviews_by_ride.get(ride_id, ())),
            driver_rating=driver.average_rating if driver else None,
            driver_total_rides=driver.total_rides if driver else 0,
        )


def _is_missing(value) -> bool:
    return value is None or (not isinstance(value, str) and pd.isna(value))


def _optional_float(value) -> float | None:
    return None if _is_missing(value) else float(value)


def _optional_str(value) -> str:
    return "" if _is_missing(value) else str(value)


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y"}
    return bool(value) and not _is_missing(value)


def _parse_datetime(value) -> datetime:
    stamp = pd.to_datetime(value)
    if pd.isna(stamp):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if stamp.tzinfo is not None:
        stamp = stamp.tz_convert(None)
    return stamp.to_pydatetime()
