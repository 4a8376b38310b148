from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
import sys

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

import pytest

from riderec_ai.data_models import DriverCandidate, RideRecord, RideStatus, ReviewRecord

RIDER_ID = 1
BASE_TIME = datetime(2024, 3, 1, 9, 0)


def build_ride(
    ride_id: int,
    driver_id: int,
    rating: float | None = None,
    status: RideStatus = RideStatus.COMPLETED,
    rider_id: int = RIDER_ID,
    days: int = 0,
    fare_estimate: float | None = 20.0,
    fare_final: float | None = None,
    distance_km: float | None = 6.0,
    duration_min: float | None = 18.0,
    driver_rating: float | None = 4.5,
    driver_total_rides: int = 120,
) -> RideRecord:
    requested_at = BASE_TIME + timedelta(days=days)
    completed_at = requested_at + timedelta(minutes=30) if status is RideStatus.COMPLETED else None
    reviews = ()
    if rating is not None:
        reviews = (
            ReviewRecord(
                review_id=ride_id,
                ride_id=ride_id,
                rider_id=rider_id,
                driver_id=driver_id,
                rating=rating,
                created_at=requested_at + timedelta(hours=1),
            ),
        )
    return RideRecord(
        ride_id=ride_id,
        rider_id=rider_id,
        driver_id=driver_id,
        status=status,
        fare_estimate=fare_estimate,
        fare_final=fare_final,
        distance_km=distance_km,
        duration_min=duration_min,
        requested_at=requested_at,
        completed_at=completed_at,
        reviews=reviews,
        driver_rating=driver_rating,
        driver_total_rides=driver_total_rides,
    )


def build_driver(driver_id: int, rating: float | None = 4.5, total_rides: int = 50, **kwargs) -> DriverCandidate:
    return DriverCandidate(driver_id=driver_id, average_rating=rating, total_rides=total_rides, **kwargs)


@pytest.fixture
def make_ride():
    return build_ride


@pytest.fixture
def make_driver():
    return build_driver


@pytest.fixture
def trained_history() -> list[RideRecord]:
    """Enough reviewed rides to train a model; driver 3 ends on a 3.0 rating."""
    return [
        build_ride(1, driver_id=1, rating=5.0, days=0, fare_final=18.0, driver_rating=4.9, driver_total_rides=300),
        build_ride(2, driver_id=2, rating=4.0, days=1, fare_final=25.0, driver_rating=4.4, driver_total_rides=80),
        build_ride(3, driver_id=3, rating=3.0, days=2, fare_final=32.0, driver_rating=3.8, driver_total_rides=15),
        build_ride(4, driver_id=1, rating=5.0, days=3, fare_final=20.0, driver_rating=4.9, driver_total_rides=310),
        build_ride(5, driver_id=4, rating=2.0, days=4, fare_final=40.0, driver_rating=3.1, driver_total_rides=5),
    ]
