from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pandas as pd
import pytest

from riderec_ai.data_loader import CsvRideRepository
from riderec_ai.data_models import RideStatus


def write_dataset(directory: Path) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(
        {
            "driver_id": [1, 2, 3, 4],
            "first_name": ["Ana", "Ben", "Cid", "Dee"],
            "last_name": ["A", "B", "C", "D"],
            "status": ["Active", "active", "inactive", "active"],
            "rating_avg": [4.8, None, 4.0, 4.1],
            "total_rides": [120, 0, 30, 60],
            "has_active_vehicle": [True, True, True, False],
        }
    ).to_csv(directory / "drivers.csv", index=False)
    pd.DataFrame(
        {
            "ride_id": [10, 11, 12, 13, 14],
            "rider_id": [1, 1, 1, 1, 2],
            "driver_id": [1, 1, 2, 1, 2],
            "status": ["Completed", "completed", "completed", "cancelled", "ACTIVE"],
            "fare_estimate": [15.0, 20.0, 18.0, 12.0, 30.0],
            "fare_final": [16.0, None, 19.5, None, None],
            "distance_km": [4.0, 6.0, 5.0, None, None],
            "duration_min": [12, 18, 14, None, None],
            "requested_at": [
                "2024-02-01T08:00:00",
                "2024-02-02T13:00:00",
                "2024-02-03T20:00:00",
                "2024-02-04T09:00:00",
                "2024-02-05T09:00:00",
            ],
            "completed_at": ["2024-02-01T08:20:00", "2024-02-02T13:25:00", "2024-02-03T20:15:00", None, None],
        }
    ).to_csv(directory / "rides.csv", index=False)
    pd.DataFrame(
        {
            "review_id": [100, 101],
            "ride_id": [10, 12],
            "rider_id": [1, 1],
            "driver_id": [1, 2],
            "rating": [5.0, 3.5],
            "created_at": ["2024-02-01T09:00:00", "2024-02-03T21:00:00"],
        }
    ).to_csv(directory / "reviews.csv", index=False)
    return directory


def test_csv_repository_builds_history_with_reviews(tmp_path: Path) -> None:
    repository = CsvRideRepository(write_dataset(tmp_path / "data"))

    history = repository.get_ride_history(1)

    assert [ride.ride_id for ride in history] == [10, 11, 12, 13]
    first = history[0]
    assert first.status is RideStatus.COMPLETED
    assert first.fare_final == 16.0
    assert first.review_by(1).rating == 5.0
    assert first.driver_rating == 4.8
    assert first.driver_total_rides == 120
    assert history[1].fare_final is None
    assert history[1].reviews == ()
    assert history[3].status is RideStatus.CANCELLED
    assert history[3].completed_at is None
    assert history[2].driver_rating is None


def test_csv_repository_filters_eligible_drivers(tmp_path: Path) -> None:
    repository = CsvRideRepository(write_dataset(tmp_path / "data"))

    eligible = repository.get_eligible_drivers()

    # 2 is on an active ride, 3 is inactive, 4 has no active vehicle.
    assert [driver.driver_id for driver in eligible] == [1]
    assert eligible[0].first_name == "Ana"


def test_csv_repository_requires_columns(tmp_path: Path) -> None:
    directory = write_dataset(tmp_path / "data")
    pd.DataFrame({"driver_id": [1]}).to_csv(directory / "drivers.csv", index=False)

    with pytest.raises(ValueError, match="drivers.csv missing columns"):
        CsvRideRepository(directory)


def test_csv_repository_requires_files(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        CsvRideRepository(tmp_path)


def test_csv_repository_normalizes_offset_timestamps_to_utc(tmp_path: Path) -> None:
    directory = write_dataset(tmp_path / "data")
    rides = pd.read_csv(directory / "rides.csv")
    rides.loc[rides["ride_id"] == 12, "requested_at"] = "2024-02-03T23:00:00+03:00"
    rides.loc[rides["ride_id"] == 12, "completed_at"] = "2024-02-03T23:15:00+03:00"
    rides.to_csv(directory / "rides.csv", index=False)

    history = CsvRideRepository(directory).get_ride_history(1)

    shifted = next(ride for ride in history if ride.ride_id == 12)
    assert shifted.requested_at == datetime(2024, 2, 3, 20, 0)
    assert shifted.completed_at.tzinfo is None
    assert [ride.ride_id for ride in sorted(history, key=lambda ride: ride.event_time)] == [10, 11, 12, 13]
