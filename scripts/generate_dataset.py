"""Generate a synthetic drivers/rides/reviews dataset for RideRec AI."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path

import numpy as np
import pandas as pd


@dataclass
class DatasetConfig:
    drivers: int = 40
    riders: int = 25
    rides_per_rider: int = 12
    seed: int = 42
    outdir: Path = Path("data")
    start: datetime = datetime(2024, 1, 1)


def simulate_driver(rng: np.random.Generator, driver_id: int) -> dict:
    total_rides = int(np.clip(rng.gamma(2.0, 60.0), 0, 600))
    rating = round(float(np.clip(rng.normal(4.3, 0.45), 1.0, 5.0)), 2) if total_rides else None
    return {
        "driver_id": driver_id,
        "first_name": f"Driver{driver_id}",
        "last_name": "Synthetic",
        "status": "active" if rng.random() < 0.85 else "inactive",
        "rating_avg": rating,
        "total_rides": total_rides,
        "has_active_vehicle": bool(rng.random() < 0.9),
    }


def simulate_ride(
    rng: np.random.Generator,
    ride_id: int,
    rider_id: int,
    driver: dict,
    start: datetime,
) -> tuple[dict, dict | None]:
    requested_at = start + timedelta(minutes=int(rng.integers(0, 60 * 24 * 180)))
    distance = round(float(np.clip(rng.lognormal(1.5, 0.5), 0.5, 45.0)), 2)
    duration = int(np.clip(distance * rng.uniform(2.0, 4.0), 3, 120))
    fare_estimate = round(2.5 + distance * 1.2 + duration * 0.25, 2)
    status = rng.choice(["completed", "cancelled"], p=[0.9, 0.1])
    completed = status == "completed"
    ride = {
        "ride_id": ride_id,
        "rider_id": rider_id,
        "driver_id": driver["driver_id"],
        "status": status,
        "fare_estimate": fare_estimate,
        "fare_final": round(fare_estimate * rng.uniform(0.9, 1.15), 2) if completed else None,
        "distance_km": distance if completed else None,
        "duration_min": duration if completed else None,
        "requested_at": requested_at.isoformat(),
        "completed_at": (requested_at + timedelta(minutes=duration)).isoformat() if completed else None,
    }
    if not completed or rng.random() < 0.2:
        return ride, None

    # Riders tend to agree with a driver's overall reputation.
    base = driver["rating_avg"] or 4.0
    rating = float(np.clip(round(rng.normal(base, 0.7) * 2) / 2, 1.0, 5.0))
    review = {
        "review_id": ride_id,
        "ride_id": ride_id,
        "rider_id": rider_id,
        "driver_id": driver["driver_id"],
        "rating": rating,
        "created_at": (requested_at + timedelta(minutes=duration + 5)).isoformat(),
    }
    return ride, review


def main(config: DatasetConfig) -> None:
    rng = np.random.default_rng(config.seed)
    drivers = [simulate_driver(rng, idx + 1) for idx in range(config.drivers)]

    rides: list[dict] = []
    reviews: list[dict] = []
    ride_id = 1
    for rider_id in range(1, config.riders + 1):
        favourites = rng.choice(len(drivers), size=min(6, len(drivers)), replace=False)
        for _ in range(config.rides_per_rider):
            driver = drivers[int(rng.choice(favourites))]
            ride, review = simulate_ride(rng, ride_id, rider_id, driver, config.start)
            rides.append(ride)
            if review is not None:
                reviews.append(review)
            ride_id += 1

    config.outdir.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(drivers).to_csv(config.outdir / "drivers.csv", index=False)
    pd.DataFrame(rides).to_csv(config.outdir / "rides.csv", index=False)
    pd.DataFrame(reviews).to_csv(config.outdir / "reviews.csv", index=False)
    print(
        f"Dataset written to {config.outdir} with {len(drivers)} drivers, "
        f"{len(rides)} rides and {len(reviews)} reviews"
    )


if __name__ == "__main__":
    main(DatasetConfig())
