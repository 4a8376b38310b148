"""Feature extraction for the per-rider driver preference model."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from .config import FeatureConfig
from .data_models import DriverCandidate, FeatureVector, RideRecord, RideStatus, ReviewRecord, RiderAverages

logger = logging.getLogger(__name__)


class FeatureExtractor:
    """Turns reviewed rides and live driver candidates into ``FeatureVector`` rows.

    Training rows describe the ride as it happened (its own fare, distance and
    time of day). Prediction rows combine the candidate's current stats with the
    rider's historical averages and the time of the request, so a model trained
    on past rides scores drivers against what the rider usually books.
    """

    def __init__(self, config: FeatureConfig) -> None:
        self.config = config

    def extract_training_example(self, ride: RideRecord, review: ReviewRecord | None) -> FeatureVector | None:
        if review is None:
            logger.debug("No review found for ride %s", ride.ride_id)
            return None

        price = self._ride_price(ride)
        return FeatureVector(
            driver_average_rating=float(ride.driver_rating or 0.0),
            driver_total_rides=float(ride.driver_total_rides),
            average_ride_price=price,
            ride_distance_km=float(ride.distance_km or 0.0),
            ride_duration_min=float(ride.duration_min or 0.0),
            time_of_day_bucket=float(self.time_of_day_bucket(ride.event_time)),
            label=self.encode_label(review.rating),
        )

    def extract_prediction_features(
        self,
        candidate: DriverCandidate,
        rider_averages: RiderAverages,
        now: datetime | None = None,
    ) -> FeatureVector:
        moment = now or datetime.now()
        return FeatureVector(
            driver_average_rating=float(candidate.average_rating or 0.0),
            driver_total_rides=float(candidate.total_rides),
            average_ride_price=rider_averages.avg_price,
            ride_distance_km=rider_averages.avg_distance_km,
            ride_duration_min=float(rider_averages.avg_duration_min),
            time_of_day_bucket=float(self.time_of_day_bucket(moment)),
        )

    def build_training_set(self, rider_id: int, history: Iterable[RideRecord]) -> list[FeatureVector]:
        """Extract one example per completed ride the rider has reviewed."""
        examples: list[FeatureVector] = []
        for ride in history:
            if ride.rider_id != rider_id or ride.status is not RideStatus.COMPLETED:
                continue
            try:
                example = self.extract_training_example(ride, ride.review_by(rider_id))
            except (TypeError, ValueError):
                logger.warning("Error extracting features from ride %s for rider %s", ride.ride_id, rider_id, exc_info=True)
                continue
            if example is not None:
                examples.append(example)
        return examples

    def compute_rider_averages(self, history: Iterable[RideRecord]) -> RiderAverages:
        completed = [ride for ride in history if ride.status is RideStatus.COMPLETED]
        if not completed:
            return RiderAverages(
                avg_price=self.config.default_avg_price,
                avg_distance_km=self.config.default_avg_distance_km,
                avg_duration_min=self.config.default_avg_duration_min,
            )
        prices = np.array([self._ride_price(ride) for ride in completed], dtype=float)
        distances = np.array([ride.distance_km or 0.0 for ride in completed], dtype=float)
        durations = np.array([ride.duration_min or 0.0 for ride in completed], dtype=float)
        return RiderAverages(
            avg_price=float(prices.mean()),
            avg_distance_km=float(distances.mean()),
            # Whole minutes, truncated.
            avg_duration_min=int(durations.mean()),
        )

    def time_of_day_bucket(self, moment: datetime) -> int:
        hour = moment.hour
        if self.config.morning_start_hour <= hour < self.config.afternoon_start_hour:
            return 0
        if self.config.afternoon_start_hour <= hour < self.config.night_start_hour:
            return 1
        return 2

    def to_frame(self, vectors: Sequence[FeatureVector]) -> pd.DataFrame:
        columns = list(self.config.feature_columns)
        return pd.DataFrame([vector.as_row() for vector in vectors], columns=columns, dtype=float)

    @staticmethod
    def encode_label(rating: float) -> float:
        # Three-level target; ratings strictly between 3 and 4 fall to the low level.
        if rating >= 4:
            return 1.0
        if rating == 3:
            return 0.6
        return 0.2

    @staticmethod
    def _ride_price(ride: RideRecord) -> float:
        if ride.fare_final is not None:
            return float(ride.fare_final)
        if ride.fare_estimate is not None:
            return float(ride.fare_estimate)
        return 0.0
