"""Per-driver adjustments derived from a rider's own ride history."""
from __future__ import annotations

import logging
from typing import Iterable

from .config import HistoryBonusConfig
from .data_models import RideRecord, RideStatus, ReviewRecord

logger = logging.getLogger(__name__)


class HistoryScorer:
    """Scores how a rider's past rides with a driver should move that driver's rank."""

    def __init__(self, config: HistoryBonusConfig) -> None:
        self.config = config

    def compute_bonus(self, rider_id: int, driver_id: int, history: Iterable[RideRecord]) -> float:
        rides = self._rides_with_driver(rider_id, driver_id, history)
        if not rides:
            return 0.0

        if any(ride.status is RideStatus.CANCELLED for ride in rides):
            logger.debug("Driver %s has a cancelled ride with rider %s", driver_id, rider_id)
            return self.config.cancelled_penalty

        reviewed = self._reviewed_rides(rider_id, rides)
        if not reviewed:
            return 0.0

        cfg = self.config
        rating = reviewed[0][1].rating
        extra_rides = len(reviewed) - 1
        if rating >= cfg.excellent_threshold:
            return cfg.excellent_base + min(extra_rides * cfg.excellent_step, cfg.excellent_cap)
        if rating >= cfg.good_threshold:
            return cfg.good_base + min(extra_rides * cfg.good_step, cfg.good_cap)
        if rating < cfg.poor_threshold:
            return cfg.poor_rating_penalty
        return 0.0

    def should_exclude(self, rider_id: int, driver_id: int, history: Iterable[RideRecord]) -> bool:
        """Exclude drivers whose latest reviewed ride with this rider was below excellent."""
        reviewed = self._reviewed_rides(rider_id, self._rides_with_driver(rider_id, driver_id, history))
        if not reviewed:
            return False
        return reviewed[0][1].rating < self.config.excellent_threshold

    @staticmethod
    def _rides_with_driver(rider_id: int, driver_id: int, history: Iterable[RideRecord]) -> list[RideRecord]:
        rides = [ride for ride in history if ride.driver_id == driver_id and ride.rider_id == rider_id]
        rides.sort(key=lambda ride: ride.event_time, reverse=True)
        return rides

    @staticmethod
    def _reviewed_rides(rider_id: int, rides: list[RideRecord]) -> list[tuple[RideRecord, ReviewRecord]]:
        """Completed rides carrying the rider's review, most recent first."""
        pairs = []
        for ride in rides:
            if ride.status is not RideStatus.COMPLETED:
                continue
            review = ride.review_by(rider_id)
            if review is not None:
                pairs.append((ride, review))
        return pairs
