"""Heuristic driver ranking used when no personalized model can score candidates."""
from __future__ import annotations

import logging
from typing import Sequence

from .config import ColdStartConfig
from .data_models import DriverCandidate, DriverSummary, RideRecord
from .history import HistoryScorer

logger = logging.getLogger(__name__)

COLD_START = "cold_start"


class ColdStartRanker:
    """Ranks candidates by rating and experience, adjusted by the rider's history."""

    def __init__(self, config: ColdStartConfig, history_scorer: HistoryScorer) -> None:
        self.config = config
        self.history_scorer = history_scorer

    def rank(
        self,
        rider_id: int,
        candidates: Sequence[DriverCandidate],
        history: Sequence[RideRecord],
        top_n: int,
    ) -> list[DriverSummary]:
        scored: list[DriverSummary] = []
        for candidate in candidates:
            if self.history_scorer.should_exclude(rider_id, candidate.driver_id, history):
                continue
            bonus = self.history_scorer.compute_bonus(rider_id, candidate.driver_id, history)
            scored.append(
                DriverSummary(
                    driver_id=candidate.driver_id,
                    average_rating=candidate.average_rating,
                    total_rides=candidate.total_rides,
                    score=self.base_score(candidate) + bonus,
                    history_bonus=bonus,
                    strategy=COLD_START,
                    first_name=candidate.first_name,
                    last_name=candidate.last_name,
                )
            )

        # sorted() is stable, so ties keep the candidate source's order.
        ranked = sorted(scored, key=lambda summary: summary.score, reverse=True)[:top_n]
        with_bonus = [summary.driver_id for summary in scored if abs(summary.history_bonus) > 0.01]
        if with_bonus:
            logger.info("Cold start: applied history bonus to drivers %s", with_bonus)
        logger.info("Cold start: returned %d of %d candidates for rider %s", len(ranked), len(candidates), rider_id)
        return ranked

    def base_score(self, candidate: DriverCandidate) -> float:
        rating = float(candidate.average_rating or 0.0)
        experience = min(candidate.total_rides / self.config.rides_saturation, self.config.rides_cap)
        return rating * self.config.rating_weight + experience
