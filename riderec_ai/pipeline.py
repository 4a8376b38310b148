"""Top-level orchestration for personalized driver recommendations."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Sequence

from .config import DEFAULT_CONFIG, RecommenderConfig
from .data_loader import CandidateSource, RideHistoryProvider
from .data_models import DriverCandidate, DriverSummary, RideRecord
from .errors import InvalidScoreError, ModelNotFoundError, ModelStoreError
from .events import InvalidationDispatcher, ReviewSubmitted
from .feature_engineering import FeatureExtractor
from .history import HistoryScorer
from .model_store import ModelStore
from .modeling import DriverPreferenceTrainer, DriverScorePredictor, TrainedModel
from .ranking import ColdStartRanker

logger = logging.getLogger(__name__)

MODEL = "model"


class DriverRecommendationService:
    """Coordinates candidate sourcing, exclusion, model scoring, and cold-start fallback.

    A rider is either untrained (no stored model) or trained. Only
    ``train_model_for_user`` moves a rider to trained and only
    ``invalidate_user_model`` moves it back; recommendation requests never train.
    """

    def __init__(
        self,
        candidates: CandidateSource,
        history: RideHistoryProvider,
        store: ModelStore,
        config: RecommenderConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config or DEFAULT_CONFIG
        self.candidates = candidates
        self.history = history
        self.store = store
        self.clock = clock
        self.extractor = FeatureExtractor(self.config.features)
        self.history_scorer = HistoryScorer(self.config.history)
        self.trainer = DriverPreferenceTrainer(self.config.trainer, self.extractor, store)
        self.predictor = DriverScorePredictor(store)
        self.cold_start = ColdStartRanker(self.config.cold_start, self.history_scorer)

    def get_recommended_drivers_for_user(self, rider_id: int, top_n: int | None = None) -> list[DriverSummary]:
        top_n = self.clamp_top_n(self.config.recommendation.default_top_n if top_n is None else top_n)
        try:
            candidates = self.candidates.get_eligible_drivers()
            if not candidates:
                logger.warning("No available drivers found for rider %s", rider_id)
                return []

            history = self.history.get_ride_history(rider_id)
            logger.info(
                "Found %d available drivers for rider %s; rider has %d rides in history",
                len(candidates),
                rider_id,
                len(history),
            )

            if not self.model_exists_for_user(rider_id):
                logger.info("No model for rider %s, using cold start", rider_id)
                return self.cold_start.rank(rider_id, candidates, history, top_n)

            try:
                model = self.predictor.load_model(rider_id)
            except (ModelNotFoundError, ModelStoreError):
                logger.warning("Could not load model for rider %s, falling back to cold start", rider_id, exc_info=True)
                return self.cold_start.rank(rider_id, candidates, history, top_n)

            scored = self._score_with_model(rider_id, model, candidates, history)
            if not scored:
                logger.warning("No valid predictions for rider %s, falling back to cold start", rider_id)
                return self.cold_start.rank(rider_id, candidates, history, top_n)

            ranked = sorted(scored, key=lambda summary: summary.score, reverse=True)[:top_n]
            logger.info(
                "Returned %d recommended drivers for rider %s. Top scores: [%s]",
                len(ranked),
                rider_id,
                ", ".join(f"ML:{s.ml_score:.3f}+History:{s.history_bonus:.3f}={s.score:.3f}" for s in ranked),
            )
            return ranked
        except Exception:
            logger.exception("Error getting recommended drivers for rider %s", rider_id)
            raise

    def train_model_for_user(self, rider_id: int) -> bool:
        if self.model_exists_for_user(rider_id):
            logger.warning("Model already exists for rider %s; invalidate it first to retrain", rider_id)
            return True

        logger.info("Training new model for rider %s", rider_id)
        history = self.history.get_ride_history(rider_id)
        examples = self.extractor.build_training_set(rider_id, history)
        return self.trainer.train(rider_id, examples)

    def model_exists_for_user(self, rider_id: int) -> bool:
        return self.store.exists(rider_id)

    def invalidate_user_model(self, rider_id: int) -> None:
        self.store.invalidate(rider_id)

    def handle_review_submitted(self, event: ReviewSubmitted) -> None:
        self.invalidate_user_model(event.rider_id)

    def create_invalidation_dispatcher(self, max_workers: int = 2) -> InvalidationDispatcher:
        return InvalidationDispatcher(self.invalidate_user_model, max_workers=max_workers)

    def clamp_top_n(self, top_n: int) -> int:
        bounds = self.config.recommendation
        return max(bounds.min_top_n, min(int(top_n), bounds.max_top_n))

    def _score_with_model(
        self,
        rider_id: int,
        model: TrainedModel,
        candidates: Sequence[DriverCandidate],
        history: Sequence[RideRecord],
    ) -> list[DriverSummary]:
        averages = self.extractor.compute_rider_averages(history)
        now = self.clock()
        scored: list[DriverSummary] = []
        for candidate in candidates:
            if self.history_scorer.should_exclude(rider_id, candidate.driver_id, history):
                logger.debug("Excluding driver %s for rider %s", candidate.driver_id, rider_id)
                continue
            features = self.extractor.extract_prediction_features(candidate, averages, now)
            try:
                ml_score = self.predictor.score(model, features)
            except InvalidScoreError:
                logger.warning(
                    "Invalid prediction score for driver %s, rider %s. Skipping driver.",
                    candidate.driver_id,
                    rider_id,
                )
                continue
            bonus = self.history_scorer.compute_bonus(rider_id, candidate.driver_id, history)
            if abs(bonus) > 0.01:
                logger.info(
                    "History bonus for driver %s, rider %s: ML=%.3f, bonus=%.3f",
                    candidate.driver_id,
                    rider_id,
                    ml_score,
                    bonus,
                )
            scored.append(
                DriverSummary(
                    driver_id=candidate.driver_id,
                    average_rating=candidate.average_rating,
                    total_rides=candidate.total_rides,
                    score=ml_score + bonus,
                    history_bonus=bonus,
                    strategy=MODEL,
                    ml_score=ml_score,
                    first_name=candidate.first_name,
                    last_name=candidate.last_name,
                )
            )
        return scored
