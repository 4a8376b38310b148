"""Modeling utilities for the per-rider driver preference regressor."""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Sequence

import numpy as np
import pandas as pd
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import MinMaxScaler
from sklearn.svm import LinearSVR

from .config import TrainerConfig
from .data_models import FeatureVector, TrainingReport
from .errors import InvalidScoreError, ModelNotFoundError, ModelStoreError
from .feature_engineering import FeatureExtractor
from .model_store import ModelStore

logger = logging.getLogger(__name__)


@dataclass
class TrainedModel:
    """A fitted min-max + linear regression pipeline for one rider."""

    rider_id: int
    pipeline: Pipeline
    feature_columns: tuple[str, ...]
    sample_count: int
    random_state: int
    trained_at: datetime

    @property
    def weights(self) -> np.ndarray:
        return np.asarray(self.pipeline.named_steps["model"].coef_, dtype=float).ravel()

    @property
    def intercept(self) -> float:
        return float(np.ravel(self.pipeline.named_steps["model"].intercept_)[0])

    @property
    def feature_min(self) -> np.ndarray:
        return self.pipeline.named_steps["scaler"].data_min_

    @property
    def feature_max(self) -> np.ndarray:
        return self.pipeline.named_steps["scaler"].data_max_


class DriverPreferenceTrainer:
    """Fits and persists a rider's preference model from labelled ride features."""

    def __init__(
        self,
        config: TrainerConfig,
        extractor: FeatureExtractor,
        store: ModelStore,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.extractor = extractor
        self.store = store
        self._sleep = sleep

    def train(self, rider_id: int, examples: Sequence[FeatureVector]) -> bool:
        return self.train_with_report(rider_id, examples).trained

    def train_with_report(self, rider_id: int, examples: Sequence[FeatureVector]) -> TrainingReport:
        labelled = [example for example in examples if example.label is not None]
        if len(labelled) < self.config.min_training_samples:
            logger.warning(
                "Insufficient valid training data for rider %s. Required: %d, found: %d",
                rider_id,
                self.config.min_training_samples,
                len(labelled),
            )
            return TrainingReport(rider_id, len(labelled), trained=False, reason="insufficient_data")

        X = self.extractor.to_frame(labelled)
        y = np.array([example.label for example in labelled], dtype=float)
        pipeline = self._build_pipeline()
        try:
            pipeline.fit(X, y)
        except ValueError:
            logger.error("Could not fit model for rider %s", rider_id, exc_info=True)
            return TrainingReport(rider_id, len(labelled), trained=False, reason="fit_failed")

        model = TrainedModel(
            rider_id=rider_id,
            pipeline=pipeline,
            feature_columns=tuple(X.columns),
            sample_count=len(labelled),
            random_state=self.config.random_state,
            trained_at=datetime.now(timezone.utc),
        )
        logger.info("Trained model for rider %s with %d samples", rider_id, len(labelled))
        if not self._persist_model(rider_id, model):
            return TrainingReport(rider_id, len(labelled), trained=False, reason="save_failed")
        return TrainingReport(rider_id, len(labelled), trained=True, reason="trained")

    def _build_pipeline(self) -> Pipeline:
        # Squared loss with epsilon=0 and dual=True is L2-regularized least squares
        # solved by liblinear's dual coordinate descent.
        regressor = LinearSVR(
            loss="squared_epsilon_insensitive",
            epsilon=0.0,
            C=self.config.regularization_c,
            dual=True,
            tol=self.config.tol,
            max_iter=self.config.max_iter,
            random_state=self.config.random_state,
        )
        return Pipeline(steps=[("scaler", MinMaxScaler()), ("model", regressor)])

    def _persist_model(self, rider_id: int, model: TrainedModel) -> bool:
        attempts = self.config.save_attempts
        delay = self.config.save_backoff_seconds
        for attempt in range(1, attempts + 1):
            try:
                self.store.save(rider_id, model)
                return True
            except ModelStoreError as exc:
                logger.warning("Save attempt %d/%d for rider %s failed: %s", attempt, attempts, rider_id, exc)
            if attempt == attempts:
                break
            self._sleep(delay)
            delay *= 2
            if self._has_valid_model(rider_id):
                logger.info("Another writer stored a model for rider %s; keeping it", rider_id)
                return True
        logger.error("Giving up saving model for rider %s after %d attempts", rider_id, attempts)
        return False

    def _has_valid_model(self, rider_id: int) -> bool:
        try:
            return isinstance(self.store.load(rider_id), TrainedModel)
        except (ModelNotFoundError, ModelStoreError):
            return False


class DriverScorePredictor:
    """Loads cached rider models and scores candidate feature vectors."""

    def __init__(self, store: ModelStore) -> None:
        self.store = store

    def load_model(self, rider_id: int) -> TrainedModel:
        model = self.store.load(rider_id)
        if not isinstance(model, TrainedModel):
            raise ModelStoreError(f"Stored artifact for rider {rider_id} is not a trained model")
        return model

    def score(self, model: TrainedModel, features: FeatureVector) -> float:
        frame = pd.DataFrame([features.as_row()], columns=list(model.feature_columns), dtype=float)
        try:
            value = float(np.ravel(model.pipeline.predict(frame))[0])
        except ValueError as exc:
            # scikit-learn refuses NaN/inf inputs before predicting.
            raise InvalidScoreError(math.nan) from exc
        if not math.isfinite(value):
            raise InvalidScoreError(value)
        return value
