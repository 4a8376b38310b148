"""Configuration objects for the RideRec AI driver recommender."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .data_models import FEATURE_COLUMNS

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass(frozen=True)
class StoragePaths:
    """Locations of per-rider model artifacts and CSV inputs."""

    model_dir: Path = Path("models")
    data_dir: Path = Path("data")


@dataclass(frozen=True)
class FeatureConfig:
    """Feature schema and defaults used by the extractor."""

    feature_columns: tuple[str, ...] = FEATURE_COLUMNS
    morning_start_hour: int = 6
    afternoon_start_hour: int = 12
    night_start_hour: int = 18
    default_avg_price: float = 25.0
    default_avg_distance_km: float = 5.0
    default_avg_duration_min: int = 15


@dataclass(frozen=True)
class TrainerConfig:
    """Parameters for the per-rider linear regressor and its persistence."""

    min_training_samples: int = 3
    random_state: int = 0
    regularization_c: float = 1.0
    max_iter: int = 10_000
    tol: float = 1e-4
    save_attempts: int = 3
    save_backoff_seconds: float = 0.05


@dataclass(frozen=True)
class HistoryBonusConfig:
    """Bonus and penalty weights derived from a rider's past rides with a driver."""

    cancelled_penalty: float = -0.3
    poor_rating_penalty: float = -0.3
    excellent_threshold: float = 4.5
    excellent_base: float = 0.5
    excellent_step: float = 0.1
    excellent_cap: float = 0.5
    good_threshold: float = 4.0
    good_base: float = 0.2
    good_step: float = 0.05
    good_cap: float = 0.3
    poor_threshold: float = 3.0


@dataclass(frozen=True)
class ColdStartConfig:
    """Weights of the heuristic ranking used when no model is available."""

    rating_weight: float = 0.2
    rides_saturation: float = 100.0
    rides_cap: float = 1.0


@dataclass(frozen=True)
class RecommendationConfig:
    """Bounds on how many drivers a single request may return."""

    default_top_n: int = 5
    min_top_n: int = 1
    max_top_n: int = 20


@dataclass(frozen=True)
class RecommenderConfig:
    """Root configuration object that bundles all other configs."""

    paths: StoragePaths = field(default_factory=StoragePaths)
    features: FeatureConfig = field(default_factory=FeatureConfig)
    trainer: TrainerConfig = field(default_factory=TrainerConfig)
    history: HistoryBonusConfig = field(default_factory=HistoryBonusConfig)
    cold_start: ColdStartConfig = field(default_factory=ColdStartConfig)
    recommendation: RecommendationConfig = field(default_factory=RecommendationConfig)


DEFAULT_CONFIG = RecommenderConfig()


def configure_logging(level: int | str = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
