"""RideRec AI: content-based driver recommendations learned from a rider's own history."""
from __future__ import annotations

from .config import DEFAULT_CONFIG, RecommenderConfig
from .data_models import (
    DriverCandidate,
    DriverSummary,
    FeatureVector,
    RideRecord,
    RideStatus,
    ReviewRecord,
    TrainingReport,
)
from .model_store import FileModelStore, InMemoryModelStore
from .pipeline import DriverRecommendationService

__all__ = [
    "DEFAULT_CONFIG",
    "DriverCandidate",
    "DriverRecommendationService",
    "DriverSummary",
    "FeatureVector",
    "FileModelStore",
    "InMemoryModelStore",
    "RecommenderConfig",
    "ReviewRecord",
    "RideRecord",
    "RideStatus",
    "TrainingReport",
]
