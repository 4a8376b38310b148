"""Exceptions raised by the recommendation engine."""
from __future__ import annotations


class ModelNotFoundError(FileNotFoundError):
    """No trained model is stored for the requested rider."""

    def __init__(self, rider_id: int) -> None:
        super().__init__(f"No trained model stored for rider {rider_id}")
        self.rider_id = rider_id


class InvalidScoreError(ValueError):
    """A model produced a NaN or infinite score."""

    def __init__(self, value: float) -> None:
        super().__init__(f"Model produced a non-finite score: {value!r}")
        self.value = value


class ModelStoreError(RuntimeError):
    """The model store could not read or write an artifact."""
