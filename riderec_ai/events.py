"""Review-submission events that invalidate a rider's cached model in the background."""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewSubmitted:
    """Published by the review workflow once a review has been stored."""

    review_id: int
    ride_id: int
    rider_id: int
    driver_id: int
    rating: float
    submitted_at: datetime


class InvalidationDispatcher:
    """Fire-and-forget delivery of ``ReviewSubmitted`` events.

    Each event is handled at most once on a worker thread. Failures are logged
    and dropped; callers only get eventual visibility of the invalidation, with
    no ordering against recommendation requests already in flight.
    """

    def __init__(self, invalidate: Callable[[int], None], max_workers: int = 2) -> None:
        self._invalidate = invalidate
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="model-invalidation")

    def publish(self, event: ReviewSubmitted) -> Future:
        logger.debug("Queued model invalidation for rider %s after review %s", event.rider_id, event.review_id)
        return self._executor.submit(self._handle, event)

    def _handle(self, event: ReviewSubmitted) -> bool:
        try:
            self._invalidate(event.rider_id)
        except Exception:
            logger.error(
                "Failed to invalidate model for rider %s after review %s",
                event.rider_id,
                event.review_id,
                exc_info=True,
            )
            return False
        return True

    def close(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> InvalidationDispatcher:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
