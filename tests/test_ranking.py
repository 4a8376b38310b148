from __future__ import annotations

import pytest

from riderec_ai.config import ColdStartConfig, HistoryBonusConfig
from riderec_ai.history import HistoryScorer
from riderec_ai.ranking import COLD_START, ColdStartRanker

RIDER = 1


@pytest.fixture
def ranker() -> ColdStartRanker:
    return ColdStartRanker(ColdStartConfig(), HistoryScorer(HistoryBonusConfig()))


def test_base_score_combines_rating_and_capped_experience(ranker: ColdStartRanker, make_driver) -> None:
    assert ranker.base_score(make_driver(1, rating=5.0, total_rides=50)) == pytest.approx(1.5)
    assert ranker.base_score(make_driver(2, rating=4.0, total_rides=1000)) == pytest.approx(1.8)
    assert ranker.base_score(make_driver(3, rating=None, total_rides=0)) == 0.0


def test_rank_orders_by_score_and_truncates(ranker: ColdStartRanker, make_driver) -> None:
    candidates = [
        make_driver(1, rating=3.0, total_rides=10),
        make_driver(2, rating=5.0, total_rides=200),
        make_driver(3, rating=4.0, total_rides=50),
    ]

    ranked = ranker.rank(RIDER, candidates, [], top_n=2)

    assert [summary.driver_id for summary in ranked] == [2, 3]
    assert all(summary.strategy == COLD_START for summary in ranked)
    assert all(summary.ml_score is None for summary in ranked)


def test_rank_applies_history_bonus_and_exclusion(ranker: ColdStartRanker, make_driver, make_ride) -> None:
    candidates = [
        make_driver(1, rating=4.0, total_rides=100),
        make_driver(2, rating=4.0, total_rides=100),
        make_driver(3, rating=4.0, total_rides=100),
        make_driver(4, rating=5.0, total_rides=100),
    ]
    history = [
        make_ride(1, driver_id=2, rating=5.0),
        make_ride(2, driver_id=3, rating=3.5),
    ]

    ranked = ranker.rank(RIDER, candidates, history, top_n=10)

    assert [summary.driver_id for summary in ranked] == [2, 4, 1]
    assert ranked[0].history_bonus == pytest.approx(0.5)
    assert ranked[0].score == pytest.approx(1.8 + 0.5)


def test_rank_ties_keep_candidate_order(ranker: ColdStartRanker, make_driver) -> None:
    candidates = [make_driver(i, rating=4.0, total_rides=100) for i in (5, 3, 9)]

    ranked = ranker.rank(RIDER, candidates, [], top_n=3)

    assert [summary.driver_id for summary in ranked] == [5, 3, 9]
