"""Tests for the reinforcement engine."""

from datetime import datetime, timedelta, timezone

import pytest

from feedback_market.domain.models.actions import CreateClaim, ReinforceClaim, SimilarMatch
from feedback_market.domain.models.claim import Claim
from feedback_market.domain.models.feedback import ExtractedClaim
from feedback_market.domain.services.reinforcement_engine import (
    ReinforcementEngine,
    ReinforcementPolicy,
)

NOW = datetime(2026, 10, 1, tzinfo=timezone.utc)


@pytest.fixture
def extracted() -> ExtractedClaim:
    return ExtractedClaim(claim="API docs are confusing", sentiment="negative", segment="new_users")


def test_empty_matches_create_claim_at_baseline(engine, extracted):
    """No similar claims means a new claim at weight 50."""
    action = engine.decide(extracted, "support", [])

    assert isinstance(action, CreateClaim)
    assert action.initial_weight == 50
    assert action.text == "API docs are confusing"
    assert action.sources == {"support"}
    assert action.segments == {"new_users"}


@pytest.mark.parametrize("score", [0.75, 0.81, 1.0])
def test_top_match_at_or_above_threshold_reinforces(engine, extracted, score):
    """Scores at the threshold or above reinforce the top match."""
    action = engine.decide(extracted, "discord", [SimilarMatch(claim_id=7, score=score)])

    assert isinstance(action, ReinforceClaim)
    assert action.claim_id == 7
    assert action.weight_delta == 5
    assert action.add_source == "discord"
    assert action.add_segment == "new_users"


@pytest.mark.parametrize("score", [0.0, 0.5, 0.7499])
def test_top_match_below_threshold_creates(engine, extracted, score):
    """Scores just below the threshold do not count as duplicates."""
    action = engine.decide(extracted, "discord", [SimilarMatch(claim_id=7, score=score)])
    assert isinstance(action, CreateClaim)


def test_only_highest_ranked_match_is_reinforced(engine, extracted):
    """Other matches above the threshold get no credit."""
    matches = [
        SimilarMatch(claim_id=1, score=0.80),
        SimilarMatch(claim_id=2, score=0.95),
        SimilarMatch(claim_id=3, score=0.90),
    ]
    action = engine.decide(extracted, "support", matches)

    assert isinstance(action, ReinforceClaim)
    assert action.claim_id == 2


def test_tie_prefers_most_recently_reinforced_claim(engine, extracted):
    """Ties on the top score go to the warmer claim."""
    matches = [
        SimilarMatch(claim_id=1, score=0.9, last_reinforced_at=NOW - timedelta(days=10)),
        SimilarMatch(claim_id=2, score=0.9, last_reinforced_at=NOW - timedelta(days=1)),
        SimilarMatch(claim_id=3, score=0.9, last_reinforced_at=None),
    ]
    action = engine.decide(extracted, "support", matches)
    assert action.claim_id == 2


def test_tie_without_timestamps_keeps_search_order(engine, extracted):
    matches = [SimilarMatch(claim_id=4, score=0.9), SimilarMatch(claim_id=5, score=0.9)]
    assert engine.decide(extracted, "support", matches).claim_id == 4


def test_scores_out_of_range_are_rejected(engine, extracted):
    with pytest.raises(ValueError):
        engine.decide(extracted, "support", [SimilarMatch(claim_id=1, score=1.5)])


def test_custom_threshold_and_delta(extracted):
    engine = ReinforcementEngine(ReinforcementPolicy(similarity_threshold=0.9, weight_delta=2))

    assert isinstance(engine.decide(extracted, "x", [SimilarMatch(claim_id=1, score=0.85)]), CreateClaim)
    action = engine.decide(extracted, "x", [SimilarMatch(claim_id=1, score=0.9)])
    assert action.weight_delta == 2


def test_diminishing_returns_shrinks_delta_deterministically(extracted):
    """With diminishing returns on, heavily reinforced claims gain less."""
    engine = ReinforcementEngine(ReinforcementPolicy(diminishing_returns=True, diminishing_step=10))

    assert engine.weight_delta_for(0) == 5
    assert engine.weight_delta_for(9) == 5
    assert engine.weight_delta_for(10) == 2
    assert engine.weight_delta_for(100) == 1

    match = SimilarMatch(claim_id=1, score=0.9, reinforcement_count=25)
    assert engine.decide(extracted, "x", [match]).weight_delta == 1


def test_delta_is_fixed_by_default(engine):
    assert engine.weight_delta_for(0) == engine.weight_delta_for(1000) == 5


def test_decay_is_a_read_side_annotation(engine):
    """A claim unreinforced for 20 days is decaying; the read changes nothing."""
    claim = Claim(
        id=1,
        text="Docs are hard to follow",
        signal_weight=55,
        created_at=NOW - timedelta(days=30),
        last_reinforced_at=NOW - timedelta(days=20),
    )

    report = engine.classify(claim, NOW)

    assert report.decaying is True
    assert report.signal_weight == 55
    assert report.days_since_reinforced == 20.0
    assert claim.signal_weight == 55


def test_recent_claim_is_not_decaying(engine):
    claim = Claim(id=1, text="x", last_reinforced_at=NOW - timedelta(days=14))
    assert engine.is_decaying(claim, NOW) is False
    assert engine.is_decaying(claim, NOW + timedelta(seconds=1)) is True
