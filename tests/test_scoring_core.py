from __future__ import annotations

import pytest

from neurodrill.core import Response, Trial
from neurodrill.scoring import (
    GRID_SCORING,
    SEQUENCE_SCORING,
    FlatScoring,
    ReactionTimePolicy,
    ScoreAggregator,
    SpeedWeightedScoring,
    evaluate,
    evaluate_timeout,
)


def _response(*, correct: bool, rt: int | None, timed_out: bool = False) -> Response:
    return Response(trial_index=0, selection=0, reaction_time_ms=rt, is_correct=correct, timed_out=timed_out)


def test_speed_weighted_points_follow_reaction_time() -> None:
    assert GRID_SCORING.delta(is_correct=True, reaction_time_ms=0) == 100
    assert GRID_SCORING.delta(is_correct=True, reaction_time_ms=1234) == 76
    assert GRID_SCORING.delta(is_correct=True, reaction_time_ms=5000) == 10
    assert GRID_SCORING.delta(is_correct=False, reaction_time_ms=200) == 0
    assert SEQUENCE_SCORING.delta(is_correct=True, reaction_time_ms=800) == 142


def test_withheld_correct_answer_earns_floor() -> None:
    assert GRID_SCORING.delta(is_correct=True, reaction_time_ms=None) == 10


def test_speed_weighted_rejects_bad_constants() -> None:
    with pytest.raises(ValueError):
        SpeedWeightedScoring(base=100, divisor=0, floor=10)
    with pytest.raises(ValueError):
        SpeedWeightedScoring(base=100, divisor=10, floor=-1)


def test_running_score_never_goes_negative() -> None:
    agg = ScoreAggregator(FlatScoring(reward=10, penalty=5))

    assert agg.record(_response(correct=False, rt=300)) == 0
    assert agg.record(_response(correct=True, rt=300)) == 10
    assert agg.record(_response(correct=False, rt=300)) == -5
    assert agg.record(_response(correct=False, rt=300)) == -5
    assert agg.record(_response(correct=False, rt=300)) == 0

    assert agg.state.score == 0
    assert agg.state.attempted == 5
    assert agg.state.correct_count == 1


def test_reaction_time_policy() -> None:
    all_rt = ScoreAggregator(GRID_SCORING)
    correct_rt = ScoreAggregator(GRID_SCORING, rt_policy=ReactionTimePolicy.CORRECT_ONLY)

    for agg in (all_rt, correct_rt):
        agg.record(_response(correct=True, rt=400))
        agg.record(_response(correct=False, rt=900))
        agg.record(_response(correct=False, rt=None, timed_out=True))

    assert all_rt.state.reaction_times == [400, 900]
    assert correct_rt.state.reaction_times == [400]


def test_evaluate_measures_from_presentation() -> None:
    trial = Trial(prompt="?", answer=2, options=("a", "b", "c"), presented_at_s=10.0)

    hit = evaluate(trial, 2, trial_index=3, now_s=10.25)
    assert hit.is_correct
    assert hit.reaction_time_ms == 250
    assert hit.trial_index == 3
    assert not hit.timed_out

    miss = evaluate(trial, 0, trial_index=3, now_s=10.5)
    assert not miss.is_correct
    assert miss.reaction_time_ms == 500


def test_evaluate_requires_presented_trial() -> None:
    with pytest.raises(ValueError):
        evaluate(Trial(prompt="?", answer=0), 0, trial_index=0, now_s=1.0)


def test_timeout_is_correct_only_for_withhold_trials() -> None:
    go = evaluate_timeout(Trial(prompt="go", answer=True), trial_index=0)
    no_go = evaluate_timeout(Trial(prompt="stop", answer=None), trial_index=1)

    assert go.timed_out and not go.is_correct
    assert no_go.timed_out and no_go.is_correct
    assert go.reaction_time_ms is None
