from __future__ import annotations

import pytest

from neurodrill.core import Response, ScoreState, Trial, TrialRecord
from neurodrill.results import (
    AccuracyResult,
    LevelResult,
    SignalDetectionResult,
    SpanResult,
    TapResult,
    WordCountResult,
    normalize_result,
    proportion_result,
    signal_detection_result,
)


def test_explicit_score_wins() -> None:
    n = normalize_result(AccuracyResult(score=420, correct=7, total=10, reaction_times=(300, 500)))
    assert n.score == 420
    assert n.correct == 7
    assert n.avg_reaction_time_ms == 400.0


def test_zero_score_falls_back_to_percentage() -> None:
    assert normalize_result(AccuracyResult(score=0, correct=3, total=4)).score == 75
    assert normalize_result(AccuracyResult(score=None, correct=2, total=3)).score == 67
    assert normalize_result(AccuracyResult(score=None, correct=0, total=0)).score == 0


def test_exact_halves_round_up() -> None:
    assert normalize_result(AccuracyResult(score=None, correct=1, total=8)).score == 13
    assert normalize_result(AccuracyResult(score=None, correct=5, total=8)).score == 63
    n = normalize_result(SignalDetectionResult(hits=1, misses=7, false_alarms=0, correct_rejections=3))
    assert n.score == 13


def test_signal_detection_uses_hit_rate() -> None:
    n = normalize_result(SignalDetectionResult(hits=6, misses=1, false_alarms=1, correct_rejections=4))
    assert n.score == 75
    assert n.correct == 6
    assert n.avg_reaction_time_ms is None


def test_span_percentage_then_span_weight() -> None:
    assert normalize_result(SpanResult(max_span=5, correct=4, total=6)).score == 67

    n = normalize_result(SpanResult(max_span=5, correct=0, total=2))
    assert n.score == 50
    assert n.correct == 0


def test_level_result_score_and_level_weight() -> None:
    assert normalize_result(LevelResult(score=70, max_level=5, total_correct=3)).score == 70

    n = normalize_result(LevelResult(score=0, max_level=4, total_correct=0))
    assert n.score == 60
    assert n.correct == 0


def test_tap_and_word_count_results() -> None:
    tap = normalize_result(TapResult(score=35, correct=4, incorrect=1, missed=2, reaction_times=(200, 400)))
    assert (tap.score, tap.correct, tap.avg_reaction_time_ms) == (35, 4, 300.0)

    words = normalize_result(WordCountResult(score=100, correct=1, word_count=42))
    assert (words.score, words.correct, words.avg_reaction_time_ms) == (100, 1, None)


def test_unknown_result_type_is_rejected() -> None:
    with pytest.raises(TypeError):
        normalize_result(object())  # type: ignore[arg-type]


def _record(answer: object, *, responded: bool, correct: bool) -> TrialRecord:
    return TrialRecord(
        trial=Trial(prompt="", answer=answer),
        response=Response(
            trial_index=0,
            selection=True if responded else None,
            reaction_time_ms=300 if responded else None,
            is_correct=correct,
            timed_out=not responded,
        ),
    )


def test_signal_detection_counts_outcomes() -> None:
    records = [
        _record(True, responded=True, correct=True),
        _record(True, responded=True, correct=True),
        _record(True, responded=False, correct=False),
        _record(None, responded=True, correct=False),
        _record(None, responded=False, correct=True),
        _record(None, responded=False, correct=True),
    ]
    state = ScoreState(reaction_times=[250, 350])

    result = signal_detection_result(state, records)
    assert (result.hits, result.misses, result.false_alarms, result.correct_rejections) == (2, 1, 1, 2)
    assert result.reaction_times == (250, 350)


def test_proportion_result_has_no_points() -> None:
    state = ScoreState(score=90, correct_count=3, attempted=5)
    result = proportion_result(state, [])
    assert result.score is None
    assert normalize_result(result).score == 60
