from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .core import ScoreState, TrialRecord, mean_or_none, round_half_up


@dataclass(frozen=True, slots=True)
class AccuracyResult:
    """Choice drills. ``score`` is None for drills that report only accuracy."""

    score: int | None
    correct: int
    total: int
    reaction_times: tuple[int, ...] = ()


@dataclass(frozen=True, slots=True)
class SignalDetectionResult:
    hits: int
    misses: int
    false_alarms: int
    correct_rejections: int
    reaction_times: tuple[int, ...] = ()


@dataclass(frozen=True, slots=True)
class SpanResult:
    max_span: int
    correct: int
    total: int
    reaction_times: tuple[int, ...] = ()


@dataclass(frozen=True, slots=True)
class LevelResult:
    score: int
    max_level: int
    total_correct: int
    reaction_times: tuple[int, ...] = ()


@dataclass(frozen=True, slots=True)
class TapResult:
    score: int
    correct: int
    incorrect: int
    missed: int
    reaction_times: tuple[int, ...] = ()


@dataclass(frozen=True, slots=True)
class WordCountResult:
    score: int
    correct: int
    word_count: int


CompletionResult = (
    AccuracyResult
    | SignalDetectionResult
    | SpanResult
    | LevelResult
    | TapResult
    | WordCountResult
)


@dataclass(frozen=True, slots=True)
class NormalizedResult:
    score: int
    correct: int
    avg_reaction_time_ms: float | None


@dataclass(frozen=True, slots=True)
class _Fields:
    score: int | None = None
    correct: int | None = None
    total: int | None = None
    hits: int | None = None
    misses: int | None = None
    false_alarms: int | None = None
    max_span: int | None = None
    max_level: int | None = None
    total_correct: int | None = None
    reaction_times: tuple[int, ...] = ()


def _fields_of(result: CompletionResult) -> _Fields:
    if isinstance(result, AccuracyResult):
        return _Fields(
            score=result.score,
            correct=result.correct,
            total=result.total,
            reaction_times=result.reaction_times,
        )
    if isinstance(result, SignalDetectionResult):
        return _Fields(
            hits=result.hits,
            misses=result.misses,
            false_alarms=result.false_alarms,
            reaction_times=result.reaction_times,
        )
    if isinstance(result, SpanResult):
        return _Fields(
            max_span=result.max_span,
            correct=result.correct,
            total=result.total,
            reaction_times=result.reaction_times,
        )
    if isinstance(result, LevelResult):
        return _Fields(
            score=result.score,
            max_level=result.max_level,
            total_correct=result.total_correct,
            reaction_times=result.reaction_times,
        )
    if isinstance(result, TapResult):
        return _Fields(score=result.score, correct=result.correct, reaction_times=result.reaction_times)
    if isinstance(result, WordCountResult):
        return _Fields(score=result.score, correct=result.correct)
    raise TypeError(f"unsupported completion result: {type(result).__name__}")


def normalize_result(result: CompletionResult) -> NormalizedResult:
    """Reduce any drill-family result to (score, correct, mean RT).

    Score precedence, first match wins: explicit nonzero score; correct/total
    percentage; hits over all signal-detection outcomes; span x 10; level x 15.
    """

    f = _fields_of(result)

    score = f.score or 0
    if score == 0 and f.correct is not None and f.total is not None:
        score = round_half_up(f.correct / max(1, f.total) * 100)
    if score == 0 and f.hits is not None:
        outcomes = f.hits + (f.misses or 0) + (f.false_alarms or 0)
        score = round_half_up(f.hits / max(1, outcomes) * 100)
    if score == 0 and f.max_span:
        score = f.max_span * 10
    if score == 0 and f.max_level:
        score = f.max_level * 15

    correct = next(
        (
            v
            for v in (f.correct, f.hits, f.total_correct, f.max_span, f.max_level)
            if v is not None
        ),
        0,
    )

    return NormalizedResult(
        score=int(score),
        correct=int(correct),
        avg_reaction_time_ms=mean_or_none(f.reaction_times),
    )


def accuracy_result(state: ScoreState, records: Sequence[TrialRecord]) -> AccuracyResult:
    """Default builder for scored choice drills."""

    _ = records
    return AccuracyResult(
        score=int(state.score),
        correct=int(state.correct_count),
        total=int(state.attempted),
        reaction_times=tuple(state.reaction_times),
    )


def proportion_result(state: ScoreState, records: Sequence[TrialRecord]) -> AccuracyResult:
    """Builder for drills that report correct/total without points."""

    _ = records
    return AccuracyResult(
        score=None,
        correct=int(state.correct_count),
        total=int(state.attempted),
        reaction_times=tuple(state.reaction_times),
    )


def signal_detection_result(state: ScoreState, records: Sequence[TrialRecord]) -> SignalDetectionResult:
    """Fold tap/withhold records into hit, miss, false alarm and rejection counts.

    A trial whose answer is ``None`` is a no-signal trial: any response to it is
    a false alarm.
    """

    hits = misses = false_alarms = correct_rejections = 0
    for record in records:
        signal = record.trial.answer is not None
        responded = not record.response.timed_out
        if signal and responded and record.response.is_correct:
            hits += 1
        elif signal:
            misses += 1
        elif responded:
            false_alarms += 1
        else:
            correct_rejections += 1

    return SignalDetectionResult(
        hits=hits,
        misses=misses,
        false_alarms=false_alarms,
        correct_rejections=correct_rejections,
        reaction_times=tuple(state.reaction_times),
    )
