from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from .core import Response, ScoreState, ScoringRule, Trial


@dataclass(frozen=True, slots=True)
class SpeedWeightedScoring:
    """``max(base - rt // divisor, floor)`` for a correct answer.

    Incorrect answers and misses cost ``penalty`` (0 for reward-only drills).
    """

    base: int
    divisor: int
    floor: int
    penalty: int = 0

    def __post_init__(self) -> None:
        if self.divisor <= 0:
            raise ValueError("divisor must be > 0")
        if self.floor < 0:
            raise ValueError("floor must be >= 0")
        if self.penalty < 0:
            raise ValueError("penalty must be >= 0")

    def delta(self, *, is_correct: bool, reaction_time_ms: int | None) -> int:
        if not is_correct:
            return -self.penalty
        if reaction_time_ms is None:
            # Correctly withheld: nothing to weight by speed.
            return self.floor
        rt = max(0, int(reaction_time_ms))
        return max(self.base - rt // self.divisor, self.floor)


@dataclass(frozen=True, slots=True)
class FlatScoring:
    reward: int = 10
    penalty: int = 5

    def delta(self, *, is_correct: bool, reaction_time_ms: int | None) -> int:
        _ = reaction_time_ms
        return self.reward if is_correct else -self.penalty


# Per-family constants.
SEQUENCE_SCORING = SpeedWeightedScoring(base=150, divisor=100, floor=20)
ANALOGY_SCORING = SpeedWeightedScoring(base=150, divisor=100, floor=25)
GRID_SCORING = SpeedWeightedScoring(base=100, divisor=50, floor=10)
GESTALT_SCORING = SpeedWeightedScoring(base=100, divisor=40, floor=15)
RAPID_SCORING = SpeedWeightedScoring(base=120, divisor=30, floor=20)
SEARCH_SCORING = SpeedWeightedScoring(base=50, divisor=100, floor=10)
TAP_SCORING = FlatScoring(reward=10, penalty=5)


class ReactionTimePolicy(StrEnum):
    ALL_RESPONSES = "all_responses"
    CORRECT_ONLY = "correct_only"


def evaluate(trial: Trial, selection: object, *, trial_index: int, now_s: float) -> Response:
    """Grade one user response against the trial's declared answer."""

    if trial.presented_at_s is None:
        raise ValueError("trial has not been presented")
    rt_ms = max(0, int(round((float(now_s) - trial.presented_at_s) * 1000.0)))
    return Response(
        trial_index=int(trial_index),
        selection=selection,
        reaction_time_ms=rt_ms,
        is_correct=selection == trial.answer,
    )


def evaluate_timeout(trial: Trial, *, trial_index: int) -> Response:
    """Grade a trial whose response window closed without input.

    Withholding is correct only when the trial's answer is ``None``.
    """

    return Response(
        trial_index=int(trial_index),
        selection=None,
        reaction_time_ms=None,
        is_correct=trial.answer is None,
        timed_out=True,
    )


class ScoreAggregator:
    """Folds graded responses into a running ScoreState.

    The running total never drops below zero. Timed-out responses never add a
    reaction time.
    """

    def __init__(
        self,
        rule: ScoringRule,
        *,
        rt_policy: ReactionTimePolicy = ReactionTimePolicy.ALL_RESPONSES,
    ) -> None:
        self._rule = rule
        self._rt_policy = ReactionTimePolicy(rt_policy)
        self._state = ScoreState()

    @property
    def state(self) -> ScoreState:
        return self._state

    @property
    def rule(self) -> ScoringRule:
        return self._rule

    def record(self, response: Response) -> int:
        state = self._state
        state.attempted += 1
        if response.is_correct:
            state.correct_count += 1

        rt = response.reaction_time_ms
        if rt is not None and not response.timed_out:
            if response.is_correct or self._rt_policy is ReactionTimePolicy.ALL_RESPONSES:
                state.reaction_times.append(int(rt))

        delta = int(self._rule.delta(is_correct=response.is_correct, reaction_time_ms=rt))
        before = state.score
        state.score = max(0, before + delta)
        return state.score - before
