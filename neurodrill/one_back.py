"""1-back matching: is this stimulus the same as the one before it?"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .clock import Clock
from .core import InputMode, SeededRng, Trial, TrialRecord
from .engine import CompletionCallback, SequencerConfig, TrialSequencer
from .results import proportion_result
from .scoring import GRID_SCORING

SHAPES: tuple[str, ...] = ("circle", "square", "triangle", "diamond", "star")
SHAPE_COLORS: tuple[str, ...] = ("#6C5CE7", "#00B894", "#E17055", "#FDCB6E", "#74B9FF", "#A29BFE")

# (minimum streak, response window seconds), ascending by streak.
STREAK_WINDOWS: tuple[tuple[int, float], ...] = (
    (0, 2.5),
    (3, 2.0),
    (5, 1.5),
    (7, 1.2),
    (10, 0.9),
)


def trailing_streak(history: Sequence[TrialRecord]) -> int:
    streak = 0
    for record in reversed(history):
        if not record.response.is_correct:
            break
        streak += 1
    return streak


def window_for_streak(streak: int) -> float:
    window = STREAK_WINDOWS[0][1]
    for threshold, seconds in STREAK_WINDOWS:
        if streak >= threshold:
            window = seconds
    return window


@dataclass(frozen=True, slots=True)
class ShapeStimulus:
    shape: str
    color: str


@dataclass(frozen=True, slots=True)
class OneBackPayload:
    stimulus: object
    previous: object | None
    is_match: bool


class ShapeMatchSource:
    """Shapes that repeat the previous one with probability ``match_p``.

    A non-match never reuses the previous shape. The response window shrinks
    as the run of correct answers grows.
    """

    def __init__(self, *, rng: SeededRng, match_p: float = 0.4) -> None:
        if not (0.0 <= match_p <= 1.0):
            raise ValueError("match_p must be in [0.0, 1.0]")
        self._rng = rng
        self._match_p = float(match_p)
        self._previous: ShapeStimulus | None = None

    def next_trial(self, *, history: Sequence[TrialRecord]) -> Trial:
        prev = self._previous
        is_match = prev is not None and self._rng.random() < self._match_p
        if is_match:
            stimulus = prev
        else:
            shapes = [s for s in SHAPES if prev is None or s != prev.shape]
            stimulus = ShapeStimulus(shape=self._rng.choice(shapes), color=self._rng.choice(SHAPE_COLORS))
        self._previous = stimulus

        return Trial(
            prompt=f"Same as the last shape?\n{stimulus.shape}",
            answer=is_match,
            options=("Match", "No match"),
            input_mode=InputMode.YES_NO,
            payload=OneBackPayload(stimulus=stimulus, previous=prev, is_match=is_match),
            timeout_s=window_for_streak(trailing_streak(history)),
        )


class LocationMatchSource:
    """A lit grid cell; respond whether it is the cell lit on the previous trial."""

    def __init__(
        self,
        *,
        rng: SeededRng,
        grid_size: int = 3,
        match_p: float = 0.4,
        display_s: float = 1.0,
    ) -> None:
        if grid_size < 2:
            raise ValueError("grid_size must be >= 2")
        if not (0.0 <= match_p <= 1.0):
            raise ValueError("match_p must be in [0.0, 1.0]")
        if display_s < 0.0:
            raise ValueError("display_s must be >= 0")
        self._rng = rng
        self._cells = grid_size * grid_size
        self._grid_size = grid_size
        self._match_p = float(match_p)
        self._display_s = float(display_s)
        self._previous: int | None = None

    @property
    def grid_size(self) -> int:
        return self._grid_size

    def next_trial(self, *, history: Sequence[TrialRecord]) -> Trial:
        _ = history
        prev = self._previous
        is_match = prev is not None and self._rng.random() < self._match_p
        if is_match:
            cell = prev
        else:
            cell = self._rng.choice([c for c in range(self._cells) if c != prev])
        self._previous = cell

        return Trial(
            prompt=f"Watch the grid (cell {cell + 1})",
            recall_prompt="Same location as before?",
            answer=is_match,
            options=("Match", "No match"),
            input_mode=InputMode.YES_NO,
            payload=OneBackPayload(stimulus=cell, previous=prev, is_match=is_match),
            display_s=self._display_s,
        )


def build_shape_match_drill(
    *,
    clock: Clock,
    seed: int,
    time_limit_s: int = 30,
    on_complete: CompletionCallback | None = None,
) -> TrialSequencer:
    return TrialSequencer(
        title="Shape Match",
        source=ShapeMatchSource(rng=SeededRng(seed)),
        scoring=GRID_SCORING,
        clock=clock,
        config=SequencerConfig(time_limit_s=time_limit_s, trials_target=15, feedback_dwell_s=0.4),
        result_builder=proportion_result,
        on_complete=on_complete,
    )


def build_location_match_drill(
    *,
    clock: Clock,
    seed: int,
    time_limit_s: int = 30,
    on_complete: CompletionCallback | None = None,
) -> TrialSequencer:
    return TrialSequencer(
        title="Location Match",
        source=LocationMatchSource(rng=SeededRng(seed)),
        scoring=GRID_SCORING,
        clock=clock,
        config=SequencerConfig(time_limit_s=time_limit_s, trials_target=15, feedback_dwell_s=0.5),
        result_builder=proportion_result,
        on_complete=on_complete,
    )
