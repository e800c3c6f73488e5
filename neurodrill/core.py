from __future__ import annotations

import math
import random
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum, StrEnum
from typing import Protocol, TypeVar

T = TypeVar("T")


class Phase(str, Enum):
    IDLE = "idle"
    PRESENTING = "presenting"
    AWAITING_RESPONSE = "awaiting_response"
    FEEDBACK = "feedback"
    ADVANCING = "advancing"
    COMPLETE = "complete"


class DifficultyTier(StrEnum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class InputMode(StrEnum):
    CHOICE = "choice"  # selection is an option index
    YES_NO = "yes_no"  # selection is a bool
    TAP = "tap"  # selection is True; withholding is a valid answer
    TEXT = "text"  # selection is a string
    CELLS = "cells"  # selection is a tuple of grid cell indices


class CompletionReason(StrEnum):
    TRIALS_EXHAUSTED = "trials_exhausted"
    TIME_EXPIRED = "time_expired"
    POOL_EMPTY = "pool_empty"
    SUBMITTED = "submitted"


@dataclass(frozen=True, slots=True)
class Trial:
    prompt: str
    answer: object  # None: the correct behaviour is to withhold a response
    options: tuple[str, ...] = ()
    input_mode: InputMode = InputMode.CHOICE
    payload: object | None = None  # structured stimulus data for the UI
    content_key: object | None = None  # identity for anti-repeat checks
    timeout_s: float | None = None  # auto-miss window once responses open
    display_s: float = 0.0  # study window before responses open
    recall_prompt: str | None = None  # replaces the prompt once responses open
    presented_at_s: float | None = None


@dataclass(frozen=True, slots=True)
class Response:
    trial_index: int
    selection: object
    reaction_time_ms: int | None
    is_correct: bool
    timed_out: bool = False


@dataclass(frozen=True, slots=True)
class TrialRecord:
    trial: Trial
    response: Response


@dataclass(slots=True)
class SessionState:
    trials_target: int | None  # None: bounded by the countdown only
    time_left_s: int
    current_trial_index: int = 0
    is_complete: bool = False
    completion_reason: CompletionReason | None = None


@dataclass(slots=True)
class ScoreState:
    score: int = 0
    correct_count: int = 0
    attempted: int = 0
    reaction_times: list[int] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class DrillSnapshot:
    """View model for the UI (pure data)."""

    title: str
    phase: Phase
    prompt: str
    options: tuple[str, ...]
    input_mode: InputMode
    trial_index: int
    trials_target: int | None
    time_left_s: int
    score: int
    correct: int
    feedback: bool | None = None  # None while no feedback is shown
    payload: object | None = None


class TrialSource(Protocol):
    """Draws the next trial. ``None`` means no content is available."""

    def next_trial(self, *, history: Sequence[TrialRecord]) -> Trial | None:
        ...


class ScoringRule(Protocol):
    def delta(self, *, is_correct: bool, reaction_time_ms: int | None) -> int:
        """Points to add (or subtract) for one graded response."""
        ...


class DrillEngine(Protocol):
    """What the presentation shell and the session runner drive."""

    @property
    def phase(self) -> Phase: ...

    @property
    def is_complete(self) -> bool: ...

    def start(self) -> None: ...
    def update(self) -> None: ...
    def teardown(self) -> None: ...
    def snapshot(self) -> DrillSnapshot: ...


class SeededRng:
    """Simple seeded RNG wrapper to keep deterministic streams explicit."""

    def __init__(self, seed: int) -> None:
        self._rng = random.Random(int(seed))

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def random(self) -> float:
        return self._rng.random()

    def choice(self, seq: Sequence[T]) -> T:
        return self._rng.choice(seq)

    def uniform(self, a: float, b: float) -> float:
        return self._rng.uniform(a, b)

    def sample(self, seq: Sequence[T], k: int) -> list[T]:
        return self._rng.sample(list(seq), k)

    def shuffled(self, seq: Sequence[T]) -> list[T]:
        # Fisher-Yates on a copy so the draw order stays explicit.
        values = list(seq)
        for i in range(len(values) - 1, 0, -1):
            j = self._rng.randint(0, i)
            values[i], values[j] = values[j], values[i]
        return values


def insert_at_random(rng: SeededRng, items: Sequence[str], extra: str) -> tuple[tuple[str, ...], int]:
    """Insert ``extra`` at a uniformly random position; return (options, index)."""

    index = rng.randint(0, len(items))
    options = list(items)
    options.insert(index, extra)
    return tuple(options), index


def round_half_up(value: float) -> int:
    """Round halves up: 12.5 -> 13."""

    return int(math.floor(float(value) + 0.5))


def mean_or_none(values: Sequence[float]) -> float | None:
    if not values:
        return None
    return float(sum(values)) / float(len(values))


def shuffled_options(rng: SeededRng, answer: object, distractors: Sequence[object]) -> tuple[tuple[str, ...], int]:
    """Shuffle the answer in among its distractors; return (options, answer index).

    Options are compared as text. When a distractor collides with the answer
    the first occurrence wins.
    """

    options = tuple(str(v) for v in rng.shuffled([answer, *distractors]))
    return options, options.index(str(answer))


def has_duplicate_options(trial: Trial) -> bool:
    return len(set(trial.options)) != len(trial.options)
