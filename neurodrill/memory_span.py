"""Study-then-recall drills whose length adapts to performance.

The length of the next trial is replayed from the graded history, so a
source holds no progression state of its own.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from .clock import Clock
from .core import InputMode, ScoreState, SeededRng, Trial, TrialRecord
from .engine import CompletionCallback, SequencerConfig, TrialSequencer
from .results import LevelResult, SpanResult
from .scoring import FlatScoring

logger = logging.getLogger(__name__)

MATRIX_COLORS: tuple[str, ...] = ("#22c55e", "#3b82f6", "#ef4444", "#eab308")


@dataclass(frozen=True, slots=True)
class SpanConfig:
    start_length: int = 3
    max_length: int = 9
    per_item_s: float = 0.8
    trials_per_length: int = 2

    def __post_init__(self) -> None:
        if self.start_length <= 0:
            raise ValueError("start_length must be > 0")
        if self.max_length < self.start_length:
            raise ValueError("max_length must be >= start_length")
        if self.per_item_s <= 0.0:
            raise ValueError("per_item_s must be > 0")
        if self.trials_per_length <= 0:
            raise ValueError("trials_per_length must be > 0")


@dataclass(frozen=True, slots=True)
class GridRecallConfig:
    grid_size: int = 3
    start_length: int = 3
    max_length: int = 7
    per_cell_s: float = 0.6  # flash plus gap
    distinct_cells: bool = False
    colors: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.grid_size < 2:
            raise ValueError("grid_size must be >= 2")
        if self.start_length <= 0:
            raise ValueError("start_length must be > 0")
        if self.max_length < self.start_length:
            raise ValueError("max_length must be >= start_length")
        if self.distinct_cells and self.max_length > self.grid_size * self.grid_size:
            raise ValueError("max_length exceeds the number of grid cells")
        if self.per_cell_s <= 0.0:
            raise ValueError("per_cell_s must be > 0")


PATTERN_SEQUENCE_CONFIG = GridRecallConfig()
MEMORY_MATRIX_CONFIG = GridRecallConfig(
    max_length=8,
    per_cell_s=0.8,
    distinct_cells=True,
    colors=MATRIX_COLORS,
)


@dataclass(frozen=True, slots=True)
class RecallPayload:
    items: tuple[int, ...]
    length: int
    grid_size: int | None = None
    colors: tuple[str, ...] = ()


def _length_of(record: TrialRecord) -> int:
    payload = record.trial.payload
    assert isinstance(payload, RecallPayload)
    return payload.length


def next_span_length(history: Sequence[TrialRecord], config: SpanConfig) -> int | None:
    """Each length gets ``trials_per_length`` attempts; at least one must pass.

    Returns None once a length is failed or the maximum length is done.
    """

    length = config.start_length
    attempts = 0
    passed = False
    for record in history:
        attempts += 1
        passed = passed or record.response.is_correct
        if attempts < config.trials_per_length:
            continue
        if not passed:
            return None
        length += 1
        attempts = 0
        passed = False
        if length > config.max_length:
            return None
    return length


def next_level(history: Sequence[TrialRecord], config: GridRecallConfig) -> int:
    """Up one after a correct recall, down one after a miss, within bounds."""

    level = config.start_length
    for record in history:
        if record.response.is_correct:
            level = min(level + 1, config.max_length)
        else:
            level = max(level - 1, config.start_length)
    return level


class DigitSpanSource:
    def __init__(self, *, rng: SeededRng, config: SpanConfig) -> None:
        self._rng = rng
        self._cfg = config

    def next_trial(self, *, history: Sequence[TrialRecord]) -> Trial | None:
        length = next_span_length(history, self._cfg)
        if length is None:
            return None
        digits = tuple(self._rng.randint(0, 9) for _ in range(length))
        return Trial(
            prompt=" ".join(str(d) for d in digits),
            recall_prompt="Type the digits in order",
            answer="".join(str(d) for d in digits),
            input_mode=InputMode.TEXT,
            payload=RecallPayload(items=digits, length=length),
            display_s=self._cfg.per_item_s * length,
        )


class GridRecallSource:
    """Cells flashed in order on a square grid; recall the order."""

    def __init__(self, *, rng: SeededRng, config: GridRecallConfig) -> None:
        self._rng = rng
        self._cfg = config

    def next_trial(self, *, history: Sequence[TrialRecord]) -> Trial:
        cfg = self._cfg
        length = next_level(history, cfg)
        cell_count = cfg.grid_size * cfg.grid_size
        if cfg.distinct_cells:
            cells = tuple(self._rng.sample(range(cell_count), length))
        else:
            picked: list[int] = []
            for _ in range(length):
                # No cell flashes twice in a row.
                picked.append(self._rng.choice([c for c in range(cell_count) if not picked or c != picked[-1]]))
            cells = tuple(picked)
        colors = tuple(self._rng.choice(cfg.colors) for _ in cells) if cfg.colors else ()

        return Trial(
            prompt=f"Watch {length} cells",
            recall_prompt="Repeat the pattern",
            answer=cells,
            input_mode=InputMode.CELLS,
            payload=RecallPayload(items=cells, length=length, grid_size=cfg.grid_size, colors=colors),
            display_s=cfg.per_cell_s * length,
        )


def span_result(state: ScoreState, records: Sequence[TrialRecord]) -> SpanResult:
    max_span = max((_length_of(r) for r in records if r.response.is_correct), default=0)
    return SpanResult(
        max_span=max_span,
        correct=int(state.correct_count),
        total=int(state.attempted),
        reaction_times=tuple(state.reaction_times),
    )


def level_result(state: ScoreState, records: Sequence[TrialRecord]) -> LevelResult:
    correct_lengths = [_length_of(r) for r in records if r.response.is_correct]
    return LevelResult(
        score=sum(10 * n for n in correct_lengths),
        max_level=max(correct_lengths, default=0),
        total_correct=int(state.correct_count),
        reaction_times=tuple(state.reaction_times),
    )


def build_digit_span_drill(
    *,
    clock: Clock,
    seed: int,
    time_limit_s: int = 45,
    config: SpanConfig | None = None,
    on_complete: CompletionCallback | None = None,
) -> TrialSequencer:
    cfg = config or SpanConfig()
    return TrialSequencer(
        title="Digit Span",
        source=DigitSpanSource(rng=SeededRng(seed), config=cfg),
        scoring=FlatScoring(reward=10, penalty=0),
        clock=clock,
        config=SequencerConfig(time_limit_s=time_limit_s, trials_target=None, feedback_dwell_s=0.8),
        result_builder=span_result,
        on_complete=on_complete,
    )


def _build_grid_recall(
    *,
    title: str,
    clock: Clock,
    seed: int,
    time_limit_s: int,
    config: GridRecallConfig,
    on_complete: CompletionCallback | None,
) -> TrialSequencer:
    logger.debug("%s: grid %d, levels %d-%d", title, config.grid_size, config.start_length, config.max_length)
    return TrialSequencer(
        title=title,
        source=GridRecallSource(rng=SeededRng(seed), config=config),
        scoring=FlatScoring(reward=10, penalty=0),
        clock=clock,
        config=SequencerConfig(time_limit_s=time_limit_s, trials_target=None, feedback_dwell_s=0.8),
        result_builder=level_result,
        on_complete=on_complete,
    )


def build_pattern_sequence_drill(
    *,
    clock: Clock,
    seed: int,
    time_limit_s: int = 30,
    config: GridRecallConfig | None = None,
    on_complete: CompletionCallback | None = None,
) -> TrialSequencer:
    return _build_grid_recall(
        title="Pattern Sequence",
        clock=clock,
        seed=seed,
        time_limit_s=time_limit_s,
        config=config or PATTERN_SEQUENCE_CONFIG,
        on_complete=on_complete,
    )


def build_memory_matrix_drill(
    *,
    clock: Clock,
    seed: int,
    time_limit_s: int = 30,
    config: GridRecallConfig | None = None,
    on_complete: CompletionCallback | None = None,
) -> TrialSequencer:
    return _build_grid_recall(
        title="Memory Matrix",
        clock=clock,
        seed=seed,
        time_limit_s=time_limit_s,
        config=config or MEMORY_MATRIX_CONFIG,
        on_complete=on_complete,
    )
