from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .clock import Clock
from .core import SeededRng, Trial, TrialRecord
from .engine import CompletionCallback, SequencerConfig, TrialSequencer
from .scoring import SEARCH_SCORING, ReactionTimePolicy


@dataclass(frozen=True, slots=True)
class VisualSearchConfig:
    grid_size: int = 4
    target_glyph: str = "T"
    distractor_glyph: str = "L"
    trials: int = 10
    ready_delay_s: float = 1.5
    feedback_dwell_s: float = 0.6

    def __post_init__(self) -> None:
        if self.grid_size < 2:
            raise ValueError("grid_size must be >= 2")
        if self.trials <= 0:
            raise ValueError("trials must be > 0")
        if self.target_glyph == self.distractor_glyph:
            raise ValueError("target and distractor glyphs must differ")


@dataclass(frozen=True, slots=True)
class SearchCell:
    glyph: str
    rotation_deg: int


@dataclass(frozen=True, slots=True)
class VisualSearchPayload:
    grid_size: int
    cells: tuple[SearchCell, ...]
    target_index: int


class VisualSearchGenerator:
    """One target among rotated distractors, placed uniformly at random."""

    def __init__(self, *, rng: SeededRng, config: VisualSearchConfig) -> None:
        self._rng = rng
        self._cfg = config

    def next_trial(self, *, history: Sequence[TrialRecord]) -> Trial:
        _ = history
        total = self._cfg.grid_size * self._cfg.grid_size
        target = self._rng.randint(0, total - 1)
        cells = tuple(
            SearchCell(
                glyph=self._cfg.target_glyph if i == target else self._cfg.distractor_glyph,
                rotation_deg=self._rng.randint(0, 3) * 90,
            )
            for i in range(total)
        )
        return Trial(
            prompt=f"Find the {self._cfg.target_glyph}",
            answer=target,
            options=tuple(c.glyph for c in cells),
            payload=VisualSearchPayload(grid_size=self._cfg.grid_size, cells=cells, target_index=target),
        )


def build_visual_search_drill(
    *,
    clock: Clock,
    seed: int,
    time_limit_s: int = 30,
    config: VisualSearchConfig | None = None,
    on_complete: CompletionCallback | None = None,
) -> TrialSequencer:
    cfg = config or VisualSearchConfig()
    return TrialSequencer(
        title="Visual Search",
        source=VisualSearchGenerator(rng=SeededRng(seed), config=cfg),
        scoring=SEARCH_SCORING,
        clock=clock,
        config=SequencerConfig(
            time_limit_s=time_limit_s,
            trials_target=cfg.trials,
            feedback_dwell_s=cfg.feedback_dwell_s,
            ready_delay_s=cfg.ready_delay_s,
            rt_policy=ReactionTimePolicy.CORRECT_ONLY,
        ),
        on_complete=on_complete,
    )
