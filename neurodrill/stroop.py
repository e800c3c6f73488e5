from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .clock import Clock
from .core import SeededRng, Trial, TrialRecord
from .engine import CompletionCallback, SequencerConfig, TrialSequencer
from .scoring import GRID_SCORING

COLOR_WORDS: tuple[str, ...] = ("RED", "BLUE", "GREEN", "YELLOW")
INK_RGB: dict[str, tuple[int, int, int]] = {
    "RED": (239, 68, 68),
    "BLUE": (59, 130, 246),
    "GREEN": (34, 197, 94),
    "YELLOW": (234, 179, 8),
}


@dataclass(frozen=True, slots=True)
class StroopConfig:
    trials: int = 15
    response_window_s: float = 3.0
    feedback_dwell_s: float = 0.5
    incongruent_p: float = 0.7

    def __post_init__(self) -> None:
        if self.trials <= 0:
            raise ValueError("trials must be > 0")
        if self.response_window_s <= 0.0:
            raise ValueError("response_window_s must be > 0")
        if not (0.0 <= self.incongruent_p <= 1.0):
            raise ValueError("incongruent_p must be in [0.0, 1.0]")


@dataclass(frozen=True, slots=True)
class StroopPayload:
    word: str
    ink: str

    @property
    def congruent(self) -> bool:
        return self.word == self.ink


class StroopSource:
    def __init__(self, *, rng: SeededRng, config: StroopConfig) -> None:
        self._rng = rng
        self._cfg = config

    def next_trial(self, *, history: Sequence[TrialRecord]) -> Trial:
        _ = history
        word = self._rng.choice(COLOR_WORDS)
        if self._rng.random() < self._cfg.incongruent_p:
            ink = self._rng.choice([c for c in COLOR_WORDS if c != word])
        else:
            ink = word
        return Trial(
            prompt=f"Name the INK colour\n{word}",
            answer=COLOR_WORDS.index(ink),
            options=tuple(c.capitalize() for c in COLOR_WORDS),
            payload=StroopPayload(word=word, ink=ink),
            timeout_s=self._cfg.response_window_s,
        )


def build_stroop_drill(
    *,
    clock: Clock,
    seed: int,
    time_limit_s: int = 30,
    config: StroopConfig | None = None,
    on_complete: CompletionCallback | None = None,
) -> TrialSequencer:
    cfg = config or StroopConfig()
    return TrialSequencer(
        title="Stroop",
        source=StroopSource(rng=SeededRng(seed), config=cfg),
        scoring=GRID_SCORING,
        clock=clock,
        config=SequencerConfig(
            time_limit_s=time_limit_s,
            trials_target=cfg.trials,
            feedback_dwell_s=cfg.feedback_dwell_s,
        ),
        on_complete=on_complete,
    )
