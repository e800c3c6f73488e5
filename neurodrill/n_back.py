from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .clock import Clock
from .core import InputMode, SeededRng, Trial, TrialRecord
from .engine import CompletionCallback, SequencerConfig, TrialSequencer
from .scoring import GRID_SCORING

NBACK_SHAPES: tuple[str, ...] = ("circle", "square", "triangle", "star", "diamond")


@dataclass(frozen=True, slots=True)
class NBackConfig:
    n: int = 2
    trials: int = 20
    window_s: float = 1.5
    interval_s: float = 0.5
    match_p: float = 0.3

    def __post_init__(self) -> None:
        if self.n <= 0:
            raise ValueError("n must be > 0")
        if self.trials <= 0:
            raise ValueError("trials must be > 0")
        if self.window_s <= 0.0:
            raise ValueError("window_s must be > 0")
        if not (0.0 <= self.match_p <= 1.0):
            raise ValueError("match_p must be in [0.0, 1.0]")


@dataclass(frozen=True, slots=True)
class NBackPayload:
    shape: str
    position: int
    is_match: bool


class NBackSource:
    """Shape stream; tap when the shape equals the one ``n`` steps back.

    ``stream`` holds every shape dealt, graded or not.
    """

    def __init__(self, *, rng: SeededRng, config: NBackConfig) -> None:
        self._rng = rng
        self._cfg = config
        self._stream: list[str] = []

    @property
    def stream(self) -> tuple[str, ...]:
        return tuple(self._stream)

    def next_trial(self, *, history: Sequence[TrialRecord]) -> Trial:
        _ = history
        n = self._cfg.n
        back = self._stream[-n] if len(self._stream) >= n else None
        if back is not None and self._rng.random() < self._cfg.match_p:
            shape = back
        else:
            shape = self._rng.choice([s for s in NBACK_SHAPES if s != back])
        is_match = shape == back
        self._stream.append(shape)

        return Trial(
            prompt=f"{shape}\nTap if it matches {n} back",
            answer=True if is_match else None,
            options=("Match",),
            input_mode=InputMode.TAP,
            payload=NBackPayload(shape=shape, position=len(self._stream) - 1, is_match=is_match),
            timeout_s=self._cfg.window_s,
        )


def build_n_back_drill(
    *,
    clock: Clock,
    seed: int,
    time_limit_s: int = 45,
    config: NBackConfig | None = None,
    on_complete: CompletionCallback | None = None,
) -> TrialSequencer:
    cfg = config or NBackConfig()
    return TrialSequencer(
        title=f"{cfg.n}-Back",
        source=NBackSource(rng=SeededRng(seed), config=cfg),
        scoring=GRID_SCORING,
        clock=clock,
        config=SequencerConfig(
            time_limit_s=time_limit_s,
            trials_target=cfg.trials,
            feedback_dwell_s=cfg.interval_s,
        ),
        on_complete=on_complete,
    )
