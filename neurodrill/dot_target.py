from __future__ import annotations

from dataclasses import dataclass

from .clock import Clock
from .core import SeededRng
from .engine import CompletionCallback
from .scoring import TAP_SCORING
from .spawner import SpawnConfig, SpawningDrill, Stimulus

DOT_RGB: dict[str, tuple[int, int, int]] = {
    "green": (34, 197, 94),
    "red": (239, 68, 68),
    "yellow": (234, 179, 8),
}


@dataclass(frozen=True, slots=True)
class DotTargetConfig:
    target_color: str = "green"
    target_p: float = 0.6
    margin: float = 0.1  # keep dots off the edges of the play area

    def __post_init__(self) -> None:
        if self.target_color not in DOT_RGB:
            raise ValueError(f"unknown target colour: {self.target_color!r}")
        if not (0.0 < self.target_p <= 1.0):
            raise ValueError("target_p must be in (0.0, 1.0]")
        if not (0.0 <= self.margin < 0.5):
            raise ValueError("margin must be in [0.0, 0.5)")


class DotFactory:
    """Target colour with probability ``target_p``; otherwise an even split of the rest."""

    def __init__(self, *, rng: SeededRng, config: DotTargetConfig) -> None:
        self._rng = rng
        self._cfg = config
        self._distractors = tuple(c for c in DOT_RGB if c != config.target_color)

    def __call__(self, stimulus_id: int, now_s: float) -> Stimulus:
        cfg = self._cfg
        if self._rng.random() < cfg.target_p:
            color = cfg.target_color
        else:
            color = self._rng.choice(self._distractors)
        return Stimulus(
            stimulus_id=stimulus_id,
            kind=color,
            is_target=color == cfg.target_color,
            x=self._rng.uniform(cfg.margin, 1.0 - cfg.margin),
            y=self._rng.uniform(cfg.margin, 1.0 - cfg.margin),
            spawned_at_s=now_s,
        )


def build_dot_target_drill(
    *,
    clock: Clock,
    seed: int,
    time_limit_s: int = 30,
    config: DotTargetConfig | None = None,
    on_complete: CompletionCallback | None = None,
) -> SpawningDrill:
    cfg = config or DotTargetConfig()
    return SpawningDrill(
        title="Dot Target",
        clock=clock,
        spawn=DotFactory(rng=SeededRng(seed), config=cfg),
        scoring=TAP_SCORING,
        config=SpawnConfig(time_limit_s=time_limit_s),
        on_complete=on_complete,
    )
