from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .clock import Clock
from .core import InputMode, SeededRng, Trial, TrialRecord
from .engine import CompletionCallback, SequencerConfig, TrialSequencer
from .results import signal_detection_result
from .scoring import GRID_SCORING, ReactionTimePolicy

GO_COLOR = "#22c55e"
NO_GO_COLOR = "#ef4444"


@dataclass(frozen=True, slots=True)
class GoNoGoConfig:
    trials: int = 20
    window_s: float = 0.8
    go_p: float = 0.7
    feedback_dwell_s: float = 0.5

    def __post_init__(self) -> None:
        if self.trials <= 0:
            raise ValueError("trials must be > 0")
        if self.window_s <= 0.0:
            raise ValueError("window_s must be > 0")
        if not (0.0 <= self.go_p <= 1.0):
            raise ValueError("go_p must be in [0.0, 1.0]")


@dataclass(frozen=True, slots=True)
class GoNoGoPayload:
    go: bool
    color: str


class GoNoGoSource:
    """Tap on green, withhold on red. Withholding on red is the correct answer."""

    def __init__(self, *, rng: SeededRng, config: GoNoGoConfig) -> None:
        self._rng = rng
        self._cfg = config

    def next_trial(self, *, history: Sequence[TrialRecord]) -> Trial:
        _ = history
        go = self._rng.random() < self._cfg.go_p
        return Trial(
            prompt="TAP!" if go else "Wait...",
            answer=True if go else None,
            options=("Tap",),
            input_mode=InputMode.TAP,
            payload=GoNoGoPayload(go=go, color=GO_COLOR if go else NO_GO_COLOR),
            timeout_s=self._cfg.window_s,
        )


def build_go_no_go_drill(
    *,
    clock: Clock,
    seed: int,
    time_limit_s: int = 30,
    config: GoNoGoConfig | None = None,
    on_complete: CompletionCallback | None = None,
) -> TrialSequencer:
    cfg = config or GoNoGoConfig()
    return TrialSequencer(
        title="Go / No-Go",
        source=GoNoGoSource(rng=SeededRng(seed), config=cfg),
        scoring=GRID_SCORING,
        clock=clock,
        config=SequencerConfig(
            time_limit_s=time_limit_s,
            trials_target=cfg.trials,
            feedback_dwell_s=cfg.feedback_dwell_s,
            rt_policy=ReactionTimePolicy.CORRECT_ONLY,
        ),
        result_builder=signal_detection_result,
        on_complete=on_complete,
    )
