from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .clock import Clock
from .core import SeededRng, Trial, TrialRecord
from .engine import CompletionCallback, SequencerConfig, TrialSequencer
from .results import proportion_result
from .scoring import GRID_SCORING

# Glyphs without a mirror symmetry, so a reflection is never a rotation.
GLYPHS: tuple[str, ...] = ("F", "R", "G", "J", "L", "P", "Q", "4", "7")
ROTATIONS: tuple[int, ...] = (0, 90, 180, 270)
OPTIONS: tuple[str, str] = ("Same", "Mirrored")


@dataclass(frozen=True, slots=True)
class RotationPayload:
    glyph: str
    rotation_deg: int
    mirrored: bool


class MentalRotationSource:
    def __init__(self, *, rng: SeededRng, response_window_s: float = 6.0) -> None:
        if response_window_s <= 0.0:
            raise ValueError("response_window_s must be > 0")
        self._rng = rng
        self._window_s = float(response_window_s)

    def next_trial(self, *, history: Sequence[TrialRecord]) -> Trial:
        _ = history
        glyph = self._rng.choice(GLYPHS)
        rotation = self._rng.choice(ROTATIONS[1:])
        mirrored = self._rng.random() < 0.5
        return Trial(
            prompt=f"Is the rotated {glyph} the same or mirrored?",
            answer=1 if mirrored else 0,
            options=OPTIONS,
            payload=RotationPayload(glyph=glyph, rotation_deg=rotation, mirrored=mirrored),
            timeout_s=self._window_s,
        )


def build_mental_rotation_drill(
    *,
    clock: Clock,
    seed: int,
    time_limit_s: int = 30,
    on_complete: CompletionCallback | None = None,
) -> TrialSequencer:
    return TrialSequencer(
        title="Mental Rotation",
        source=MentalRotationSource(rng=SeededRng(seed)),
        scoring=GRID_SCORING,
        clock=clock,
        config=SequencerConfig(time_limit_s=time_limit_s, trials_target=10, feedback_dwell_s=0.6),
        result_builder=proportion_result,
        on_complete=on_complete,
    )
