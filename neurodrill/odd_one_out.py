from __future__ import annotations

from dataclasses import dataclass

from .clock import Clock
from .core import SeededRng, Trial, insert_at_random
from .engine import CompletionCallback, SequencerConfig, TrialSequencer
from .pool import CatalogPool
from .scoring import GRID_SCORING


@dataclass(frozen=True, slots=True)
class OddOnePattern:
    regular: tuple[str, str, str]
    odd: str


PATTERNS: tuple[OddOnePattern, ...] = (
    OddOnePattern(("apple", "orange", "lemon"), "car"),
    OddOnePattern(("dog", "cat", "mouse"), "tree"),
    OddOnePattern(("black", "black", "black"), "white"),
    OddOnePattern(("blue", "blue", "blue"), "red"),
    OddOnePattern(("triangle", "triangle", "triangle"), "square"),
    OddOnePattern(("A", "E", "I"), "B"),
    OddOnePattern(("sun", "moon", "star"), "guitar"),
    OddOnePattern(("up", "up", "up"), "down"),
    OddOnePattern(("house", "office", "castle"), "flower"),
    OddOnePattern(("plane", "car", "ship"), "books"),
    OddOnePattern(("grin", "smile", "laugh"), "tears"),
    OddOnePattern(("piano", "guitar", "trumpet"), "basketball"),
    OddOnePattern(("blossom", "tulip", "rose"), "wrench"),
    OddOnePattern(("spark", "bang", "flash"), "turtle"),
    OddOnePattern(("pizza", "burger", "hot dog"), "phone"),
)


def build_odd_one_out_trial(pattern: OddOnePattern, rng: SeededRng) -> Trial:
    options, odd_index = insert_at_random(rng, pattern.regular, pattern.odd)
    return Trial(prompt="Which one doesn't belong?", answer=odd_index, options=options)


def build_odd_one_out_drill(
    *,
    clock: Clock,
    seed: int,
    time_limit_s: int = 30,
    on_complete: CompletionCallback | None = None,
) -> TrialSequencer:
    return TrialSequencer(
        title="Odd One Out",
        source=CatalogPool(PATTERNS, build=build_odd_one_out_trial, rng=SeededRng(seed)),
        scoring=GRID_SCORING,
        clock=clock,
        config=SequencerConfig(time_limit_s=time_limit_s, trials_target=10, feedback_dwell_s=0.8),
        on_complete=on_complete,
    )
