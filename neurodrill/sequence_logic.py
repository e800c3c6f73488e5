from __future__ import annotations

from dataclasses import dataclass

from .clock import Clock
from .core import DifficultyTier, SeededRng, Trial, shuffled_options
from .engine import CompletionCallback, SequencerConfig, TrialSequencer
from .pool import GeneratorPool
from .scoring import SEQUENCE_SCORING


@dataclass(frozen=True, slots=True)
class SequencePayload:
    terms: tuple[int, ...]
    family: str


def arithmetic_sequence(start: int, step: int, length: int = 4) -> tuple[tuple[int, ...], int]:
    """Return (shown terms, next term) for ``start, start+step, ...``."""

    terms = tuple(start + step * i for i in range(length))
    return terms, start + step * length


def geometric_sequence(start: int, ratio: int = 2, length: int = 4) -> tuple[tuple[int, ...], int]:
    terms = tuple(start * ratio**i for i in range(length))
    return terms, start * ratio**length


def fibonacci_sequence(a: int, b: int) -> tuple[tuple[int, ...], int]:
    terms = (a, b, a + b, a + 2 * b)
    return terms, terms[2] + terms[3]


def square_sequence(start: int, length: int = 4) -> tuple[tuple[int, ...], int]:
    terms = tuple((start + i) ** 2 for i in range(length))
    return terms, (start + length) ** 2


def _make_trial(rng: SeededRng, family: str, terms: tuple[int, ...], answer: int, distractors: list[int]) -> Trial:
    options, index = shuffled_options(rng, answer, distractors)
    return Trial(
        prompt=", ".join(str(t) for t in terms) + ", ?",
        answer=index,
        options=options,
        payload=SequencePayload(terms=terms, family=family),
    )


def generate_sequence_trial(tier: DifficultyTier, rng: SeededRng) -> Trial:
    """One next-term puzzle. Distractors are plain perturbations and may collide."""

    tier = DifficultyTier(tier)
    if tier is DifficultyTier.EASY:
        step = rng.randint(1, 3)
        terms, answer = arithmetic_sequence(rng.randint(1, 10), step)
        return _make_trial(rng, "arithmetic", terms, answer, [answer + 1, answer - 1, answer + step])

    if tier is DifficultyTier.MEDIUM:
        if rng.random() < 0.5:
            terms, answer = geometric_sequence(rng.randint(1, 5))
            return _make_trial(rng, "geometric", terms, answer, [answer // 2, answer + 4, answer * 2])
        terms, answer = fibonacci_sequence(rng.randint(1, 3), rng.randint(2, 4))
        return _make_trial(rng, "fibonacci", terms, answer, [answer + 1, answer - 1, answer + 2])

    start = rng.randint(1, 3)
    terms, answer = square_sequence(start)
    return _make_trial(rng, "square", terms, answer, [answer + 1, answer - 1, (start + 5) ** 2])


def build_sequence_logic_drill(
    *,
    clock: Clock,
    seed: int,
    tier: DifficultyTier = DifficultyTier.EASY,
    time_limit_s: int = 30,
    on_complete: CompletionCallback | None = None,
) -> TrialSequencer:
    return TrialSequencer(
        title="Sequence Logic",
        source=GeneratorPool(generate_sequence_trial, tier=tier, rng=SeededRng(seed)),
        scoring=SEQUENCE_SCORING,
        clock=clock,
        config=SequencerConfig(time_limit_s=time_limit_s, trials_target=8, feedback_dwell_s=1.0),
        on_complete=on_complete,
    )
