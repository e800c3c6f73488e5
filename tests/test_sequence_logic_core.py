from __future__ import annotations

from neurodrill.core import DifficultyTier, SeededRng, has_duplicate_options
from neurodrill.sequence_logic import (
    SequencePayload,
    arithmetic_sequence,
    fibonacci_sequence,
    generate_sequence_trial,
    geometric_sequence,
    square_sequence,
)


def test_sequence_families() -> None:
    assert arithmetic_sequence(3, 2) == ((3, 5, 7, 9), 11)
    assert geometric_sequence(3) == ((3, 6, 12, 24), 48)
    assert fibonacci_sequence(2, 3) == ((2, 3, 5, 8), 13)
    assert square_sequence(2) == ((4, 9, 16, 25), 36)


def test_answer_index_points_at_next_term() -> None:
    rng = SeededRng(123)
    for tier in DifficultyTier:
        for _ in range(30):
            trial = generate_sequence_trial(tier, rng)
            payload = trial.payload
            assert isinstance(payload, SequencePayload)
            terms = payload.terms
            if payload.family == "arithmetic":
                expected = terms[-1] + (terms[1] - terms[0])
            elif payload.family == "geometric":
                expected = terms[-1] * 2
            elif payload.family == "fibonacci":
                expected = terms[-2] + terms[-1]
            else:
                root = int(round(terms[-1] ** 0.5))
                expected = (root + 1) ** 2
            assert trial.options[trial.answer] == str(expected)
            assert len(trial.options) == 4


def test_easy_distractors_collide_only_for_unit_steps() -> None:
    rng = SeededRng(9)
    for _ in range(60):
        trial = generate_sequence_trial(DifficultyTier.EASY, rng)
        terms = trial.payload.terms
        step = terms[1] - terms[0]
        assert has_duplicate_options(trial) == (step == 1)


def test_generation_is_deterministic_per_seed() -> None:
    assert generate_sequence_trial(DifficultyTier.MEDIUM, SeededRng(42)) == generate_sequence_trial(
        DifficultyTier.MEDIUM, SeededRng(42)
    )

    rng_a, rng_b = SeededRng(5), SeededRng(5)
    for tier in (DifficultyTier.EASY, DifficultyTier.HARD):
        assert [generate_sequence_trial(tier, rng_a) for _ in range(5)] == [
            generate_sequence_trial(tier, rng_b) for _ in range(5)
        ]
