from __future__ import annotations

from collections.abc import Sequence

from neurodrill.core import DifficultyTier, SeededRng, Trial
from neurodrill.pool import CatalogPool, GeneratorPool


def _build(item: str, rng: SeededRng) -> Trial:
    _ = rng
    return Trial(prompt=item, answer=0, options=(item,))


class ScriptedRng(SeededRng):
    """Picks ``available[k]`` for each scripted ``k``."""

    def __init__(self, picks: Sequence[int]) -> None:
        super().__init__(0)
        self._picks = list(picks)

    def choice(self, seq):  # type: ignore[override]
        k = self._picks.pop(0)
        return seq[min(k, len(seq) - 1)]


def test_no_consecutive_repeats_across_many_cycles() -> None:
    items = ["a", "b", "c", "d"]
    pool = CatalogPool(items, build=_build, rng=SeededRng(7))

    drawn = [pool.draw_index() for _ in range(40)]
    for prev, cur in zip(drawn, drawn[1:]):
        assert prev != cur


def test_each_cycle_uses_every_item_once() -> None:
    items = ["a", "b", "c", "d", "e"]
    pool = CatalogPool(items, build=_build, rng=SeededRng(11))

    for _ in range(4):
        cycle = [pool.draw_index() for _ in range(len(items))]
        assert sorted(cycle) == list(range(len(items)))


def test_single_item_catalog_repeats() -> None:
    pool = CatalogPool(["only"], build=_build, rng=SeededRng(1))
    assert [pool.draw_index() for _ in range(3)] == [0, 0, 0]


def test_empty_catalog_yields_no_trial() -> None:
    pool = CatalogPool([], build=_build, rng=SeededRng(1))
    assert len(pool) == 0
    assert pool.draw_index() is None
    assert pool.next_trial(history=[]) is None


def test_trial_content_key_is_catalog_index() -> None:
    items = ["x", "y", "z"]
    pool = CatalogPool(items, build=_build, rng=SeededRng(3))
    trial = pool.next_trial(history=[])
    assert trial is not None
    assert trial.content_key == pool.last_index
    assert trial.prompt == items[pool.last_index]


def test_reset_skips_last_item_unless_allowed() -> None:
    # Second cycle: both indices available again, script picks the last one shown.
    strict = CatalogPool(["a", "b"], build=_build, rng=ScriptedRng([0, 0, 1]))
    assert [strict.draw_index() for _ in range(3)] == [0, 1, 0]

    loose = CatalogPool(["a", "b"], build=_build, rng=ScriptedRng([0, 0, 1]), allow_repeat_after_reset=True)
    assert [loose.draw_index() for _ in range(3)] == [0, 1, 1]


def test_generator_pool_calls_generator_with_tier() -> None:
    seen: list[DifficultyTier] = []

    def generate(tier: DifficultyTier, rng: SeededRng) -> Trial:
        seen.append(tier)
        return Trial(prompt=str(rng.randint(0, 9)), answer=0)

    pool = GeneratorPool(generate, tier=DifficultyTier.HARD, rng=SeededRng(5))
    assert pool.next_trial(history=[]) is not None
    assert pool.next_trial(history=[]) is not None
    assert seen == [DifficultyTier.HARD, DifficultyTier.HARD]
    assert pool.tier is DifficultyTier.HARD
