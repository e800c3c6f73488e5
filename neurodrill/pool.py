from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import Generic, TypeVar

from .core import DifficultyTier, SeededRng, Trial, TrialRecord

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")

TrialBuilder = Callable[[ItemT, SeededRng], Trial]
TrialGenerator = Callable[[DifficultyTier, SeededRng], Trial]


class CatalogPool(Generic[ItemT]):
    """Anti-repeat draw over a fixed catalog of items.

    Draws uniformly among indices not yet used. When every index has been
    used the set is cleared. By default the first draw after that reset skips
    the index shown last, so two consecutive trials never share content while
    the catalog holds at least two items. ``allow_repeat_after_reset`` keeps
    the plain reset, which can repeat the last item once.
    """

    def __init__(
        self,
        items: Sequence[ItemT],
        *,
        build: TrialBuilder[ItemT],
        rng: SeededRng,
        allow_repeat_after_reset: bool = False,
    ) -> None:
        self._items = tuple(items)
        self._build = build
        self._rng = rng
        self._allow_repeat_after_reset = bool(allow_repeat_after_reset)
        self._used: set[int] = set()
        self._last_index: int | None = None

        if not self._items:
            logger.warning("catalog pool created with no items; drills using it end immediately")

    def __len__(self) -> int:
        return len(self._items)

    @property
    def last_index(self) -> int | None:
        return self._last_index

    def draw_index(self) -> int | None:
        if not self._items:
            return None

        available = [i for i in range(len(self._items)) if i not in self._used]
        if not available:
            self._used.clear()
            available = list(range(len(self._items)))
            if (
                not self._allow_repeat_after_reset
                and self._last_index is not None
                and len(available) > 1
            ):
                available.remove(self._last_index)

        index = int(self._rng.choice(available))
        self._used.add(index)
        self._last_index = index
        return index

    def next_trial(self, *, history: Sequence[TrialRecord]) -> Trial | None:
        _ = history
        index = self.draw_index()
        if index is None:
            return None
        trial = self._build(self._items[index], self._rng)
        if trial.content_key is None:
            return replace(trial, content_key=index)
        return trial


class GeneratorPool:
    """Procedural pool: a pure generator called fresh for every trial."""

    def __init__(self, generate: TrialGenerator, *, tier: DifficultyTier, rng: SeededRng) -> None:
        self._generate = generate
        self._tier = DifficultyTier(tier)
        self._rng = rng

    @property
    def tier(self) -> DifficultyTier:
        return self._tier

    def next_trial(self, *, history: Sequence[TrialRecord]) -> Trial | None:
        _ = history
        return self._generate(self._tier, self._rng)

