"""Task-switching drills: the same stimulus is judged under a rule that changes."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from .clock import Clock
from .core import InputMode, SeededRng, Trial, TrialRecord
from .engine import CompletionCallback, SequencerConfig, TrialSequencer
from .scoring import GRID_SCORING

logger = logging.getLogger(__name__)


class CategoryRule(StrEnum):
    COLOR = "color"
    SHAPE = "shape"
    SIZE = "size"


CATEGORY_VALUES: dict[CategoryRule, tuple[str, ...]] = {
    CategoryRule.COLOR: ("red", "blue", "green"),
    CategoryRule.SHAPE: ("circle", "square", "triangle"),
    CategoryRule.SIZE: ("small", "large"),
}


@dataclass(frozen=True, slots=True)
class CategoryItem:
    shape: str
    color: str
    size: str

    def value_for(self, rule: CategoryRule) -> str:
        return getattr(self, CategoryRule(rule).value)


@dataclass(frozen=True, slots=True)
class CategoryPayload:
    item: CategoryItem
    rule: CategoryRule


class CategorySwitchSource:
    """Random items; after each trial the rule moves on with probability ``switch_p``."""

    def __init__(self, *, rng: SeededRng, switch_p: float = 0.5) -> None:
        if not (0.0 <= switch_p <= 1.0):
            raise ValueError("switch_p must be in [0.0, 1.0]")
        self._rng = rng
        self._switch_p = float(switch_p)
        self._rule: CategoryRule | None = None

    @property
    def rule(self) -> CategoryRule | None:
        return self._rule

    def next_trial(self, *, history: Sequence[TrialRecord]) -> Trial:
        rules = list(CategoryRule)
        if self._rule is None:
            self._rule = self._rng.choice(rules)
        elif history and self._rng.random() < self._switch_p:
            self._rule = rules[(rules.index(self._rule) + 1) % len(rules)]
            logger.debug("category rule -> %s", self._rule.value)

        item = CategoryItem(
            shape=self._rng.choice(CATEGORY_VALUES[CategoryRule.SHAPE]),
            color=self._rng.choice(CATEGORY_VALUES[CategoryRule.COLOR]),
            size=self._rng.choice(CATEGORY_VALUES[CategoryRule.SIZE]),
        )
        options = tuple(v.capitalize() for v in CATEGORY_VALUES[self._rule])
        return Trial(
            prompt=f"Sort by {self._rule.value.upper()}\n{item.size} {item.color} {item.shape}",
            answer=CATEGORY_VALUES[self._rule].index(item.value_for(self._rule)),
            options=options,
            payload=CategoryPayload(item=item, rule=self._rule),
        )


class NumberRule(StrEnum):
    GREATER = "greater"
    SMALLER = "smaller"
    EVEN = "even"
    ODD = "odd"


RULE_LABELS: dict[NumberRule, str] = {
    NumberRule.GREATER: "Greater than 5?",
    NumberRule.SMALLER: "Smaller than 5?",
    NumberRule.EVEN: "Is it even?",
    NumberRule.ODD: "Is it odd?",
}


def rule_holds(number: int, rule: NumberRule) -> bool:
    rule = NumberRule(rule)
    if rule is NumberRule.GREATER:
        return number > 5
    if rule is NumberRule.SMALLER:
        return number < 5
    if rule is NumberRule.EVEN:
        return number % 2 == 0
    return number % 2 != 0


@dataclass(frozen=True, slots=True)
class RuleSwitchPayload:
    number: int
    rule: NumberRule
    rule_changed: bool


class RuleSwitchSource:
    """Digit 1-9 judged yes/no; the rule changes every ``switch_frequency`` trials."""

    def __init__(self, *, rng: SeededRng, switch_frequency: int = 4) -> None:
        if switch_frequency <= 0:
            raise ValueError("switch_frequency must be > 0")
        self._rng = rng
        self._switch_frequency = int(switch_frequency)
        self._rule: NumberRule | None = None
        self._dealt = 0

    @property
    def rule(self) -> NumberRule | None:
        return self._rule

    def next_trial(self, *, history: Sequence[TrialRecord]) -> Trial:
        _ = history
        changed = False
        if self._rule is None:
            self._rule = self._rng.choice(list(NumberRule))
        elif self._dealt % self._switch_frequency == 0:
            self._rule = self._rng.choice([r for r in NumberRule if r is not self._rule])
            changed = True
        self._dealt += 1

        number = self._rng.randint(1, 9)
        prefix = "Rule change! " if changed else ""
        return Trial(
            prompt=f"{prefix}{RULE_LABELS[self._rule]}\n{number}",
            answer=rule_holds(number, self._rule),
            options=("Yes", "No"),
            input_mode=InputMode.YES_NO,
            payload=RuleSwitchPayload(number=number, rule=self._rule, rule_changed=changed),
        )


def build_category_switch_drill(
    *,
    clock: Clock,
    seed: int,
    time_limit_s: int = 30,
    on_complete: CompletionCallback | None = None,
) -> TrialSequencer:
    return TrialSequencer(
        title="Category Switch",
        source=CategorySwitchSource(rng=SeededRng(seed)),
        scoring=GRID_SCORING,
        clock=clock,
        config=SequencerConfig(time_limit_s=time_limit_s, trials_target=20, feedback_dwell_s=0.8),
        on_complete=on_complete,
    )


def build_rule_switch_drill(
    *,
    clock: Clock,
    seed: int,
    time_limit_s: int = 30,
    switch_frequency: int = 4,
    on_complete: CompletionCallback | None = None,
) -> TrialSequencer:
    return TrialSequencer(
        title="Rule Switch",
        source=RuleSwitchSource(rng=SeededRng(seed), switch_frequency=switch_frequency),
        scoring=GRID_SCORING,
        clock=clock,
        config=SequencerConfig(time_limit_s=time_limit_s, trials_target=20, feedback_dwell_s=0.6),
        on_complete=on_complete,
    )
