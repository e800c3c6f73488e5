from __future__ import annotations

import logging
import re

from .clock import Clock
from .core import CompletionReason, DrillSnapshot, InputMode, Phase, SessionState, round_half_up
from .engine import CompletionCallback
from .results import WordCountResult
from .timers import TimerCoordinator

logger = logging.getLogger(__name__)

DEFAULT_DURATION_S = 180
FULL_CREDIT_WORDS = 30
DEPTH_BONUS_WORDS = 50
DEPTH_BONUS = 10

_DURATION_RE = re.compile(r"^\s*(\d+)\s*(min|m|s)?\s*$", re.IGNORECASE)


def parse_duration_s(text: str) -> int:
    """``"3min"`` -> 180, ``"45s"`` -> 45. Anything unparseable is the default."""

    m = _DURATION_RE.match(str(text))
    if m is None:
        return DEFAULT_DURATION_S
    value = int(m.group(1))
    unit = (m.group(2) or "").lower()
    if unit in ("min", "m"):
        return value * 60
    if unit == "s":
        return value
    return DEFAULT_DURATION_S


def count_words(text: str) -> int:
    return len(str(text).split())


def reflection_score(word_count: int) -> int:
    word_score = min(100.0, word_count / FULL_CREDIT_WORDS * 100.0)
    bonus = DEPTH_BONUS if word_count >= DEPTH_BONUS_WORDS else 0
    return min(100, round_half_up(word_score + bonus))


class OpenReflectionDrill:
    """Timed free-text response, scored by length. Ends on submit or at 0s."""

    def __init__(
        self,
        *,
        title: str,
        prompt: str,
        clock: Clock,
        duration_s: int = DEFAULT_DURATION_S,
        on_complete: CompletionCallback | None = None,
    ) -> None:
        if duration_s <= 0:
            raise ValueError("duration_s must be > 0")

        self._title = str(title)
        self._prompt = str(prompt)
        self._on_complete = on_complete
        self._timers = TimerCoordinator(clock=clock)
        self._session = SessionState(trials_target=1, time_left_s=int(duration_s))

        self._phase = Phase.IDLE
        self._text = ""
        self._finished = False
        self._torn_down = False
        self._result: WordCountResult | None = None

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def is_complete(self) -> bool:
        return self._session.is_complete

    @property
    def session(self) -> SessionState:
        return self._session

    @property
    def text(self) -> str:
        return self._text

    @property
    def result(self) -> WordCountResult | None:
        return self._result

    @property
    def timers(self) -> TimerCoordinator:
        return self._timers

    def start(self) -> None:
        if self._phase is not Phase.IDLE or self._finished:
            return
        self._phase = Phase.AWAITING_RESPONSE
        self._timers.call_every(1.0, self._tick, label="countdown")

    def update(self) -> None:
        if self._torn_down:
            return
        self._timers.poll()

    def teardown(self) -> None:
        if self._torn_down:
            return
        self._torn_down = True
        self._finished = True
        self._timers.close()

    def set_text(self, text: str) -> bool:
        if self._finished or self._phase is not Phase.AWAITING_RESPONSE:
            return False
        self._text = str(text)
        return True

    def submit(self) -> bool:
        if self._finished or self._phase is not Phase.AWAITING_RESPONSE:
            return False
        self._complete(CompletionReason.SUBMITTED)
        return True

    def snapshot(self) -> DrillSnapshot:
        words = count_words(self._text)
        return DrillSnapshot(
            title=self._title,
            phase=self._phase,
            prompt=self._prompt,
            options=(),
            input_mode=InputMode.TEXT,
            trial_index=0,
            trials_target=1,
            time_left_s=self._session.time_left_s,
            score=self._result.score if self._result is not None else reflection_score(words),
            correct=1 if words >= FULL_CREDIT_WORDS else 0,
            payload=self._text,
        )

    def _tick(self) -> None:
        if self._finished:
            return
        self._session.time_left_s = max(0, self._session.time_left_s - 1)
        if self._session.time_left_s <= 0:
            self._complete(CompletionReason.TIME_EXPIRED)

    def _complete(self, reason: CompletionReason) -> None:
        if self._finished:
            return
        self._finished = True
        self._phase = Phase.COMPLETE
        self._session.is_complete = True
        self._session.completion_reason = reason
        self._timers.close()

        words = count_words(self._text)
        self._result = WordCountResult(
            score=reflection_score(words),
            correct=1 if words >= FULL_CREDIT_WORDS else 0,
            word_count=words,
        )
        logger.info("%s: complete (%s) words=%d score=%d", self._title, reason.value, words, self._result.score)
        if self._on_complete is not None:
            self._on_complete(self._result)


def build_open_reflection_drill(
    *,
    clock: Clock,
    seed: int = 0,
    time_limit_s: int = DEFAULT_DURATION_S,
    title: str = "Open Reflection",
    prompt: str = "Describe a decision you made this week and what you would do differently.",
    on_complete: CompletionCallback | None = None,
) -> OpenReflectionDrill:
    _ = seed
    return OpenReflectionDrill(
        title=title,
        prompt=prompt,
        clock=clock,
        duration_s=time_limit_s,
        on_complete=on_complete,
    )
