from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from .clock import Clock, elapsed_ms
from .core import (
    CompletionReason,
    DrillSnapshot,
    InputMode,
    Phase,
    Response,
    ScoreState,
    ScoringRule,
    SessionState,
)
from .engine import CompletionCallback
from .results import TapResult
from .scoring import ReactionTimePolicy, ScoreAggregator
from .timers import TimerCoordinator, TimerHandle

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Stimulus:
    stimulus_id: int
    kind: str
    is_target: bool
    x: float  # normalized 0..1 across the play area
    y: float
    spawned_at_s: float


StimulusFactory = Callable[[int, float], Stimulus]


@dataclass(frozen=True, slots=True)
class SpawnConfig:
    time_limit_s: int = 30
    spawn_interval_s: float = 1.5
    lifetime_s: float = 2.5
    ready_delay_s: float = 1.0

    def __post_init__(self) -> None:
        if self.time_limit_s <= 0:
            raise ValueError("time_limit_s must be > 0")
        if self.spawn_interval_s <= 0.0:
            raise ValueError("spawn_interval_s must be > 0")
        if self.lifetime_s <= 0.0:
            raise ValueError("lifetime_s must be > 0")
        if self.ready_delay_s < 0.0:
            raise ValueError("ready_delay_s must be >= 0")


class SpawningDrill:
    """Stimuli appear on a fixed interval and vanish after a fixed lifetime.

    - The spawn interval runs independently of the 1 Hz countdown.
    - Each stimulus owns one expiry timer. A tap removes the stimulus and
      cancels that timer in one step, so a stimulus is either tapped or
      expired, never both.
    - Tapping a target scores; tapping anything else is penalised; a target
      that expires untouched counts as missed.
    """

    def __init__(
        self,
        *,
        title: str,
        clock: Clock,
        spawn: StimulusFactory,
        scoring: ScoringRule,
        config: SpawnConfig | None = None,
        on_complete: CompletionCallback | None = None,
    ) -> None:
        cfg = config or SpawnConfig()

        self._title = str(title)
        self._clock = clock
        self._spawn = spawn
        self._cfg = cfg
        self._on_complete = on_complete

        self._timers = TimerCoordinator(clock=clock)
        self._aggregator = ScoreAggregator(scoring, rt_policy=ReactionTimePolicy.CORRECT_ONLY)
        self._session = SessionState(trials_target=None, time_left_s=int(cfg.time_limit_s))

        self._phase = Phase.IDLE
        self._started = False
        self._finished = False
        self._torn_down = False

        self._next_id = 0
        self._live: dict[int, tuple[Stimulus, TimerHandle]] = {}
        self._incorrect = 0
        self._missed = 0
        self._result: TapResult | None = None

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
    def score_state(self) -> ScoreState:
        return self._aggregator.state

    @property
    def missed(self) -> int:
        return self._missed

    @property
    def incorrect(self) -> int:
        return self._incorrect

    @property
    def result(self) -> TapResult | None:
        return self._result

    @property
    def timers(self) -> TimerCoordinator:
        return self._timers

    def live_stimuli(self) -> tuple[Stimulus, ...]:
        return tuple(stim for stim, _ in self._live.values())

    def start(self) -> None:
        if self._started or self._finished:
            return
        self._started = True
        if self._cfg.ready_delay_s > 0.0:
            self._timers.call_later(self._cfg.ready_delay_s, self._begin, label="ready")
        else:
            self._begin()

    def update(self) -> None:
        if self._torn_down:
            return
        self._timers.poll()

    def teardown(self) -> None:
        if self._torn_down:
            return
        self._torn_down = True
        self._finished = True
        self._live.clear()
        self._timers.close()
        logger.debug("%s: torn down in phase %s", self._title, self._phase.value)

    def tap(self, stimulus_id: int) -> bool:
        """Tap a live stimulus. Returns False if it is gone or the drill isn't running."""

        if self._finished or self._phase is not Phase.AWAITING_RESPONSE:
            return False
        entry = self._live.pop(int(stimulus_id), None)
        if entry is None:
            return False
        stim, expiry = entry
        self._timers.cancel(expiry)

        response = Response(
            trial_index=stim.stimulus_id,
            selection=stim.stimulus_id,
            reaction_time_ms=elapsed_ms(self._clock, stim.spawned_at_s),
            is_correct=stim.is_target,
        )
        self._aggregator.record(response)
        if not stim.is_target:
            self._incorrect += 1
        return True

    def snapshot(self) -> DrillSnapshot:
        state = self.score_state
        if self._phase is Phase.IDLE and self._started:
            prompt = "Get ready..."
        elif self._phase is Phase.COMPLETE:
            prompt = f"Complete\nScore: {state.score}\nHits: {state.correct_count}  Missed: {self._missed}"
        else:
            prompt = self._title
        return DrillSnapshot(
            title=self._title,
            phase=self._phase,
            prompt=prompt,
            options=(),
            input_mode=InputMode.TAP,
            trial_index=self._next_id,
            trials_target=None,
            time_left_s=self._session.time_left_s,
            score=state.score,
            correct=state.correct_count,
            payload=self.live_stimuli(),
        )

    def _begin(self) -> None:
        self._phase = Phase.AWAITING_RESPONSE
        self._timers.call_every(1.0, self._tick, label="countdown")
        self._timers.call_every(self._cfg.spawn_interval_s, self._spawn_one, label="spawn")

    def _tick(self) -> None:
        if self._finished:
            return
        self._session.time_left_s = max(0, self._session.time_left_s - 1)
        if self._session.time_left_s <= 0:
            self._complete()

    def _spawn_one(self) -> None:
        if self._finished:
            return
        stim = self._spawn(self._next_id, self._clock.now())
        self._next_id += 1
        handle = self._timers.call_later(
            self._cfg.lifetime_s,
            lambda sid=stim.stimulus_id: self._expire(sid),
            label=f"expire-{stim.stimulus_id}",
        )
        self._live[stim.stimulus_id] = (stim, handle)

    def _expire(self, stimulus_id: int) -> None:
        entry = self._live.pop(stimulus_id, None)
        if entry is None:
            return
        if entry[0].is_target:
            self._missed += 1

    def _complete(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._phase = Phase.COMPLETE
        self._session.is_complete = True
        self._session.completion_reason = CompletionReason.TIME_EXPIRED
        self._live.clear()
        self._timers.close()

        state = self._aggregator.state
        self._result = TapResult(
            score=int(state.score),
            correct=int(state.correct_count),
            incorrect=self._incorrect,
            missed=self._missed,
            reaction_times=tuple(state.reaction_times),
        )
        logger.info(
            "%s: complete score=%d hits=%d incorrect=%d missed=%d",
            self._title,
            state.score,
            state.correct_count,
            self._incorrect,
            self._missed,
        )
        if self._on_complete is not None:
            self._on_complete(self._result)
