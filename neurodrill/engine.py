from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace

from .clock import Clock
from .core import (
    CompletionReason,
    DrillSnapshot,
    InputMode,
    Phase,
    Response,
    ScoreState,
    ScoringRule,
    SessionState,
    Trial,
    TrialRecord,
    TrialSource,
)
from .results import CompletionResult, accuracy_result
from .scoring import ReactionTimePolicy, ScoreAggregator, evaluate, evaluate_timeout
from .timers import TimerCoordinator, TimerHandle

logger = logging.getLogger(__name__)

ResultBuilder = Callable[[ScoreState, Sequence[TrialRecord]], CompletionResult]
CompletionCallback = Callable[[CompletionResult], None]


@dataclass(frozen=True, slots=True)
class SequencerConfig:
    """Static timing of one trial-sequencer drill."""

    time_limit_s: int = 30
    trials_target: int | None = 10
    feedback_dwell_s: float = 0.6
    ready_delay_s: float = 0.0
    rt_policy: ReactionTimePolicy = ReactionTimePolicy.ALL_RESPONSES

    def __post_init__(self) -> None:
        if self.time_limit_s <= 0:
            raise ValueError("time_limit_s must be > 0")
        if self.trials_target is not None and self.trials_target <= 0:
            raise ValueError("trials_target must be > 0")
        if self.feedback_dwell_s < 0.0:
            raise ValueError("feedback_dwell_s must be >= 0")
        if self.ready_delay_s < 0.0:
            raise ValueError("ready_delay_s must be >= 0")


class TrialSequencer:
    """present -> await response -> feedback -> advance, until done.

    - Deterministic: trials come from the injected source, time from the
      injected Clock. Nothing happens between calls to ``update()``.
    - Completion (trial count, countdown, empty pool) goes through one guard
      and calls ``on_complete`` at most once.
    - ``teardown()`` cancels every timer and suppresses completion.
    """

    def __init__(
        self,
        *,
        title: str,
        source: TrialSource,
        scoring: ScoringRule,
        clock: Clock,
        config: SequencerConfig | None = None,
        result_builder: ResultBuilder = accuracy_result,
        on_complete: CompletionCallback | None = None,
    ) -> None:
        cfg = config or SequencerConfig()

        self._title = str(title)
        self._source = source
        self._clock = clock
        self._cfg = cfg
        self._result_builder = result_builder
        self._on_complete = on_complete

        self._timers = TimerCoordinator(clock=clock)
        self._aggregator = ScoreAggregator(scoring, rt_policy=cfg.rt_policy)
        self._session = SessionState(trials_target=cfg.trials_target, time_left_s=int(cfg.time_limit_s))

        self._phase = Phase.IDLE
        self._started = False
        self._finished = False
        self._torn_down = False

        self._trial: Trial | None = None
        self._records: list[TrialRecord] = []
        self._last_feedback: bool | None = None
        self._result: CompletionResult | None = None

        self._response_timeout: TimerHandle | None = None

    # Introspection

    @property
    def title(self) -> str:
        return self._title

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
    def records(self) -> tuple[TrialRecord, ...]:
        return tuple(self._records)

    @property
    def current_trial(self) -> Trial | None:
        return self._trial

    @property
    def result(self) -> CompletionResult | None:
        return self._result

    @property
    def timers(self) -> TimerCoordinator:
        return self._timers

    # Lifecycle

    def start(self) -> None:
        if self._started or self._finished:
            return
        self._started = True
        logger.debug("%s: start (ready delay %.2fs)", self._title, self._cfg.ready_delay_s)
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
        self._timers.close()
        logger.debug("%s: torn down in phase %s", self._title, self._phase.value)

    def respond(self, selection: object) -> bool:
        """Grade a response for the active trial. Returns True if accepted."""

        if self._finished or self._phase is not Phase.AWAITING_RESPONSE or self._trial is None:
            return False
        self._timers.cancel(self._response_timeout)
        self._response_timeout = None
        response = evaluate(
            self._trial,
            selection,
            trial_index=self._session.current_trial_index,
            now_s=self._clock.now(),
        )
        self._grade(response)
        return True

    def snapshot(self) -> DrillSnapshot:
        trial = self._trial
        prompt = ""
        options: tuple[str, ...] = ()
        input_mode = InputMode.CHOICE
        payload = None
        if self._phase is Phase.IDLE and self._started:
            prompt = "Get ready..."
        elif self._phase is Phase.COMPLETE:
            state = self.score_state
            prompt = f"Complete\nScore: {state.score}\nCorrect: {state.correct_count}/{state.attempted}"
        elif trial is not None:
            prompt = trial.prompt
            if self._phase is not Phase.PRESENTING and trial.recall_prompt is not None:
                prompt = trial.recall_prompt
            if self._phase is not Phase.PRESENTING or trial.display_s <= 0.0:
                options = trial.options
            input_mode = trial.input_mode
            payload = trial.payload

        return DrillSnapshot(
            title=self._title,
            phase=self._phase,
            prompt=prompt,
            options=options,
            input_mode=input_mode,
            trial_index=self._session.current_trial_index,
            trials_target=self._session.trials_target,
            time_left_s=self._session.time_left_s,
            score=self.score_state.score,
            correct=self.score_state.correct_count,
            feedback=self._last_feedback if self._phase is Phase.FEEDBACK else None,
            payload=payload,
        )

    # Internals

    def _begin(self) -> None:
        self._timers.call_every(1.0, self._tick, label="countdown")
        self._present_next()

    def _tick(self) -> None:
        if self._finished:
            return
        self._session.time_left_s = max(0, self._session.time_left_s - 1)
        if self._session.time_left_s <= 0:
            # In-flight trial is discarded ungraded.
            self._complete(CompletionReason.TIME_EXPIRED)

    def _present_next(self) -> None:
        trial = self._source.next_trial(history=tuple(self._records))
        if trial is None:
            if self._records:
                logger.debug("%s: trial source exhausted", self._title)
            else:
                logger.warning("%s: trial source is empty", self._title)
            self._complete(CompletionReason.POOL_EMPTY)
            return

        self._trial = trial
        self._last_feedback = None
        self._phase = Phase.PRESENTING
        logger.debug("%s: presenting trial %d", self._title, self._session.current_trial_index)
        if trial.display_s > 0.0:
            self._timers.call_later(trial.display_s, self._open_responses, label="display")
        else:
            self._open_responses()

    def _open_responses(self) -> None:
        if self._finished or self._trial is None:
            return
        self._trial = replace(self._trial, presented_at_s=self._clock.now())
        self._phase = Phase.AWAITING_RESPONSE
        if self._trial.timeout_s is not None:
            self._response_timeout = self._timers.call_later(
                self._trial.timeout_s, self._on_response_timeout, label="response-timeout"
            )

    def _on_response_timeout(self) -> None:
        self._response_timeout = None
        if self._phase is not Phase.AWAITING_RESPONSE or self._trial is None:
            return
        self._grade(evaluate_timeout(self._trial, trial_index=self._session.current_trial_index))

    def _grade(self, response: Response) -> None:
        assert self._trial is not None
        self._records.append(TrialRecord(trial=self._trial, response=response))
        self._aggregator.record(response)
        self._last_feedback = response.is_correct
        self._phase = Phase.FEEDBACK
        self._timers.call_later(self._cfg.feedback_dwell_s, self._advance, label="feedback")

    def _advance(self) -> None:
        if self._finished:
            return
        self._phase = Phase.ADVANCING
        next_index = self._session.current_trial_index + 1
        target = self._session.trials_target
        if (target is not None and next_index >= target) or self._session.time_left_s <= 0:
            self._complete(CompletionReason.TRIALS_EXHAUSTED)
            return
        self._session.current_trial_index = next_index
        self._present_next()

    def _complete(self, reason: CompletionReason) -> None:
        if self._finished:
            return
        self._finished = True
        self._phase = Phase.COMPLETE
        self._session.is_complete = True
        self._session.completion_reason = reason
        self._timers.close()

        self._result = self._result_builder(self._aggregator.state, tuple(self._records))
        logger.info(
            "%s: complete (%s) score=%d correct=%d/%d",
            self._title,
            reason.value,
            self.score_state.score,
            self.score_state.correct_count,
            self.score_state.attempted,
        )
        if self._on_complete is not None:
            self._on_complete(self._result)
