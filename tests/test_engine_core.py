from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import pytest

from neurodrill.core import CompletionReason, InputMode, Phase, Trial, TrialRecord
from neurodrill.engine import SequencerConfig, TrialSequencer
from neurodrill.results import AccuracyResult, CompletionResult, normalize_result
from neurodrill.scoring import GRID_SCORING

STEP_S = 0.25


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


class ListSource:
    def __init__(self, trials: Sequence[Trial]) -> None:
        self._trials = list(trials)

    def next_trial(self, *, history: Sequence[TrialRecord]) -> Trial | None:
        _ = history
        if not self._trials:
            return None
        return self._trials.pop(0)


def _trials(n: int, **kwargs: object) -> list[Trial]:
    return [Trial(prompt=f"t{i}", answer=0, options=("yes", "no"), **kwargs) for i in range(n)]  # type: ignore[arg-type]


def _make(
    clock: FakeClock,
    trials: Sequence[Trial],
    completed: list[CompletionResult],
    **cfg: object,
) -> TrialSequencer:
    return TrialSequencer(
        title="Test",
        source=ListSource(trials),
        scoring=GRID_SCORING,
        clock=clock,
        config=SequencerConfig(**cfg),  # type: ignore[arg-type]
        on_complete=completed.append,
    )


def _step(clock: FakeClock, drill: TrialSequencer, seconds: float) -> None:
    for _ in range(int(round(seconds / STEP_S))):
        clock.advance(STEP_S)
        drill.update()


def test_completes_after_trial_target_exactly_once() -> None:
    clock = FakeClock()
    completed: list[CompletionResult] = []
    drill = _make(clock, _trials(5), completed, time_limit_s=30, trials_target=3, feedback_dwell_s=0.5)

    drill.start()
    drill.start()
    for i in range(3):
        assert drill.phase is Phase.AWAITING_RESPONSE
        assert drill.session.current_trial_index == i
        _step(clock, drill, 0.25)
        assert drill.respond(0) is True
        assert drill.phase is Phase.FEEDBACK
        assert drill.snapshot().feedback is True
        _step(clock, drill, 0.5)

    assert drill.is_complete
    assert drill.phase is Phase.COMPLETE
    assert drill.session.completion_reason is CompletionReason.TRIALS_EXHAUSTED
    assert len(completed) == 1
    result = completed[0]
    assert isinstance(result, AccuracyResult)
    assert (result.correct, result.total) == (3, 3)
    assert result.reaction_times == (250, 250, 250)

    stats = drill.timers.stats()
    assert stats.pending == 0
    assert stats.balanced

    _step(clock, drill, 40.0)
    assert len(completed) == 1


def test_countdown_expiry_discards_in_flight_trial() -> None:
    clock = FakeClock()
    completed: list[CompletionResult] = []
    drill = _make(clock, _trials(10), completed, time_limit_s=2, trials_target=10, feedback_dwell_s=0.5)

    drill.start()
    _step(clock, drill, 0.25)
    drill.respond(0)
    _step(clock, drill, 0.5)
    assert drill.phase is Phase.AWAITING_RESPONSE
    assert drill.session.current_trial_index == 1

    _step(clock, drill, 1.25)
    assert drill.session.completion_reason is CompletionReason.TIME_EXPIRED
    assert drill.session.time_left_s == 0
    assert len(drill.records) == 1
    assert len(completed) == 1
    assert drill.respond(0) is False


def test_dwell_and_countdown_due_in_same_frame_complete_once() -> None:
    clock = FakeClock()
    completed: list[CompletionResult] = []
    drill = _make(clock, _trials(3), completed, time_limit_s=2, trials_target=1, feedback_dwell_s=2.0)

    drill.start()
    assert drill.respond(0)
    clock.advance(1.0)
    drill.update()
    clock.advance(1.0)
    drill.update()

    assert len(completed) == 1
    assert drill.session.completion_reason is CompletionReason.TRIALS_EXHAUSTED
    assert drill.timers.stats().balanced


def test_teardown_suppresses_completion_and_cancels_timers() -> None:
    clock = FakeClock()
    completed: list[CompletionResult] = []
    drill = _make(clock, _trials(10), completed, time_limit_s=3, trials_target=10, feedback_dwell_s=0.5)

    drill.start()
    _step(clock, drill, 0.5)
    drill.respond(0)
    drill.teardown()
    drill.teardown()

    assert drill.timers.closed
    assert drill.timers.pending == 0
    assert drill.timers.stats().balanced

    _step(clock, drill, 10.0)
    assert completed == []
    assert drill.respond(0) is False

    # A fresh mount is independent of the torn-down one.
    again = _make(clock, _trials(1), completed, time_limit_s=3, trials_target=1, feedback_dwell_s=0.5)
    again.start()
    again.respond(0)
    _step(clock, again, 0.5)
    assert len(completed) == 1
    assert drill.is_complete is False


def test_response_after_teardown_mid_trial_is_ignored() -> None:
    clock = FakeClock()
    completed: list[CompletionResult] = []
    drill = _make(clock, _trials(3), completed, time_limit_s=30, trials_target=3)

    drill.start()
    assert drill.phase is Phase.AWAITING_RESPONSE
    drill.teardown()

    assert drill.respond(0) is False
    assert drill.records == ()
    assert drill.score_state.attempted == 0
    assert drill.score_state.score == 0
    assert drill.phase is Phase.AWAITING_RESPONSE
    assert completed == []


def test_second_response_to_same_trial_is_rejected() -> None:
    clock = FakeClock()
    completed: list[CompletionResult] = []
    drill = _make(clock, _trials(3), completed, trials_target=3, feedback_dwell_s=0.5)

    drill.start()
    assert drill.respond(0) is True
    assert drill.respond(0) is False
    assert drill.respond(1) is False
    assert len(drill.records) == 1
    assert drill.score_state.attempted == 1


def test_response_window_closes_as_miss() -> None:
    clock = FakeClock()
    completed: list[CompletionResult] = []
    drill = _make(clock, _trials(2, timeout_s=1.0), completed, trials_target=2, feedback_dwell_s=0.5)

    drill.start()
    _step(clock, drill, 0.75)
    assert drill.phase is Phase.AWAITING_RESPONSE
    _step(clock, drill, 0.25)

    assert drill.phase is Phase.FEEDBACK
    record = drill.records[0]
    assert record.response.timed_out
    assert not record.response.is_correct
    assert record.response.reaction_time_ms is None
    assert drill.score_state.reaction_times == []


def test_response_beats_timeout_due_in_same_frame() -> None:
    clock = FakeClock()
    completed: list[CompletionResult] = []
    drill = _make(clock, _trials(2, timeout_s=1.0), completed, trials_target=2, feedback_dwell_s=0.5)

    drill.start()
    clock.advance(1.0)
    assert drill.respond(0) is True
    drill.update()

    assert len(drill.records) == 1
    response = drill.records[0].response
    assert not response.timed_out
    assert response.is_correct
    assert response.reaction_time_ms == 1000


def test_withholding_on_no_response_trial_is_correct() -> None:
    clock = FakeClock()
    completed: list[CompletionResult] = []
    trials = [Trial(prompt="stop", answer=None, input_mode=InputMode.TAP, timeout_s=0.5)]
    drill = _make(clock, trials, completed, trials_target=1, feedback_dwell_s=0.25)

    drill.start()
    _step(clock, drill, 0.75)

    assert len(completed) == 1
    assert drill.records[0].response.is_correct
    assert drill.score_state.score == GRID_SCORING.floor


def test_study_window_hides_options_and_delays_rt_origin() -> None:
    clock = FakeClock()
    completed: list[CompletionResult] = []
    trials = [
        Trial(
            prompt="Memorise: 4 7 1",
            answer="471",
            options=("x",),
            input_mode=InputMode.TEXT,
            display_s=1.0,
            recall_prompt="Type the digits",
        )
    ]
    drill = _make(clock, trials, completed, trials_target=1, feedback_dwell_s=0.25)

    drill.start()
    snap = drill.snapshot()
    assert snap.phase is Phase.PRESENTING
    assert snap.prompt == "Memorise: 4 7 1"
    assert snap.options == ()
    assert drill.respond("471") is False

    _step(clock, drill, 1.0)
    snap = drill.snapshot()
    assert snap.phase is Phase.AWAITING_RESPONSE
    assert snap.prompt == "Type the digits"
    assert snap.options == ("x",)

    _step(clock, drill, 0.25)
    assert drill.respond("471")
    assert drill.records[0].response.reaction_time_ms == 250


def test_ready_delay_holds_countdown_and_first_trial() -> None:
    clock = FakeClock()
    completed: list[CompletionResult] = []
    drill = _make(clock, _trials(2), completed, time_limit_s=10, trials_target=2, ready_delay_s=1.5)

    drill.start()
    assert drill.phase is Phase.IDLE
    assert drill.snapshot().prompt == "Get ready..."
    _step(clock, drill, 1.25)
    assert drill.phase is Phase.IDLE
    assert drill.session.time_left_s == 10

    _step(clock, drill, 0.25)
    assert drill.phase is Phase.AWAITING_RESPONSE
    _step(clock, drill, 1.0)
    assert drill.session.time_left_s == 9


def test_empty_source_completes_immediately() -> None:
    clock = FakeClock()
    completed: list[CompletionResult] = []
    drill = _make(clock, [], completed)

    drill.start()
    assert drill.is_complete
    assert drill.session.completion_reason is CompletionReason.POOL_EMPTY
    assert completed == [AccuracyResult(score=0, correct=0, total=0, reaction_times=())]
    assert drill.timers.pending == 0


def test_mean_reaction_time_over_responses() -> None:
    clock = FakeClock()
    completed: list[CompletionResult] = []
    drill = _make(clock, _trials(2), completed, trials_target=2, feedback_dwell_s=0.5)

    drill.start()
    _step(clock, drill, 0.25)
    drill.respond(0)
    _step(clock, drill, 0.5)
    _step(clock, drill, 0.5)
    drill.respond(1)
    _step(clock, drill, 0.5)

    assert len(completed) == 1
    normalized = normalize_result(completed[0])
    assert normalized.avg_reaction_time_ms == 375.0
    assert normalized.correct == 1


def test_config_validation() -> None:
    with pytest.raises(ValueError):
        SequencerConfig(time_limit_s=0)
    with pytest.raises(ValueError):
        SequencerConfig(trials_target=0)
    with pytest.raises(ValueError):
        SequencerConfig(feedback_dwell_s=-1.0)
    with pytest.raises(ValueError):
        SequencerConfig(ready_delay_s=-0.5)
