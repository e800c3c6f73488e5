from __future__ import annotations

from dataclasses import dataclass

import pytest

from neurodrill.core import DrillEngine, Phase
from neurodrill.engine import TrialSequencer
from neurodrill.open_reflection import OpenReflectionDrill
from neurodrill.registry import TIME_LIMIT_ENV, DrillType, build_drill
from neurodrill.results import CompletionResult, normalize_result
from neurodrill.session import DrillSession, InMemoryResultSink
from neurodrill.spawner import SpawningDrill

STEP_S = 0.25
MAX_SIM_S = 240.0


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


def _act_correctly(engine: DrillEngine) -> None:
    if isinstance(engine, TrialSequencer):
        trial = engine.current_trial
        if engine.phase is Phase.AWAITING_RESPONSE and trial is not None and trial.answer is not None:
            assert engine.respond(trial.answer)
    elif isinstance(engine, SpawningDrill):
        for stim in engine.live_stimuli():
            if stim.is_target:
                assert engine.tap(stim.stimulus_id)
    elif isinstance(engine, OpenReflectionDrill):
        if engine.phase is Phase.AWAITING_RESPONSE:
            engine.set_text("a steady sentence " * 12)
            engine.submit()


def _simulate(clock: FakeClock, engine: DrillEngine, done: list[CompletionResult]) -> None:
    engine.start()
    steps = int(MAX_SIM_S / STEP_S)
    for _ in range(steps):
        if done:
            break
        _act_correctly(engine)
        clock.advance(STEP_S)
        engine.update()


@pytest.mark.parametrize("kind", list(DrillType))
def test_every_drill_runs_to_a_single_completion(kind: DrillType, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(TIME_LIMIT_ENV, raising=False)
    clock = FakeClock()
    done: list[CompletionResult] = []
    engine = build_drill(kind, clock=clock, seed=1234, on_complete=done.append)

    _simulate(clock, engine, done)

    assert len(done) == 1
    assert engine.is_complete
    assert engine.phase is Phase.COMPLETE
    assert engine.timers.pending == 0
    assert engine.timers.stats().balanced

    if isinstance(engine, TrialSequencer):
        assert engine.records
        assert all(r.response.is_correct for r in engine.records)
    elif isinstance(engine, SpawningDrill):
        assert engine.missed == 0
        assert engine.incorrect == 0

    assert normalize_result(done[0]).score > 0

    # Nothing fires after completion.
    for _ in range(40):
        clock.advance(STEP_S)
        engine.update()
    assert len(done) == 1


def test_same_seed_replays_the_same_session() -> None:
    def run_once() -> tuple[object, ...]:
        clock = FakeClock()
        done: list[CompletionResult] = []
        engine = build_drill(DrillType.STROOP, clock=clock, seed=77, time_limit_s=30, on_complete=done.append)
        _simulate(clock, engine, done)
        assert isinstance(engine, TrialSequencer)
        return tuple(r.trial.payload for r in engine.records)

    assert run_once() == run_once()


@pytest.mark.parametrize("exercise_id", ["FA_FAST_021", "MC_001", "CH_FAST_011", "N001", "CR_SLOW_002"])
def test_session_records_each_routed_exercise_once(exercise_id: str) -> None:
    clock = FakeClock()
    sink = InMemoryResultSink()
    session = DrillSession(exercise_id, clock=clock, seed=5, sink=sink, time_limit_s=20)

    session.start()
    for _ in range(int(60 / STEP_S)):
        _act_correctly(session.engine)
        clock.advance(STEP_S)
        session.update()
    session.close()

    assert len(sink.outcomes) == 1
    outcome = sink.outcomes[0]
    assert outcome.exercise_id == exercise_id
    assert outcome.drill_type is session.drill_type
    assert outcome.normalized == normalize_result(outcome.raw)
