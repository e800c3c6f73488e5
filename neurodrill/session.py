from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from .clock import Clock
from .core import DrillEngine
from .registry import DrillType, build_drill, drill_type_for_exercise
from .results import CompletionResult, NormalizedResult, normalize_result

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SessionOutcome:
    exercise_id: str
    drill_type: DrillType
    raw: CompletionResult
    normalized: NormalizedResult


class ResultSink(Protocol):
    """Where finished drills go (storage lives outside this package)."""

    def record(self, outcome: SessionOutcome) -> None:
        ...


@dataclass
class InMemoryResultSink:
    outcomes: list[SessionOutcome] = field(default_factory=list)

    def record(self, outcome: SessionOutcome) -> None:
        self.outcomes.append(outcome)


class DrillSession:
    """Routes one exercise to a drill, runs it, and forwards the normalized result.

    The sink sees each session at most once. Tearing the session down before the
    drill finishes forwards nothing.
    """

    def __init__(
        self,
        exercise_id: str,
        *,
        clock: Clock,
        seed: int,
        sink: ResultSink,
        time_limit_s: int | None = None,
        duration: str | None = None,
    ) -> None:
        self._exercise_id = str(exercise_id)
        self._drill_type = drill_type_for_exercise(self._exercise_id)
        self._sink = sink
        self._outcome: SessionOutcome | None = None
        self._engine: DrillEngine = build_drill(
            self._drill_type,
            clock=clock,
            seed=seed,
            on_complete=self._on_complete,
            time_limit_s=time_limit_s,
            duration=duration,
        )
        logger.info("session %s -> %s", self._exercise_id, self._drill_type.value)

    @property
    def exercise_id(self) -> str:
        return self._exercise_id

    @property
    def drill_type(self) -> DrillType:
        return self._drill_type

    @property
    def engine(self) -> DrillEngine:
        return self._engine

    @property
    def outcome(self) -> SessionOutcome | None:
        return self._outcome

    def start(self) -> None:
        self._engine.start()

    def update(self) -> None:
        self._engine.update()

    def close(self) -> None:
        self._engine.teardown()

    def _on_complete(self, result: CompletionResult) -> None:
        if self._outcome is not None:
            return
        self._outcome = SessionOutcome(
            exercise_id=self._exercise_id,
            drill_type=self._drill_type,
            raw=result,
            normalized=normalize_result(result),
        )
        logger.info(
            "session %s finished: score=%d correct=%d avg_rt=%s",
            self._exercise_id,
            self._outcome.normalized.score,
            self._outcome.normalized.correct,
            self._outcome.normalized.avg_reaction_time_ms,
        )
        self._sink.record(self._outcome)
