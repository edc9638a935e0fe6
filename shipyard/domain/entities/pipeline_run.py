"""
Pipeline Run Module

Architectural Intent:
- PipelineRun aggregate is the consistency boundary for one execution of the pipeline
- Stage results are appended strictly in stage-definition order
- All state changes produce new instances; an ended run can no longer change
- Domain events are collected on the aggregate and published by the use case

Domain Events:
- PipelineStartedEvent: Published when the run is created
- StageFinishedEvent: Published for every recorded stage result
- PipelineSucceededEvent / PipelineFailedEvent: Published when the run ends
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, UTC
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from shipyard.domain.value_objects.build_id import BuildId
from shipyard.domain.events.event_base import DomainEvent
from shipyard.domain.events.pipeline_events import (
    PipelineStartedEvent,
    StageFinishedEvent,
    PipelineSucceededEvent,
    PipelineFailedEvent,
)


class StageStatus(Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class RunOutcome(Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class StageResult:
    """Outcome of one stage within one pipeline run."""
    stage: str
    status: StageStatus
    output: str = ""
    elapsed_seconds: float = 0.0
    error: Optional[str] = None
    timed_out: bool = False
    critical: bool = True

    @property
    def passed(self) -> bool:
        return self.status == StageStatus.PASSED

    @property
    def failed(self) -> bool:
        return self.status == StageStatus.FAILED

    @property
    def halts_run(self) -> bool:
        return self.failed and self.critical

    @classmethod
    def success(cls, stage: str, output: str = "", elapsed_seconds: float = 0.0) -> StageResult:
        return cls(stage, StageStatus.PASSED, output, elapsed_seconds)

    @classmethod
    def failure(
        cls,
        stage: str,
        error: str,
        output: str = "",
        elapsed_seconds: float = 0.0,
        timed_out: bool = False,
        critical: bool = True,
    ) -> StageResult:
        return cls(
            stage,
            StageStatus.FAILED,
            output,
            elapsed_seconds,
            error=error,
            timed_out=timed_out,
            critical=critical,
        )

    @classmethod
    def skip(cls, stage: str) -> StageResult:
        return cls(stage, StageStatus.SKIPPED)

    def to_dict(self) -> dict:
        return {
            "stage": self.stage,
            "status": self.status.value,
            "output": self.output,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "error": self.error,
            "timed_out": self.timed_out,
            "critical": self.critical,
        }


@dataclass(frozen=True)
class PhaseResult:
    """Outcome of a post-run phase (always, on_success, on_failure)."""
    phase: str
    output: str = ""
    ok: bool = True

    def to_dict(self) -> dict:
        return {"phase": self.phase, "output": self.output, "ok": self.ok}


class PipelineRun:
    __slots__ = (
        "_build_id",
        "_environment",
        "_stage_names",
        "_results",
        "_phases",
        "_outcome",
        "_started_at",
        "_finished_at",
        "_domain_events",
    )

    def __init__(
        self,
        build_id: BuildId,
        environment: Mapping[str, str],
        stage_names: tuple[str, ...],
        results: tuple[StageResult, ...] = (),
        phases: tuple[PhaseResult, ...] = (),
        outcome: Optional[RunOutcome] = None,
        started_at: Optional[str] = None,
        finished_at: Optional[str] = None,
        domain_events: tuple[DomainEvent, ...] = (),
    ):
        self._build_id = build_id
        self._environment = MappingProxyType(dict(environment))
        self._stage_names = tuple(stage_names)
        self._results = tuple(results)
        self._phases = tuple(phases)
        self._outcome = outcome
        self._started_at = started_at or datetime.now(UTC).isoformat()
        self._finished_at = finished_at
        self._domain_events = domain_events

    @classmethod
    def start(
        cls,
        build_id: BuildId,
        environment: Mapping[str, str],
        stage_names: tuple[str, ...],
    ) -> PipelineRun:
        if len(set(stage_names)) != len(stage_names):
            raise ValueError("Stage names must be unique")
        return cls(
            build_id=build_id,
            environment=environment,
            stage_names=stage_names,
            domain_events=(
                PipelineStartedEvent(aggregate_id=str(build_id), build_id=build_id.value),
            ),
        )

    @property
    def build_id(self) -> BuildId:
        return self._build_id

    @property
    def environment(self) -> Mapping[str, str]:
        return self._environment

    @property
    def stage_names(self) -> tuple[str, ...]:
        return self._stage_names

    @property
    def results(self) -> tuple[StageResult, ...]:
        return self._results

    @property
    def phases(self) -> tuple[PhaseResult, ...]:
        return self._phases

    @property
    def outcome(self) -> Optional[RunOutcome]:
        return self._outcome

    @property
    def projected_outcome(self) -> RunOutcome:
        """Outcome the run will end with given the results recorded so far."""
        return RunOutcome.FAILURE if self.halted else RunOutcome.SUCCESS

    @property
    def started_at(self) -> str:
        return self._started_at

    @property
    def finished_at(self) -> Optional[str]:
        return self._finished_at

    @property
    def domain_events(self) -> tuple[DomainEvent, ...]:
        return self._domain_events

    @property
    def is_finished(self) -> bool:
        return self._outcome is not None

    @property
    def succeeded(self) -> bool:
        return self._outcome == RunOutcome.SUCCESS

    @property
    def halted(self) -> bool:
        return any(r.halts_run for r in self._results)

    @property
    def failed_stage(self) -> Optional[StageResult]:
        for result in self._results:
            if result.halts_run:
                return result
        return None

    @property
    def next_stage(self) -> Optional[str]:
        if len(self._results) >= len(self._stage_names):
            return None
        return self._stage_names[len(self._results)]

    def result_for(self, stage: str) -> Optional[StageResult]:
        for result in self._results:
            if result.stage == stage:
                return result
        return None

    def _evolve(self, **changes) -> PipelineRun:
        state = {
            "build_id": self._build_id,
            "environment": self._environment,
            "stage_names": self._stage_names,
            "results": self._results,
            "phases": self._phases,
            "outcome": self._outcome,
            "started_at": self._started_at,
            "finished_at": self._finished_at,
            "domain_events": self._domain_events,
        }
        state.update(changes)
        return PipelineRun(**state)

    def record(self, result: StageResult) -> PipelineRun:
        if self.is_finished:
            raise ValueError("Cannot record stage results on a finished run")
        expected = self.next_stage
        if expected is None:
            raise ValueError(f"Unexpected stage result for {result.stage!r}: all stages recorded")
        if result.stage != expected:
            raise ValueError(
                f"Stage results must follow definition order: expected {expected!r}, "
                f"got {result.stage!r}"
            )
        if self.halted and result.status != StageStatus.SKIPPED:
            raise ValueError(f"Run halted; stage {result.stage!r} can only be skipped")
        return self._evolve(
            results=self._results + (result,),
            domain_events=self._domain_events
            + (
                StageFinishedEvent(
                    aggregate_id=str(self._build_id),
                    stage=result.stage,
                    status=result.status.value,
                    elapsed_seconds=result.elapsed_seconds,
                ),
            ),
        )

    def record_phase(self, phase: PhaseResult) -> PipelineRun:
        if self.is_finished:
            raise ValueError("Cannot record post-run phases on a finished run")
        if self.next_stage is not None:
            raise ValueError("Post-run phases start after every stage has a result")
        if any(p.phase == phase.phase for p in self._phases):
            raise ValueError(f"Post-run phase {phase.phase!r} already recorded")
        return self._evolve(phases=self._phases + (phase,))

    def phase_for(self, phase: str) -> Optional[PhaseResult]:
        for result in self._phases:
            if result.phase == phase:
                return result
        return None

    def finish(self) -> PipelineRun:
        if self.is_finished:
            raise ValueError("Pipeline run already finished")
        if self.next_stage is not None:
            raise ValueError(f"Cannot finish run: stage {self.next_stage!r} has no result")
        failed = self.failed_stage
        if failed is None:
            outcome = RunOutcome.SUCCESS
            event: DomainEvent = PipelineSucceededEvent(
                aggregate_id=str(self._build_id), build_id=self._build_id.value
            )
        else:
            outcome = RunOutcome.FAILURE
            event = PipelineFailedEvent(
                aggregate_id=str(self._build_id),
                build_id=self._build_id.value,
                failed_stage=failed.stage,
                error_message=failed.error or "",
            )
        return self._evolve(
            outcome=outcome,
            finished_at=datetime.now(UTC).isoformat(),
            domain_events=self._domain_events + (event,),
        )

    def to_dict(self) -> dict:
        return {
            "build_id": self._build_id.value,
            "environment": dict(self._environment),
            "results": [r.to_dict() for r in self._results],
            "phases": [p.to_dict() for p in self._phases],
            "outcome": self._outcome.value if self._outcome else None,
            "started_at": self._started_at,
            "finished_at": self._finished_at,
        }

    def __repr__(self) -> str:
        return (
            f"PipelineRun(build_id={self._build_id}, "
            f"results={len(self._results)}/{len(self._stage_names)}, "
            f"outcome={self._outcome})"
        )
