"""
Pipeline Events

Published by the PipelineRun aggregate as it moves through its lifecycle.
"""

from dataclasses import dataclass
from typing import Any

from shipyard.domain.events.event_base import DomainEvent


@dataclass(frozen=True)
class PipelineStartedEvent(DomainEvent):
    build_id: int = 0


@dataclass(frozen=True)
class StageFinishedEvent(DomainEvent):
    stage: str = ""
    status: str = ""
    elapsed_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            stage=self.stage, status=self.status, elapsed_seconds=self.elapsed_seconds
        )
        return data


@dataclass(frozen=True)
class PipelineSucceededEvent(DomainEvent):
    build_id: int = 0


@dataclass(frozen=True)
class PipelineFailedEvent(DomainEvent):
    build_id: int = 0
    failed_stage: str = ""
    error_message: str = ""

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(failed_stage=self.failed_stage, error_message=self.error_message)
        return data
