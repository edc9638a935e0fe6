"""
Domain Events Package

Architectural Intent:
- Events are the primary mechanism for reporting pipeline progress
  to observers (logging, telemetry, run history)
"""

from shipyard.domain.events.event_base import DomainEvent
from shipyard.domain.events.pipeline_events import (
    PipelineStartedEvent,
    StageFinishedEvent,
    PipelineSucceededEvent,
    PipelineFailedEvent,
)

__all__ = [
    "DomainEvent",
    "PipelineStartedEvent",
    "StageFinishedEvent",
    "PipelineSucceededEvent",
    "PipelineFailedEvent",
]
