"""
Run History Port

Architectural Intent:
- Issues monotonically increasing build identifiers
- Persists finished pipeline runs for later inspection
"""

from typing import Any, Optional, Protocol, runtime_checkable

from shipyard.domain.entities.pipeline_run import PipelineRun
from shipyard.domain.value_objects.build_id import BuildId


@runtime_checkable
class RunHistoryPort(Protocol):
    def next_build_id(self) -> BuildId: ...

    def save(self, run: PipelineRun) -> None: ...

    def get(self, build_id: BuildId) -> Optional[dict[str, Any]]: ...

    def list_runs(self, limit: int = 20) -> list[dict[str, Any]]: ...
