"""
Stage Abstraction

Architectural Intent:
- A Stage is one named, statically defined unit of pipeline work
- execute(context) always returns a StageResult; expected and unexpected
  failures are both turned into failed results
- Cancellation (stage timeout) is not caught here; the orchestrator owns it
- Output and errors are redacted of any secret resolved during the stage
"""

from __future__ import annotations
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from shipyard.application.dtos.pipeline_environment import PipelineEnvironment
from shipyard.domain.entities.pipeline_run import StageResult
from shipyard.domain.errors import ShipyardError
from shipyard.domain.ports.cluster_port import ClusterPort
from shipyard.domain.ports.container_port import ContainerPort
from shipyard.domain.ports.manifest_store_port import ManifestStorePort
from shipyard.domain.ports.secret_port import SecretResolverPort
from shipyard.domain.ports.source_port import SourcePort
from shipyard.domain.value_objects.credential_ref import Secret

logger = logging.getLogger(__name__)


class Redactor:
    """Masks the values of secrets resolved while a stage is running."""

    def __init__(self) -> None:
        self._secrets: list[Secret] = []

    def add(self, secret: Secret) -> None:
        self._secrets.append(secret)

    def redact(self, text: Optional[str]) -> Optional[str]:
        if not text:
            return text
        for secret in self._secrets:
            text = secret.redact(text)
        return text

    def clear(self) -> None:
        self._secrets.clear()

    def __len__(self) -> int:
        return len(self._secrets)


@dataclass
class StageContext:
    """Everything a stage needs: the run's environment plus its collaborators."""
    environment: PipelineEnvironment
    container: ContainerPort
    cluster: ClusterPort
    source: SourcePort
    secrets: SecretResolverPort
    manifests: ManifestStorePort
    artifacts: dict[str, Any] = field(default_factory=dict)
    redactor: Redactor = field(default_factory=Redactor)


class Stage(ABC):
    name: str = ""

    def __init__(self, critical: bool = True, timeout: Optional[float] = None) -> None:
        if not self.name:
            raise TypeError(f"{type(self).__name__} must define a stage name")
        self.critical = critical
        self.timeout = timeout

    def time_limit(self, environment: PipelineEnvironment) -> Optional[float]:
        return self.timeout

    @abstractmethod
    async def run(self, context: StageContext) -> str:
        """Perform the stage's work. Returns captured output; raises on failure."""

    async def execute(self, context: StageContext) -> StageResult:
        started = time.monotonic()
        try:
            output = await self.run(context)
            return StageResult.success(
                self.name,
                output=context.redactor.redact(output) or "",
                elapsed_seconds=time.monotonic() - started,
            )
        except ShipyardError as e:
            logger.warning(
                "Stage '%s' failed: %s",
                self.name,
                context.redactor.redact(str(e)),
                extra=self._log_context(context),
            )
            return self._failed(context, e, started)
        except Exception as e:
            logger.exception(
                "Stage '%s' raised an unexpected error", self.name, extra=self._log_context(context)
            )
            return self._failed(context, e, started)
        finally:
            context.redactor.clear()

    def _log_context(self, context: StageContext) -> dict[str, Any]:
        return {"build_id": context.environment.build_id, "stage": self.name}

    def _failed(self, context: StageContext, error: Exception, started: float) -> StageResult:
        return StageResult.failure(
            self.name,
            error=context.redactor.redact(str(error)) or type(error).__name__,
            output=context.redactor.redact(getattr(error, "stdout", "") or "") or "",
            elapsed_seconds=time.monotonic() - started,
            critical=self.critical,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(critical={self.critical}, timeout={self.timeout})"
