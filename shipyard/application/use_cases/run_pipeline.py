"""
Run Pipeline Use Case

Architectural Intent:
- Entry point for one build: assigns the build identifier, runs the
  orchestrator and records the finished run in the history
- The history is optional; without one the caller must supply a build id
"""

import logging
from typing import Optional

from shipyard.application.dtos.pipeline_environment import PipelineEnvironment
from shipyard.application.orchestration.deployment_orchestrator import (
    DeploymentOrchestrator,
    OrchestrationError,
)
from shipyard.domain.entities.pipeline_run import PipelineRun
from shipyard.domain.ports.run_history_port import RunHistoryPort

logger = logging.getLogger(__name__)


class RunPipeline:
    def __init__(
        self,
        orchestrator: DeploymentOrchestrator,
        history: Optional[RunHistoryPort] = None,
    ):
        self.orchestrator = orchestrator
        self.history = history

    async def execute(self, environment: PipelineEnvironment) -> PipelineRun:
        if environment.build_id is None:
            if self.history is None:
                raise OrchestrationError("No build id given and no run history to issue one")
            environment = environment.with_build_id(self.history.next_build_id())
        elif self.history is not None and self.history.get(environment.build_id) is not None:
            raise OrchestrationError(f"Build #{environment.build_id} is already recorded")

        run = await self.orchestrator.run(environment)

        if self.history is not None:
            try:
                self.history.save(run)
            except Exception as e:
                logger.error("Could not record run #%s: %s", run.build_id, e)
        return run
