"""
Deployment Orchestrator

Architectural Intent:
- Runs a fixed, ordered list of stages for a single build
- Fail-fast: the first failed critical stage halts the sequence; every
  later stage is recorded as skipped
- Time-bounded stages are cancelled when their budget expires and recorded
  as failed (timed out)
- Post-run: on_success or on_failure depending on the outcome, then
  the always (cleanup) phase, exactly once, whatever happened before

Execution Model:
- Stages run strictly sequentially in one task
- The PipelineRun record is the orchestrator's only internal state
- Progress events are published as soon as each result is recorded
"""

from __future__ import annotations
import asyncio
import logging
import time
from typing import Optional, Sequence

from shipyard.application.dtos.pipeline_environment import PipelineEnvironment
from shipyard.application.orchestration.post_run import (
    CleanupPhase,
    FailureDiagnostics,
    PostRunPhase,
    SuccessReport,
)
from shipyard.application.stages import Stage, StageContext, default_stages
from shipyard.domain.entities.pipeline_run import (
    PhaseResult,
    PipelineRun,
    RunOutcome,
    StageResult,
)
from shipyard.domain.ports.cluster_port import ClusterPort
from shipyard.domain.ports.container_port import ContainerPort
from shipyard.domain.ports.event_bus_port import EventBusPort
from shipyard.domain.ports.manifest_store_port import ManifestStorePort
from shipyard.domain.ports.secret_port import SecretResolverPort
from shipyard.domain.ports.source_port import SourcePort

logger = logging.getLogger(__name__)


class OrchestrationError(Exception):
    pass


class DeploymentOrchestrator:
    def __init__(
        self,
        container: ContainerPort,
        cluster: ClusterPort,
        source: SourcePort,
        secrets: SecretResolverPort,
        manifests: ManifestStorePort,
        stages: Optional[Sequence[Stage]] = None,
        always: Optional[PostRunPhase] = None,
        on_success: Optional[PostRunPhase] = None,
        on_failure: Optional[PostRunPhase] = None,
        event_bus: Optional[EventBusPort] = None,
    ) -> None:
        self.container = container
        self.cluster = cluster
        self.source = source
        self.secrets = secrets
        self.manifests = manifests
        self.stages: list[Stage] = list(stages) if stages is not None else default_stages()
        self.always = always or CleanupPhase()
        self.on_success = on_success or SuccessReport()
        self.on_failure = on_failure or FailureDiagnostics()
        self.event_bus = event_bus

        names = [s.name for s in self.stages]
        if len(set(names)) != len(names):
            raise OrchestrationError(f"Duplicate stage names: {names}")

    @property
    def stage_names(self) -> tuple[str, ...]:
        return tuple(s.name for s in self.stages)

    async def run(self, environment: PipelineEnvironment) -> PipelineRun:
        if environment.build_id is None:
            raise OrchestrationError("A build identifier must be assigned before the run starts")

        context = StageContext(
            environment=environment,
            container=self.container,
            cluster=self.cluster,
            source=self.source,
            secrets=self.secrets,
            manifests=self.manifests,
        )
        run = PipelineRun.start(
            environment.build_id, environment.public_view(), self.stage_names
        )
        published = 0
        published = await self._publish(run, published)
        logger.info(
            "Pipeline run #%s started (%d stages)",
            environment.build_id,
            len(self.stages),
            extra={"build_id": environment.build_id},
        )

        try:
            for stage in self.stages:
                if run.halted:
                    result = StageResult.skip(stage.name)
                else:
                    log_context = {"build_id": environment.build_id, "stage": stage.name}
                    logger.info("Stage '%s' starting", stage.name, extra=log_context)
                    result = await self._execute_stage(stage, context)
                    logger.info(
                        "Stage '%s' %s in %.1fs",
                        stage.name,
                        result.status.value,
                        result.elapsed_seconds,
                        extra=log_context,
                    )
                run = run.record(result)
                published = await self._publish(run, published)

            branch = self.on_success if run.projected_outcome == RunOutcome.SUCCESS else self.on_failure
            run = run.record_phase(await branch.execute(context, run))
        finally:
            cleanup = await self.always.execute(context, run)

        run = run.record_phase(cleanup).finish()
        await self._publish(run, published)
        logger.info(
            "Pipeline run #%s finished: %s",
            environment.build_id,
            run.outcome.value,
            extra={"build_id": environment.build_id},
        )
        return run

    async def _execute_stage(self, stage: Stage, context: StageContext) -> StageResult:
        limit = stage.time_limit(context.environment)
        if limit is None:
            return await stage.execute(context)

        started = time.monotonic()
        try:
            return await asyncio.wait_for(stage.execute(context), timeout=limit)
        except asyncio.TimeoutError:
            logger.error(
                "Stage '%s' timed out after %ss",
                stage.name,
                limit,
                extra={"build_id": context.environment.build_id, "stage": stage.name},
            )
            context.redactor.clear()
            return StageResult.failure(
                stage.name,
                error=f"Stage timed out after {limit}s",
                elapsed_seconds=time.monotonic() - started,
                timed_out=True,
                critical=stage.critical,
            )

    async def _publish(self, run: PipelineRun, already_published: int) -> int:
        events = run.domain_events
        if self.event_bus is not None and len(events) > already_published:
            try:
                await self.event_bus.publish(list(events[already_published:]))
            except Exception as e:
                logger.warning("Event publication failed: %s", e)
        return len(events)
