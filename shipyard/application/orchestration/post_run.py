"""
Post-Run Phases

Architectural Intent:
- always: releases whatever the stages left behind (image tags, registry
  session, generated descriptor); runs exactly once per run
- on_success: reports how to reach the deployed application
- on_failure: collects cluster diagnostics

Design Decisions:
- Phases never raise. Every step is best-effort; failures are logged and
  reflected in PhaseResult.ok so the run's own outcome is never masked
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from shipyard.application.stages.base import StageContext
from shipyard.application.stages.build_image import BUILT_IMAGES
from shipyard.application.stages.deploy_to_cluster import DESCRIPTOR_PATH
from shipyard.application.stages.scopes import REGISTRY_SESSION, kube_context_scope
from shipyard.application.stages.verify_deployment import pod_summary
from shipyard.domain.entities.pipeline_run import PhaseResult, PipelineRun

logger = logging.getLogger(__name__)


class PostRunPhase(ABC):
    name: str = ""

    @abstractmethod
    async def steps(
        self, context: StageContext, run: PipelineRun
    ) -> list[tuple[str, Callable[[], Awaitable[str]]]]:
        """Named best-effort steps making up the phase."""

    async def execute(self, context: StageContext, run: PipelineRun) -> PhaseResult:
        log_context = {"build_id": run.build_id, "phase": self.name}
        lines: list[str] = []
        ok = True
        try:
            for label, step in await self.steps(context, run):
                try:
                    output = await step()
                    if output:
                        lines.append(f"{label}: {output}")
                except Exception as e:
                    ok = False
                    lines.append(f"{label}: unavailable ({e})")
                    logger.warning(
                        "%s step '%s' failed: %s", self.name, label, e, extra=log_context
                    )
        except Exception as e:
            ok = False
            lines.append(f"unavailable ({e})")
            logger.warning("%s phase failed: %s", self.name, e, extra=log_context)
        finally:
            output = context.redactor.redact("\n".join(lines)) or ""
            context.redactor.clear()
        return PhaseResult(self.name, output=output, ok=ok)


class CleanupPhase(PostRunPhase):
    name = "always"

    def __init__(self, remove_images: bool = True) -> None:
        self.remove_images = remove_images

    async def steps(self, context, run):
        steps = []
        registry = context.artifacts.get(REGISTRY_SESSION)
        if registry is not None:
            async def logout() -> str:
                await context.container.logout(registry)
                context.artifacts.pop(REGISTRY_SESSION, None)
                return f"logged out of {registry or 'default registry'}"
            steps.append(("registry", logout))

        if self.remove_images:
            for image in context.artifacts.get(BUILT_IMAGES, []):
                async def remove(image=image) -> str:
                    removed = await context.container.remove_image(image)
                    return f"removed {image}" if removed else f"{image} not present"
                steps.append(("image", remove))

        descriptor = context.artifacts.get(DESCRIPTOR_PATH)
        if descriptor is not None:
            async def remove_descriptor() -> str:
                removed = context.manifests.remove(descriptor)
                return f"removed {descriptor}" if removed else f"{descriptor} not present"
            steps.append(("descriptor", remove_descriptor))
        return steps


class SuccessReport(PostRunPhase):
    name = "on_success"

    async def steps(self, context, run):
        env = context.environment

        async def access() -> str:
            return f"http://{env.access_host}:{env.node_port}"

        async def status() -> str:
            async with kube_context_scope(context) as kube:
                pods = await context.cluster.get_pods(kube, env.selector)
            return "; ".join(
                f"{name} {phase}" for name, phase, _ in map(pod_summary, pods)
            ) or "no pods"

        return [("access", access), ("pods", status)]


class FailureDiagnostics(PostRunPhase):
    name = "on_failure"

    def __init__(self, log_tail: int = 100) -> None:
        self.log_tail = log_tail

    async def steps(self, context, run):
        env = context.environment
        failed = run.failed_stage

        async def summary() -> str:
            if failed is None:
                return "no failed stage"
            reason = "timed out" if failed.timed_out else failed.error
            return f"{failed.stage} failed: {reason}"

        async def pods() -> str:
            async with kube_context_scope(context) as kube:
                items = await context.cluster.get_pods(kube, env.selector)
            return "; ".join(
                f"{name} {phase} ready={ready}"
                for name, phase, ready in map(pod_summary, items)
            ) or "no pods"

        async def describe() -> str:
            async with kube_context_scope(context) as kube:
                return await context.cluster.describe(kube, "deployment", env.app_name)

        async def logs() -> str:
            async with kube_context_scope(context) as kube:
                return await context.cluster.logs(kube, env.selector, tail=self.log_tail)

        return [("failure", summary), ("pods", pods), ("describe", describe), ("logs", logs)]
