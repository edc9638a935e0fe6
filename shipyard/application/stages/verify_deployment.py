from typing import Any

from shipyard.application.stages.scopes import kube_context_scope
from shipyard.application.stages.base import Stage, StageContext
from shipyard.domain.errors import CommandError, VerificationError


def pod_summary(pod: dict[str, Any]) -> tuple[str, str, bool]:
    """Returns (name, phase, ready) for a raw pod object."""
    name = pod.get("metadata", {}).get("name", "?")
    status = pod.get("status", {})
    phase = status.get("phase", "Unknown")
    statuses = status.get("containerStatuses") or []
    ready = bool(statuses) and all(s.get("ready") for s in statuses)
    return name, phase, ready


class VerifyDeployment(Stage):
    name = "verify-deployment"

    async def run(self, context: StageContext) -> str:
        env = context.environment
        async with kube_context_scope(context) as kube:
            try:
                pods = await context.cluster.get_pods(kube, env.selector)
                service = await context.cluster.get_service(kube, env.app_name)
            except CommandError as e:
                raise VerificationError(f"Could not read deployment state: {e}") from e

        lines = []
        running = 0
        for pod in pods:
            name, phase, ready = pod_summary(pod)
            lines.append(f"pod/{name} {phase} ready={ready}")
            if phase == "Running" and ready:
                running += 1

        ports = service.get("spec", {}).get("ports") or []
        node_ports = [str(p["nodePort"]) for p in ports if "nodePort" in p]
        lines.append(f"service/{env.app_name} nodePort={','.join(node_ports) or 'none'}")

        if running == 0:
            raise VerificationError(
                f"No ready pods for {env.selector} ({len(pods)} found)"
            )
        return "\n".join(lines)
