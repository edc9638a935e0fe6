"""
Kubectl Adapter

Architectural Intent:
- Infrastructure adapter implementing ClusterPort via the kubectl CLI
- Every call carries an explicit --kubeconfig/--context/--namespace
  instead of relying on ambient KUBECONFIG
"""

import json
import logging
from typing import Any, Optional

from shipyard.domain.ports.cluster_port import ClusterPort
from shipyard.domain.value_objects.kube_context import KubeContext
from shipyard.infrastructure.adapters.command_runner import CommandRunner

logger = logging.getLogger(__name__)


class KubectlAdapter(ClusterPort):
    def __init__(self, runner: Optional[CommandRunner] = None, binary: str = "kubectl"):
        self.runner = runner or CommandRunner()
        self.binary = binary

    def _argv(self, kube: KubeContext, *args: str, namespace: Optional[str] = None) -> list[str]:
        return [
            self.binary,
            *kube.kubectl_args(),
            "--namespace",
            namespace or kube.namespace,
            *args,
        ]

    async def is_available(self) -> bool:
        if not self.runner.which(self.binary):
            return False
        result = await self.runner.run([self.binary, "version", "--client"], check=False)
        return result.ok

    async def apply(self, kube: KubeContext, source: str) -> str:
        # Cluster-scoped manifests (e.g. controller bundles) carry their own namespaces
        argv = [self.binary, *kube.kubectl_args(), "apply", "-f", source]
        result = await self.runner.run(argv)
        return result.stdout.strip()

    async def rollout_status(self, kube: KubeContext, deployment: str, timeout: int) -> str:
        result = await self.runner.run(
            self._argv(kube, "rollout", "status", f"deployment/{deployment}", f"--timeout={timeout}s")
        )
        return result.stdout.strip()

    async def wait_for(
        self, kube: KubeContext, namespace: str, condition: str, selector: str, timeout: int
    ) -> str:
        result = await self.runner.run(
            self._argv(
                kube,
                "wait",
                f"--for=condition={condition}",
                "pod",
                f"--selector={selector}",
                f"--timeout={timeout}s",
                namespace=namespace,
            )
        )
        return result.stdout.strip()

    async def get_pods(self, kube: KubeContext, selector: str) -> list[dict[str, Any]]:
        result = await self.runner.run(self._argv(kube, "get", "pods", "-l", selector, "-o", "json"))
        return json.loads(result.stdout or "{}").get("items", [])

    async def get_service(self, kube: KubeContext, name: str) -> dict[str, Any]:
        result = await self.runner.run(self._argv(kube, "get", "service", name, "-o", "json"))
        return json.loads(result.stdout or "{}")

    async def describe(self, kube: KubeContext, kind: str, name: str) -> str:
        result = await self.runner.run(self._argv(kube, "describe", kind, name))
        return result.stdout.strip()

    async def logs(self, kube: KubeContext, selector: str, tail: int = 100) -> str:
        result = await self.runner.run(
            self._argv(kube, "logs", "-l", selector, f"--tail={tail}", "--all-containers=true")
        )
        return result.stdout.strip()
