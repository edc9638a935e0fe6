"""
Cluster Port

Architectural Intent:
- Port interface for the cluster reconciliation API
- Submits declarative manifests and reads back rollout state and diagnostics
- Implemented by KubectlAdapter
"""

from abc import ABC, abstractmethod
from typing import Any

from shipyard.domain.value_objects.kube_context import KubeContext


class ClusterPort(ABC):
    """
    Port interface for talking to a Kubernetes API server.
    """

    @abstractmethod
    async def is_available(self) -> bool:
        pass

    @abstractmethod
    async def apply(self, kube: KubeContext, source: str) -> str:
        """
        Submits a manifest file path or URL for reconciliation.
        """
        pass

    @abstractmethod
    async def rollout_status(self, kube: KubeContext, deployment: str, timeout: int) -> str:
        """
        Blocks until the deployment has rolled out; raises on timeout or failure.
        """
        pass

    @abstractmethod
    async def wait_for(
        self, kube: KubeContext, namespace: str, condition: str, selector: str, timeout: int
    ) -> str:
        """
        Waits until pods matching selector in namespace satisfy condition.
        """
        pass

    @abstractmethod
    async def get_pods(self, kube: KubeContext, selector: str) -> list[dict[str, Any]]:
        """
        Lists pods matching a label selector as raw API objects.
        """
        pass

    @abstractmethod
    async def get_service(self, kube: KubeContext, name: str) -> dict[str, Any]:
        pass

    @abstractmethod
    async def describe(self, kube: KubeContext, kind: str, name: str) -> str:
        pass

    @abstractmethod
    async def logs(self, kube: KubeContext, selector: str, tail: int = 100) -> str:
        pass
