"""
Provisioner Port

Architectural Intent:
- Port interface for creating and deleting local clusters
- Node bootstrapping is entirely the provisioner's concern
- Implemented by KindAdapter
"""

from abc import ABC, abstractmethod
from pathlib import Path


class ProvisionerPort(ABC):

    @abstractmethod
    async def is_available(self) -> bool:
        pass

    @abstractmethod
    async def list_clusters(self) -> list[str]:
        pass

    @abstractmethod
    async def create_cluster(self, name: str, config_path: Path, kubeconfig: Path) -> str:
        """
        Creates a cluster from a topology file, writing credentials to kubeconfig.
        """
        pass

    @abstractmethod
    async def delete_cluster(self, name: str) -> str:
        pass
