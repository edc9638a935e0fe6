"""
Apply Ingress Use Case

Architectural Intent:
- Loads an Ingress manifest into a routing table (validating it on the way)
- Submits it once to the cluster for reconciliation
- Answers routing questions against the persisted table without a cluster
"""

import logging
from pathlib import Path
from typing import Optional

from shipyard.domain.entities.ingress import Backend, IngressRoutingTable
from shipyard.domain.errors import ManifestError
from shipyard.domain.ports.cluster_port import ClusterPort
from shipyard.domain.ports.manifest_store_port import ManifestStorePort
from shipyard.domain.value_objects.kube_context import KubeContext

logger = logging.getLogger(__name__)


class ApplyIngress:
    def __init__(self, cluster_port: ClusterPort, manifest_store: ManifestStorePort):
        self.cluster_port = cluster_port
        self.manifest_store = manifest_store

    def load(self, manifest_path: str) -> IngressRoutingTable:
        documents = self.manifest_store.read(Path(manifest_path))
        ingresses = [d for d in documents if d.get("kind") == "Ingress"]
        if len(ingresses) != 1:
            raise ManifestError(
                f"{manifest_path} must contain exactly one Ingress, found {len(ingresses)}"
            )
        try:
            return IngressRoutingTable.from_manifest(ingresses[0])
        except (KeyError, TypeError, ValueError) as e:
            raise ManifestError(f"Invalid Ingress in {manifest_path}: {e}") from e

    def route(self, manifest_path: str, host: str, path: str = "/") -> Optional[Backend]:
        return self.load(manifest_path).route(host, path)

    async def execute(self, manifest_path: str, kube: KubeContext) -> IngressRoutingTable:
        table = self.load(manifest_path)
        output = await self.cluster_port.apply(kube, str(manifest_path))
        logger.info("Applied ingress %s (%d rules): %s", table.name, len(table.rules), output)
        return table
