"""
Provision Cluster Use Case

Architectural Intent:
- Creates a local multi-node cluster from a validated topology file
- Installs the nginx ingress controller and waits until it is ready
- Tears the cluster down again on request
"""

import logging
from pathlib import Path

from shipyard.domain.entities.cluster_topology import ClusterTopology
from shipyard.domain.errors import CommandError, ManifestError, ProvisioningError
from shipyard.domain.ports.cluster_port import ClusterPort
from shipyard.domain.ports.manifest_store_port import ManifestStorePort
from shipyard.domain.ports.provisioner_port import ProvisionerPort
from shipyard.domain.value_objects.kube_context import KubeContext

logger = logging.getLogger(__name__)

INGRESS_CONTROLLER_MANIFEST = (
    "https://raw.githubusercontent.com/kubernetes/ingress-nginx/main/"
    "deploy/static/provider/kind/deploy.yaml"
)
INGRESS_NAMESPACE = "ingress-nginx"
INGRESS_SELECTOR = "app.kubernetes.io/component=controller"
INGRESS_READY_TIMEOUT = 90


class ProvisionCluster:
    def __init__(
        self,
        provisioner: ProvisionerPort,
        cluster_port: ClusterPort,
        manifest_store: ManifestStorePort,
        ingress_manifest: str = INGRESS_CONTROLLER_MANIFEST,
    ):
        self.provisioner = provisioner
        self.cluster_port = cluster_port
        self.manifest_store = manifest_store
        self.ingress_manifest = ingress_manifest

    def load(self, config_path: str) -> ClusterTopology:
        documents = self.manifest_store.read(Path(config_path))
        clusters = [d for d in documents if d.get("kind") == "Cluster"]
        if len(clusters) != 1:
            raise ManifestError(
                f"{config_path} must contain exactly one Cluster, found {len(clusters)}"
            )
        try:
            return ClusterTopology.from_manifest(clusters[0])
        except (KeyError, TypeError, ValueError) as e:
            raise ManifestError(f"Invalid cluster topology in {config_path}: {e}") from e

    async def execute(
        self, config_path: str, kubeconfig: str, install_ingress: bool = True
    ) -> ClusterTopology:
        topology = self.load(config_path)
        if not await self.provisioner.is_available():
            raise ProvisioningError("Cluster provisioner is not available")

        try:
            if topology.name in await self.provisioner.list_clusters():
                logger.info("Cluster %s already exists, skipping creation", topology.name)
            else:
                await self.provisioner.create_cluster(
                    topology.name, Path(config_path), Path(kubeconfig)
                )
                logger.info(
                    "Created cluster %s (%d control-plane, %d worker)",
                    topology.name,
                    len(topology.control_planes),
                    len(topology.workers),
                )

            if install_ingress:
                if not topology.ingress_ready_nodes:
                    raise ProvisioningError(
                        f"Cluster {topology.name} has no node labelled ingress-ready=true"
                    )
                kube = KubeContext(Path(kubeconfig), f"kind-{topology.name}")
                await self.cluster_port.apply(kube, self.ingress_manifest)
                await self.cluster_port.wait_for(
                    kube,
                    INGRESS_NAMESPACE,
                    "ready",
                    INGRESS_SELECTOR,
                    INGRESS_READY_TIMEOUT,
                )
                logger.info("Ingress controller ready on %s", topology.name)
        except CommandError as e:
            raise ProvisioningError(f"Provisioning {topology.name} failed: {e}") from e
        return topology

    async def teardown(self, name: str) -> bool:
        try:
            if name not in await self.provisioner.list_clusters():
                logger.info("Cluster %s does not exist", name)
                return False
            await self.provisioner.delete_cluster(name)
        except CommandError as e:
            raise ProvisioningError(f"Deleting {name} failed: {e}") from e
        return True
