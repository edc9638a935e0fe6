"""
Domain Ports Package

Architectural Intent:
- Contains port interfaces (abstract contracts) for external tools
- Ports define what the pipeline needs, adapters implement how
- Follows Hexagonal Architecture principles
"""

from shipyard.domain.ports.container_port import ContainerPort
from shipyard.domain.ports.cluster_port import ClusterPort
from shipyard.domain.ports.source_port import SourcePort
from shipyard.domain.ports.provisioner_port import ProvisionerPort
from shipyard.domain.ports.secret_port import SecretResolverPort
from shipyard.domain.ports.manifest_store_port import ManifestStorePort
from shipyard.domain.ports.event_bus_port import EventBusPort
from shipyard.domain.ports.run_history_port import RunHistoryPort

__all__ = [
    "ContainerPort",
    "ClusterPort",
    "SourcePort",
    "ProvisionerPort",
    "SecretResolverPort",
    "ManifestStorePort",
    "EventBusPort",
    "RunHistoryPort",
]
