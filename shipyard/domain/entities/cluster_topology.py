"""
Cluster Topology Module

Architectural Intent:
- Model of a local multi-node kind cluster definition
- Validated on load; persisted back field for field
- Node bootstrapping itself is the provisioner's business, not ours
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Optional

KIND_API_VERSION = "kind.x-k8s.io/v1alpha4"
NODE_ROLES = ("control-plane", "worker")
INGRESS_READY_LABEL = "ingress-ready=true"


@dataclass(frozen=True)
class PortMapping:
    container_port: int
    host_port: int
    protocol: str = "TCP"

    def __post_init__(self) -> None:
        for port in (self.container_port, self.host_port):
            if not (1 <= port <= 65535):
                raise ValueError(f"Port must be 1-65535, got {port}")
        if self.protocol not in ("TCP", "UDP", "SCTP"):
            raise ValueError(f"Unsupported protocol: {self.protocol!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "containerPort": self.container_port,
            "hostPort": self.host_port,
            "protocol": self.protocol,
        }


@dataclass(frozen=True)
class ClusterNode:
    role: str
    port_mappings: tuple[PortMapping, ...] = ()
    kubeadm_config_patches: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.role not in NODE_ROLES:
            raise ValueError(f"Unknown node role: {self.role!r}")

    @property
    def ingress_ready(self) -> bool:
        return any(INGRESS_READY_LABEL in patch for patch in self.kubeadm_config_patches)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"role": self.role}
        if self.kubeadm_config_patches:
            data["kubeadmConfigPatches"] = list(self.kubeadm_config_patches)
        if self.port_mappings:
            data["extraPortMappings"] = [m.to_dict() for m in self.port_mappings]
        return data


@dataclass(frozen=True)
class ClusterTopology:
    name: str
    nodes: tuple[ClusterNode, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Cluster name cannot be empty")
        if not any(n.role == "control-plane" for n in self.nodes):
            raise ValueError("Cluster needs at least one control-plane node")
        host_ports = [m.host_port for n in self.nodes for m in n.port_mappings]
        if len(host_ports) != len(set(host_ports)):
            raise ValueError("Host ports must be unique across nodes")

    @property
    def control_planes(self) -> list[ClusterNode]:
        return [n for n in self.nodes if n.role == "control-plane"]

    @property
    def workers(self) -> list[ClusterNode]:
        return [n for n in self.nodes if n.role == "worker"]

    @property
    def ingress_ready_nodes(self) -> list[ClusterNode]:
        return [n for n in self.nodes if n.ingress_ready]

    def host_port_for(self, container_port: int) -> Optional[int]:
        for node in self.nodes:
            for mapping in node.port_mappings:
                if mapping.container_port == container_port:
                    return mapping.host_port
        return None

    @classmethod
    def from_manifest(cls, manifest: dict[str, Any]) -> ClusterTopology:
        if manifest.get("kind") != "Cluster":
            raise ValueError(f"Expected kind Cluster, got {manifest.get('kind')!r}")
        if manifest.get("apiVersion") != KIND_API_VERSION:
            raise ValueError(
                f"Unsupported cluster apiVersion: {manifest.get('apiVersion')!r}"
            )
        nodes = []
        for node in manifest.get("nodes") or [{"role": "control-plane"}]:
            nodes.append(
                ClusterNode(
                    role=node.get("role", ""),
                    port_mappings=tuple(
                        PortMapping(
                            container_port=int(m["containerPort"]),
                            host_port=int(m["hostPort"]),
                            protocol=m.get("protocol", "TCP"),
                        )
                        for m in node.get("extraPortMappings") or []
                    ),
                    kubeadm_config_patches=tuple(node.get("kubeadmConfigPatches") or []),
                )
            )
        return cls(name=manifest.get("name", "kind"), nodes=tuple(nodes))

    def to_manifest(self) -> dict[str, Any]:
        return {
            "kind": "Cluster",
            "apiVersion": KIND_API_VERSION,
            "name": self.name,
            "nodes": [n.to_dict() for n in self.nodes],
        }
