"""
Workload Descriptors

Architectural Intent:
- Declarative descriptions of what the pipeline submits to the cluster
- Rendered to plain Kubernetes manifest dicts; serialization lives in infrastructure
"""

from __future__ import annotations
from dataclasses import dataclass, field
import re

from shipyard.domain.value_objects.image_ref import ImageRef

# RFC 1123 label, as required for Kubernetes object names
_DNS_LABEL_RE = re.compile(r"^[a-z0-9]([-a-z0-9]{0,61}[a-z0-9])?$")

NODE_PORT_RANGE = (30000, 32767)


def _check_name(name: str) -> None:
    if not _DNS_LABEL_RE.match(name):
        raise ValueError(f"Invalid Kubernetes object name: {name!r}")


def _check_port(port: int, what: str) -> None:
    if not (1 <= port <= 65535):
        raise ValueError(f"{what} must be 1-65535, got {port}")


@dataclass(frozen=True)
class ResourceSpec:
    cpu: str
    memory: str

    def to_dict(self) -> dict[str, str]:
        return {"cpu": self.cpu, "memory": self.memory}


@dataclass(frozen=True)
class DeploymentDescriptor:
    name: str
    image: ImageRef
    container_port: int = 80
    replicas: int = 2
    requests: ResourceSpec = field(default_factory=lambda: ResourceSpec("100m", "128Mi"))
    limits: ResourceSpec = field(default_factory=lambda: ResourceSpec("500m", "256Mi"))
    namespace: str = "default"

    def __post_init__(self) -> None:
        _check_name(self.name)
        _check_port(self.container_port, "Container port")
        if self.replicas < 0:
            raise ValueError(f"Replicas cannot be negative, got {self.replicas}")

    @property
    def labels(self) -> dict[str, str]:
        return {"app": self.name}

    def to_manifest(self) -> dict:
        return {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
                "labels": self.labels,
            },
            "spec": {
                "replicas": self.replicas,
                "selector": {"matchLabels": self.labels},
                "template": {
                    "metadata": {"labels": self.labels},
                    "spec": {
                        "containers": [
                            {
                                "name": self.name,
                                "image": str(self.image),
                                "ports": [{"containerPort": self.container_port}],
                                "resources": {
                                    "requests": self.requests.to_dict(),
                                    "limits": self.limits.to_dict(),
                                },
                            }
                        ]
                    },
                },
            },
        }


@dataclass(frozen=True)
class ServiceDescriptor:
    name: str
    selector: dict[str, str]
    port: int = 80
    target_port: int = 80
    node_port: int = 30080
    namespace: str = "default"

    def __post_init__(self) -> None:
        _check_name(self.name)
        _check_port(self.port, "Service port")
        _check_port(self.target_port, "Target port")
        low, high = NODE_PORT_RANGE
        if not (low <= self.node_port <= high):
            raise ValueError(f"Node port must be {low}-{high}, got {self.node_port}")
        if not self.selector:
            raise ValueError("Service selector cannot be empty")

    @classmethod
    def for_deployment(cls, deployment: DeploymentDescriptor, node_port: int) -> ServiceDescriptor:
        return cls(
            name=deployment.name,
            selector=deployment.labels,
            target_port=deployment.container_port,
            node_port=node_port,
            namespace=deployment.namespace,
        )

    def to_manifest(self) -> dict:
        return {
            "apiVersion": "v1",
            "kind": "Service",
            "metadata": {"name": self.name, "namespace": self.namespace},
            "spec": {
                "type": "NodePort",
                "selector": dict(self.selector),
                "ports": [
                    {
                        "protocol": "TCP",
                        "port": self.port,
                        "targetPort": self.target_port,
                        "nodePort": self.node_port,
                    }
                ],
            },
        }
