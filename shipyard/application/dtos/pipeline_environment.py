"""
Pipeline Environment

Architectural Intent:
- Immutable configuration handed to the orchestrator at run start
- Replaces globally shared environment variables with one explicit value
- Holds credential *references* only; secrets are resolved inside stage scopes
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from shipyard.domain.value_objects.build_id import BuildId
from shipyard.domain.value_objects.credential_ref import CredentialRef
from shipyard.domain.value_objects.image_ref import ImageRef

DEFAULT_DEPLOY_TIMEOUT_SECONDS = 600


@dataclass(frozen=True)
class PipelineEnvironment:
    app_name: str
    image: ImageRef
    cluster_name: str
    workspace: Path
    build_id: Optional[BuildId] = None
    registry_credential: Optional[CredentialRef] = None
    kubeconfig: Optional[Path] = None
    kubeconfig_credential: Optional[CredentialRef] = None
    kube_context: Optional[str] = None
    namespace: str = "default"
    build_context: str = "."
    source_repository: Optional[str] = None
    source_ref: str = "main"
    replicas: int = 2
    container_port: int = 80
    node_port: int = 30080
    access_host: str = "localhost"
    deploy_timeout_seconds: float = DEFAULT_DEPLOY_TIMEOUT_SECONDS
    rollout_timeout_seconds: int = 300

    def __post_init__(self) -> None:
        if not self.app_name:
            raise ValueError("app_name cannot be empty")
        if not self.cluster_name:
            raise ValueError("cluster_name cannot be empty")
        if self.kubeconfig is None and self.kubeconfig_credential is None:
            raise ValueError("either kubeconfig or kubeconfig_credential is required")
        if self.deploy_timeout_seconds <= 0:
            raise ValueError("deploy_timeout_seconds must be positive")
        if self.rollout_timeout_seconds <= 0:
            raise ValueError("rollout_timeout_seconds must be positive")
        if Path(self.build_context).is_absolute() or ".." in Path(self.build_context).parts:
            raise ValueError("build_context must be a relative path inside the workspace")

    @property
    def build_tag(self) -> ImageRef:
        if self.build_id is None:
            raise ValueError("build_id has not been assigned")
        return self.image.with_tag(str(self.build_id))

    @property
    def latest_tag(self) -> ImageRef:
        return self.image.with_tag("latest")

    @property
    def image_tags(self) -> tuple[ImageRef, ImageRef]:
        return (self.build_tag, self.latest_tag)

    @property
    def context_dir(self) -> Path:
        return self.workspace / self.build_context

    @property
    def descriptor_path(self) -> Path:
        return self.workspace / f"{self.app_name}-deployment.yaml"

    @property
    def selector(self) -> str:
        return f"app={self.app_name}"

    def with_build_id(self, build_id: BuildId) -> PipelineEnvironment:
        return replace(self, build_id=build_id)

    def public_view(self) -> dict[str, str]:
        """Named values safe to keep on the run record."""
        view = {
            "APP_NAME": self.app_name,
            "IMAGE_NAME": self.image.name,
            "CLUSTER_NAME": self.cluster_name,
            "NAMESPACE": self.namespace,
            "WORKSPACE": str(self.workspace),
            "BUILD_ID": str(self.build_id) if self.build_id else "",
        }
        if self.registry_credential:
            view["REGISTRY_CREDENTIAL"] = str(self.registry_credential)
        if self.kubeconfig:
            view["KUBECONFIG"] = str(self.kubeconfig)
        if self.kubeconfig_credential:
            view["KUBECONFIG_CREDENTIAL"] = str(self.kubeconfig_credential)
        if self.source_repository:
            view["SOURCE_REPOSITORY"] = self.source_repository
            view["SOURCE_REF"] = self.source_ref
        return view
