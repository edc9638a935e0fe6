"""Global test configuration.

Shared fixtures: a ready-to-run PipelineEnvironment in a temporary
workspace and mocked collaborators for every port the orchestrator uses.
"""

from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from shipyard.application.dtos.pipeline_environment import PipelineEnvironment
from shipyard.domain.value_objects.build_id import BuildId
from shipyard.domain.value_objects.credential_ref import CredentialRef, Secret
from shipyard.domain.value_objects.image_ref import ImageRef

REGISTRY_PASSWORD = "s3cr3t-registry-password"


def running_pod(name: str = "web-abc") -> dict:
    return {
        "metadata": {"name": name},
        "status": {"phase": "Running", "containerStatuses": [{"ready": True}]},
    }


@pytest.fixture
def environment(tmp_path) -> PipelineEnvironment:
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    (workspace / "Dockerfile").write_text("FROM nginx:alpine\n")
    kubeconfig = tmp_path / "kubeconfig.yaml"
    kubeconfig.write_text("apiVersion: v1\nkind: Config\n")
    return PipelineEnvironment(
        app_name="web",
        image=ImageRef.parse("registry.example.com/team/web"),
        cluster_name="ingress-cluster",
        workspace=workspace,
        build_id=BuildId(42),
        registry_credential=CredentialRef("registry-creds"),
        kubeconfig=kubeconfig,
    )


@pytest.fixture
def ports(tmp_path):
    container = AsyncMock()
    container.is_available = AsyncMock(return_value=True)
    container.build = AsyncMock(return_value="Successfully built")
    container.push = AsyncMock(return_value="pushed")
    container.login = AsyncMock(return_value=None)
    container.logout = AsyncMock(return_value=None)
    container.remove_image = AsyncMock(return_value=True)

    cluster = AsyncMock()
    cluster.is_available = AsyncMock(return_value=True)
    cluster.apply = AsyncMock(return_value="deployment.apps/web configured")
    cluster.rollout_status = AsyncMock(return_value="successfully rolled out")
    cluster.get_pods = AsyncMock(return_value=[running_pod()])
    cluster.get_service = AsyncMock(
        return_value={"spec": {"ports": [{"port": 80, "nodePort": 30080}]}}
    )
    cluster.describe = AsyncMock(return_value="Name: web")
    cluster.logs = AsyncMock(return_value="GET / 200")

    source = AsyncMock()
    source.is_available = AsyncMock(return_value=True)
    source.checkout = AsyncMock(return_value="0123456789abcdef")

    secrets = AsyncMock()
    secrets.resolve = AsyncMock(
        side_effect=lambda ref: Secret(ref, username="ci", value=REGISTRY_PASSWORD)
    )

    manifests = MagicMock()
    manifests.write = MagicMock(side_effect=lambda path, docs: Path(path))
    manifests.remove = MagicMock(return_value=True)

    return SimpleNamespace(
        container=container,
        cluster=cluster,
        source=source,
        secrets=secrets,
        manifests=manifests,
    )


@pytest.fixture
def stage_context(environment, ports):
    from shipyard.application.stages.base import StageContext

    return StageContext(
        environment=environment,
        container=ports.container,
        cluster=ports.cluster,
        source=ports.source,
        secrets=ports.secrets,
        manifests=ports.manifests,
    )
