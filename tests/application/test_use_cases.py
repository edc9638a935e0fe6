"""Tests for the application use cases."""

from dataclasses import replace
from pathlib import Path

import pytest
from unittest.mock import AsyncMock, MagicMock

from shipyard.application.orchestration.deployment_orchestrator import OrchestrationError
from shipyard.application.use_cases.apply_ingress import ApplyIngress
from shipyard.application.use_cases.provision_cluster import (
    INGRESS_NAMESPACE,
    INGRESS_READY_TIMEOUT,
    INGRESS_SELECTOR,
    ProvisionCluster,
)
from shipyard.application.use_cases.run_pipeline import RunPipeline
from shipyard.domain.entities.ingress import Backend
from shipyard.domain.errors import CommandError, ManifestError, ProvisioningError
from shipyard.domain.value_objects.build_id import BuildId
from shipyard.domain.value_objects.kube_context import KubeContext

INGRESS = {
    "apiVersion": "networking.k8s.io/v1",
    "kind": "Ingress",
    "metadata": {"name": "ingress"},
    "spec": {
        "rules": [
            {
                "host": "api.example.com",
                "http": {
                    "paths": [
                        {
                            "path": "/",
                            "pathType": "Prefix",
                            "backend": {"service": {"name": "api", "port": {"number": 80}}},
                        }
                    ]
                },
            }
        ]
    },
}

CLUSTER = {
    "kind": "Cluster",
    "apiVersion": "kind.x-k8s.io/v1alpha4",
    "name": "ingress-cluster",
    "nodes": [
        {
            "role": "control-plane",
            "kubeadmConfigPatches": ['node-labels: "ingress-ready=true"'],
            "extraPortMappings": [{"containerPort": 80, "hostPort": 80}],
        },
        {"role": "worker"},
    ],
}


class TestRunPipeline:
    @pytest.mark.asyncio
    async def test_assigns_build_id_from_history(self, environment):
        orchestrator = MagicMock()
        orchestrator.run = AsyncMock(side_effect=lambda env: MagicMock(build_id=env.build_id))
        history = MagicMock()
        history.next_build_id.return_value = BuildId(8)

        run = await RunPipeline(orchestrator, history).execute(replace(environment, build_id=None))

        assert run.build_id == BuildId(8)
        history.save.assert_called_once_with(run)

    @pytest.mark.asyncio
    async def test_keeps_given_build_id(self, environment):
        orchestrator = MagicMock()
        orchestrator.run = AsyncMock(return_value=MagicMock())
        history = MagicMock()
        history.get.return_value = None

        await RunPipeline(orchestrator, history).execute(environment)

        history.next_build_id.assert_not_called()
        history.get.assert_called_once_with(BuildId(42))
        assert orchestrator.run.await_args.args[0].build_id == BuildId(42)

    @pytest.mark.asyncio
    async def test_recorded_build_id_not_rerun(self, environment):
        orchestrator = MagicMock()
        orchestrator.run = AsyncMock()
        history = MagicMock()
        history.get.return_value = {"build_id": 42, "outcome": "failure"}

        with pytest.raises(OrchestrationError, match="already recorded"):
            await RunPipeline(orchestrator, history).execute(environment)

        orchestrator.run.assert_not_awaited()
        history.save.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_history_requires_build_id(self, environment):
        with pytest.raises(OrchestrationError):
            await RunPipeline(MagicMock()).execute(replace(environment, build_id=None))

    @pytest.mark.asyncio
    async def test_history_save_failure_is_logged(self, environment):
        orchestrator = MagicMock()
        run = MagicMock()
        orchestrator.run = AsyncMock(return_value=run)
        history = MagicMock()
        history.get.return_value = None
        history.save.side_effect = RuntimeError("disk full")

        assert await RunPipeline(orchestrator, history).execute(environment) is run


class TestApplyIngress:
    def _use_case(self, documents):
        cluster = MagicMock()
        cluster.apply = AsyncMock(return_value="ingress.networking.k8s.io/ingress created")
        store = MagicMock()
        store.read.return_value = documents
        return ApplyIngress(cluster, store), cluster

    def test_route(self):
        use_case, _ = self._use_case([INGRESS])
        assert use_case.route("ingress.yaml", "api.example.com", "/v1") == Backend("api", 80)

    def test_requires_single_ingress(self):
        use_case, _ = self._use_case([INGRESS, INGRESS])
        with pytest.raises(ManifestError, match="exactly one Ingress"):
            use_case.load("ingress.yaml")

    def test_invalid_ingress(self):
        broken = {**INGRESS, "spec": {"rules": [{"host": "h", "http": {"paths": [{"path": "/"}]}}]}}
        use_case, _ = self._use_case([broken])
        with pytest.raises(ManifestError, match="Invalid Ingress"):
            use_case.load("ingress.yaml")

    @pytest.mark.asyncio
    async def test_execute_applies_manifest(self):
        use_case, cluster = self._use_case([INGRESS])
        kube = KubeContext(Path("/tmp/kubeconfig"))

        table = await use_case.execute("ingress.yaml", kube)

        assert table.name == "ingress"
        cluster.apply.assert_awaited_once_with(kube, "ingress.yaml")


class TestProvisionCluster:
    def _use_case(self, existing=()):
        provisioner = MagicMock()
        provisioner.is_available = AsyncMock(return_value=True)
        provisioner.list_clusters = AsyncMock(return_value=list(existing))
        provisioner.create_cluster = AsyncMock(return_value="")
        provisioner.delete_cluster = AsyncMock(return_value="")
        cluster = MagicMock()
        cluster.apply = AsyncMock(return_value="")
        cluster.wait_for = AsyncMock(return_value="condition met")
        store = MagicMock()
        store.read.return_value = [CLUSTER]
        return ProvisionCluster(provisioner, cluster, store, ingress_manifest="ingress.yaml"), provisioner, cluster

    @pytest.mark.asyncio
    async def test_create_and_install_ingress(self):
        use_case, provisioner, cluster = self._use_case()

        topology = await use_case.execute("kind.yaml", "/tmp/kubeconfig")

        assert topology.name == "ingress-cluster"
        provisioner.create_cluster.assert_awaited_once_with(
            "ingress-cluster", Path("kind.yaml"), Path("/tmp/kubeconfig")
        )
        kube = KubeContext(Path("/tmp/kubeconfig"), "kind-ingress-cluster")
        cluster.apply.assert_awaited_once_with(kube, "ingress.yaml")
        cluster.wait_for.assert_awaited_once_with(
            kube, INGRESS_NAMESPACE, "ready", INGRESS_SELECTOR, INGRESS_READY_TIMEOUT
        )

    @pytest.mark.asyncio
    async def test_existing_cluster_not_recreated(self):
        use_case, provisioner, _ = self._use_case(existing=["ingress-cluster"])

        await use_case.execute("kind.yaml", "/tmp/kubeconfig", install_ingress=False)

        provisioner.create_cluster.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_command_failure_wrapped(self):
        use_case, provisioner, _ = self._use_case()
        provisioner.create_cluster.side_effect = CommandError(["kind"], 1, stderr="port in use")

        with pytest.raises(ProvisioningError, match="port in use"):
            await use_case.execute("kind.yaml", "/tmp/kubeconfig")

    @pytest.mark.asyncio
    async def test_provisioner_unavailable(self):
        use_case, provisioner, _ = self._use_case()
        provisioner.is_available.return_value = False

        with pytest.raises(ProvisioningError, match="not available"):
            await use_case.execute("kind.yaml", "/tmp/kubeconfig")

    @pytest.mark.asyncio
    async def test_teardown(self):
        use_case, provisioner, _ = self._use_case(existing=["ingress-cluster"])

        assert await use_case.teardown("ingress-cluster") is True
        provisioner.delete_cluster.assert_awaited_once_with("ingress-cluster")
        assert await use_case.teardown("missing") is False

    @pytest.mark.asyncio
    async def test_teardown_listing_failure_wrapped(self):
        use_case, provisioner, _ = self._use_case()
        provisioner.list_clusters.side_effect = CommandError(["kind", "get", "clusters"], 1, stderr="no docker")

        with pytest.raises(ProvisioningError, match="no docker"):
            await use_case.teardown("ingress-cluster")

        provisioner.delete_cluster.assert_not_awaited()
