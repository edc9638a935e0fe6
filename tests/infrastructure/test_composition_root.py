"""Tests for the composition root."""

from shipyard.application.orchestration.post_run import CleanupPhase
from shipyard.composition_root import create_container
from shipyard.infrastructure.config import (
    DeployConfig,
    HistoryConfig,
    ShipyardConfig,
)


class TestCreateContainer:
    def test_default_wiring(self):
        container = create_container()

        assert container.orchestrator.container is container.docker_adapter
        assert container.orchestrator.cluster is container.kubectl_adapter
        assert container.orchestrator.event_bus is container.event_bus
        assert container.run_pipeline.history is container.run_history
        assert container.apply_ingress.cluster_port is container.kubectl_adapter
        assert container.provision_cluster.provisioner is container.kind_adapter

    def test_adapters_share_one_runner(self):
        container = create_container()
        assert container.docker_adapter.runner is container.kubectl_adapter.runner

    def test_deploy_settings_applied(self, tmp_path):
        config = ShipyardConfig(
            deploy=DeployConfig(timeout_seconds=30, remove_images=False),
            history=HistoryConfig(db_path=str(tmp_path / "h.db")),
        )

        container = create_container(config)

        stages = {s.name: s for s in container.orchestrator.stages}
        assert stages["deploy-to-cluster"].timeout is None
        assert isinstance(container.orchestrator.always, CleanupPhase)
        assert container.orchestrator.always.remove_images is False
        assert container.run_history._db_path == str(tmp_path / "h.db")
