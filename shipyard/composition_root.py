"""
Composition Root

Architectural Intent:
- Dependency injection composition root for the Shipyard application
- Single place where all adapters and use cases are wired together

Design Decisions:
- Uses a simple dataclass container instead of a DI framework
- Factory function creates and wires all dependencies from a ShipyardConfig
- The run history connects lazily on first use
"""

from dataclasses import dataclass
from typing import Optional

from shipyard.application.orchestration.deployment_orchestrator import DeploymentOrchestrator
from shipyard.application.orchestration.post_run import CleanupPhase
from shipyard.application.stages import default_stages
from shipyard.application.use_cases.apply_ingress import ApplyIngress
from shipyard.application.use_cases.provision_cluster import ProvisionCluster
from shipyard.application.use_cases.run_pipeline import RunPipeline
from shipyard.infrastructure.adapters.command_runner import CommandRunner
from shipyard.infrastructure.adapters.docker_adapter import DockerAdapter
from shipyard.infrastructure.adapters.env_secret_adapter import EnvSecretAdapter
from shipyard.infrastructure.adapters.git_adapter import GitAdapter
from shipyard.infrastructure.adapters.kind_adapter import KindAdapter
from shipyard.infrastructure.adapters.kubectl_adapter import KubectlAdapter
from shipyard.infrastructure.config import ShipyardConfig
from shipyard.infrastructure.event_bus import EventBus
from shipyard.infrastructure.manifest_store import YamlManifestStore
from shipyard.infrastructure.repositories.sqlite_run_repository import SQLiteRunRepository


@dataclass
class ShipyardContainer:
    """DI container holding all wired dependencies."""

    config: ShipyardConfig
    docker_adapter: DockerAdapter
    kubectl_adapter: KubectlAdapter
    git_adapter: GitAdapter
    kind_adapter: KindAdapter
    secret_adapter: EnvSecretAdapter
    manifest_store: YamlManifestStore
    run_history: SQLiteRunRepository
    event_bus: EventBus
    orchestrator: DeploymentOrchestrator
    run_pipeline: RunPipeline
    apply_ingress: ApplyIngress
    provision_cluster: ProvisionCluster


def create_container(config: Optional[ShipyardConfig] = None) -> ShipyardContainer:
    """Create and wire all dependencies."""
    config = config or ShipyardConfig()
    runner = CommandRunner()

    docker_adapter = DockerAdapter(runner)
    kubectl_adapter = KubectlAdapter(runner)
    git_adapter = GitAdapter(runner)
    kind_adapter = KindAdapter(runner)
    secret_adapter = EnvSecretAdapter()
    manifest_store = YamlManifestStore()
    run_history = SQLiteRunRepository(config.history.db_path)
    event_bus = EventBus()

    orchestrator = DeploymentOrchestrator(
        container=docker_adapter,
        cluster=kubectl_adapter,
        source=git_adapter,
        secrets=secret_adapter,
        manifests=manifest_store,
        stages=default_stages(),
        always=CleanupPhase(remove_images=config.deploy.remove_images),
        event_bus=event_bus,
    )
    run_pipeline = RunPipeline(orchestrator, run_history)
    apply_ingress = ApplyIngress(kubectl_adapter, manifest_store)
    provision_cluster = ProvisionCluster(kind_adapter, kubectl_adapter, manifest_store)

    return ShipyardContainer(
        config=config,
        docker_adapter=docker_adapter,
        kubectl_adapter=kubectl_adapter,
        git_adapter=git_adapter,
        kind_adapter=kind_adapter,
        secret_adapter=secret_adapter,
        manifest_store=manifest_store,
        run_history=run_history,
        event_bus=event_bus,
        orchestrator=orchestrator,
        run_pipeline=run_pipeline,
        apply_ingress=apply_ingress,
        provision_cluster=provision_cluster,
    )
