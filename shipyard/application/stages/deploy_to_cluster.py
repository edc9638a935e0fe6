"""
Deploy To Cluster Stage

Renders the deployment and service descriptors, writes them to the
workspace and submits them for reconciliation, then waits for the rollout.
The orchestrator bounds the whole stage with a time limit, the environment's
deploy timeout unless the stage was built with its own; already applied
cluster state is left to the reconciler.
"""

from typing import Optional

from shipyard.application.dtos.pipeline_environment import PipelineEnvironment
from shipyard.application.stages.scopes import kube_context_scope
from shipyard.application.stages.base import Stage, StageContext
from shipyard.domain.entities.descriptors import DeploymentDescriptor, ServiceDescriptor
from shipyard.domain.errors import CommandError, DeployError

DESCRIPTOR_PATH = "descriptor_path"


def render_descriptors(context: StageContext) -> list[dict]:
    env = context.environment
    deployment = DeploymentDescriptor(
        name=env.app_name,
        image=env.build_tag,
        container_port=env.container_port,
        replicas=env.replicas,
        namespace=env.namespace,
    )
    service = ServiceDescriptor.for_deployment(deployment, node_port=env.node_port)
    return [deployment.to_manifest(), service.to_manifest()]


class DeployToCluster(Stage):
    name = "deploy-to-cluster"

    def __init__(self, critical: bool = True, timeout: Optional[float] = None) -> None:
        super().__init__(critical=critical, timeout=timeout)

    def time_limit(self, environment: PipelineEnvironment) -> Optional[float]:
        if self.timeout is not None:
            return self.timeout
        return environment.deploy_timeout_seconds

    async def run(self, context: StageContext) -> str:
        env = context.environment
        try:
            documents = render_descriptors(context)
        except ValueError as e:
            raise DeployError(f"Invalid deployment descriptor: {e}") from e

        path = context.manifests.write(env.descriptor_path, documents)
        context.artifacts[DESCRIPTOR_PATH] = path

        async with kube_context_scope(context) as kube:
            try:
                applied = await context.cluster.apply(kube, str(path))
                rollout = await context.cluster.rollout_status(
                    kube, env.app_name, env.rollout_timeout_seconds
                )
            except CommandError as e:
                raise DeployError(f"Deployment to {env.cluster_name} failed: {e}") from e
        return "\n".join(o for o in (applied, rollout) if o)
