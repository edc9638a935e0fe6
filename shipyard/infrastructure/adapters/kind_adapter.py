"""
Kind Adapter

Architectural Intent:
- Infrastructure adapter implementing ProvisionerPort via the kind CLI
"""

from pathlib import Path
from typing import Optional

from shipyard.domain.ports.provisioner_port import ProvisionerPort
from shipyard.infrastructure.adapters.command_runner import CommandRunner


class KindAdapter(ProvisionerPort):
    def __init__(self, runner: Optional[CommandRunner] = None, binary: str = "kind"):
        self.runner = runner or CommandRunner()
        self.binary = binary

    async def is_available(self) -> bool:
        return self.runner.which(self.binary) is not None

    async def list_clusters(self) -> list[str]:
        result = await self.runner.run([self.binary, "get", "clusters"])
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    async def create_cluster(self, name: str, config_path: Path, kubeconfig: Path) -> str:
        result = await self.runner.run(
            [
                self.binary,
                "create",
                "cluster",
                "--name",
                name,
                "--config",
                str(config_path),
                "--kubeconfig",
                str(kubeconfig),
            ]
        )
        return (result.stderr or result.stdout).strip()

    async def delete_cluster(self, name: str) -> str:
        result = await self.runner.run([self.binary, "delete", "cluster", "--name", name])
        return (result.stderr or result.stdout).strip()
