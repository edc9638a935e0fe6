"""
Git Adapter

Architectural Intent:
- Infrastructure adapter implementing SourcePort via the git CLI
- Shallow clone of a single ref into the workspace
"""

import logging
from pathlib import Path
from typing import Optional

from shipyard.domain.errors import SourceCheckoutError
from shipyard.domain.ports.source_port import SourcePort
from shipyard.infrastructure.adapters.command_runner import CommandRunner

logger = logging.getLogger(__name__)


class GitAdapter(SourcePort):
    def __init__(self, runner: Optional[CommandRunner] = None, binary: str = "git"):
        self.runner = runner or CommandRunner()
        self.binary = binary

    async def is_available(self) -> bool:
        return self.runner.which(self.binary) is not None

    async def checkout(self, repository: str, ref: str, workspace: Path) -> str:
        if workspace.exists() and any(workspace.iterdir()):
            raise SourceCheckoutError(f"Workspace {workspace} is not empty")
        workspace.parent.mkdir(parents=True, exist_ok=True)

        await self.runner.run(
            [self.binary, "clone", "--depth", "1", "--branch", ref, repository, str(workspace)]
        )
        result = await self.runner.run([self.binary, "rev-parse", "HEAD"], cwd=workspace)
        commit = result.stdout.strip()
        logger.info("Checked out %s@%s (%s)", repository, ref, commit[:12])
        return commit
