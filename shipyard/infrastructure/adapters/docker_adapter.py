"""
Docker Adapter

Architectural Intent:
- Infrastructure adapter implementing ContainerPort via the docker CLI
- Registry passwords are passed on stdin, never on the command line
"""

import logging
from pathlib import Path
from typing import Optional, Sequence

from shipyard.domain.errors import CommandError
from shipyard.domain.ports.container_port import ContainerPort
from shipyard.domain.value_objects.credential_ref import Secret
from shipyard.domain.value_objects.image_ref import ImageRef
from shipyard.infrastructure.adapters.command_runner import CommandRunner

logger = logging.getLogger(__name__)


class DockerAdapter(ContainerPort):
    def __init__(self, runner: Optional[CommandRunner] = None, binary: str = "docker"):
        self.runner = runner or CommandRunner()
        self.binary = binary

    async def is_available(self) -> bool:
        if not self.runner.which(self.binary):
            return False
        result = await self.runner.run([self.binary, "version", "--format", "{{.Server.Version}}"], check=False)
        return result.ok

    async def build(self, context_dir: Path, tags: Sequence[ImageRef]) -> str:
        argv = [self.binary, "build"]
        for tag in tags:
            argv += ["-t", str(tag)]
        argv.append(str(context_dir))
        result = await self.runner.run(argv)
        return result.stdout.strip()

    async def login(self, registry: str, secret: Secret) -> None:
        argv = [self.binary, "login", "--username", secret.username, "--password-stdin"]
        if registry:
            argv.append(registry)
        await self.runner.run(argv, input=secret.reveal())
        logger.info("Logged in to %s as %s", registry or "default registry", secret.username)

    async def logout(self, registry: str) -> None:
        argv = [self.binary, "logout"]
        if registry:
            argv.append(registry)
        await self.runner.run(argv)

    async def push(self, image: ImageRef) -> str:
        result = await self.runner.run([self.binary, "push", str(image)])
        return result.stdout.strip()

    async def remove_image(self, image: ImageRef) -> bool:
        try:
            await self.runner.run([self.binary, "rmi", str(image)])
            return True
        except CommandError as e:
            if "No such image" in e.stderr:
                return False
            raise
