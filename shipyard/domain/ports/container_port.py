"""
Container Port

Architectural Intent:
- Port interface for the container build/push service
- Abstracts image build, registry session and local image removal
- Implemented by DockerAdapter
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Sequence

from shipyard.domain.value_objects.image_ref import ImageRef
from shipyard.domain.value_objects.credential_ref import Secret


class ContainerPort(ABC):
    """
    Port interface for building and publishing container images.
    """

    @abstractmethod
    async def is_available(self) -> bool:
        """
        Returns True if the container tooling can be used.
        """
        pass

    @abstractmethod
    async def build(self, context_dir: Path, tags: Sequence[ImageRef]) -> str:
        """
        Builds an image from context_dir, applying every tag. Returns build output.
        """
        pass

    @abstractmethod
    async def login(self, registry: str, secret: Secret) -> None:
        """
        Opens an authenticated registry session.
        """
        pass

    @abstractmethod
    async def logout(self, registry: str) -> None:
        """
        Closes the registry session.
        """
        pass

    @abstractmethod
    async def push(self, image: ImageRef) -> str:
        """
        Pushes a tagged image to its registry. Returns push output.
        """
        pass

    @abstractmethod
    async def remove_image(self, image: ImageRef) -> bool:
        """
        Removes a local image tag. Returns False if nothing was removed.
        """
        pass
