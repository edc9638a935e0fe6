"""
Source Port

Architectural Intent:
- Port interface for fetching the application source into the workspace
- Implemented by GitAdapter
"""

from abc import ABC, abstractmethod
from pathlib import Path


class SourcePort(ABC):

    @abstractmethod
    async def is_available(self) -> bool:
        pass

    @abstractmethod
    async def checkout(self, repository: str, ref: str, workspace: Path) -> str:
        """
        Checks out ref of repository into workspace. Returns the resolved commit.
        """
        pass
