"""
Manifest Store Port

Architectural Intent:
- Reads and writes declarative manifests (multi-document YAML) on disk
- Keeps serialization format out of the domain
"""

from pathlib import Path
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ManifestStorePort(Protocol):
    def read(self, path: Path) -> list[dict[str, Any]]: ...

    def write(self, path: Path, documents: list[dict[str, Any]]) -> Path: ...

    def remove(self, path: Path) -> bool: ...
