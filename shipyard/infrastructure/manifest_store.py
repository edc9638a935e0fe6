"""
YAML Manifest Store

Architectural Intent:
- Implements ManifestStorePort with PyYAML
- Multi-document files are read and written as lists of dicts
- safe_load/safe_dump only; manifests never construct Python objects
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from shipyard.domain.errors import ManifestError

logger = logging.getLogger(__name__)


class YamlManifestStore:
    def read(self, path: Path) -> list[dict[str, Any]]:
        try:
            with open(path) as f:
                documents = [d for d in yaml.safe_load_all(f) if d is not None]
        except FileNotFoundError as e:
            raise ManifestError(f"Manifest not found: {path}") from e
        except yaml.YAMLError as e:
            raise ManifestError(f"Invalid YAML in {path}: {e}") from e

        for doc in documents:
            if not isinstance(doc, dict):
                raise ManifestError(f"{path}: every document must be a mapping")
        return documents

    def write(self, path: Path, documents: list[dict[str, Any]]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump_all(documents, f, sort_keys=False, default_flow_style=False)
        logger.debug("Wrote %d manifest(s) to %s", len(documents), path)
        return path

    def remove(self, path: Path) -> bool:
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
