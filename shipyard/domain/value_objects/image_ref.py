"""
Image Reference Value Object

Architectural Intent:
- Immutable registry coordinates for a container image
- Parses "registry/namespace/name[:tag]" and renders tagged references
"""

import re
from dataclasses import dataclass
from typing import Optional

_NAME_RE = re.compile(r"^[a-z0-9]+(?:[._\-/][a-z0-9]+)*$")
_TAG_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.\-]{0,127}$")


@dataclass(frozen=True)
class ImageRef:
    repository: str
    registry: str = ""
    tag: str = "latest"

    def __post_init__(self) -> None:
        if not self.repository or not _NAME_RE.match(self.repository):
            raise ValueError(f"Invalid image repository: {self.repository!r}")
        if not _TAG_RE.match(self.tag):
            raise ValueError(f"Invalid image tag: {self.tag!r}")

    @property
    def name(self) -> str:
        if self.registry:
            return f"{self.registry}/{self.repository}"
        return self.repository

    def with_tag(self, tag: str) -> "ImageRef":
        return ImageRef(repository=self.repository, registry=self.registry, tag=tag)

    def __str__(self) -> str:
        return f"{self.name}:{self.tag}"

    @staticmethod
    def parse(reference: str, default_registry: Optional[str] = None) -> "ImageRef":
        """
        Parses 'registry.example.com:5000/team/app:1.2', 'team/app' or 'app:tag'.
        The first path component is treated as a registry when it contains a
        dot or a port, or is 'localhost'.
        """
        ref = reference.strip()
        if not ref:
            raise ValueError("Image reference cannot be empty")

        tag = "latest"
        last_slash = ref.rfind("/")
        last_colon = ref.rfind(":")
        if last_colon > last_slash:
            tag = ref[last_colon + 1:]
            ref = ref[:last_colon]

        registry = default_registry or ""
        if "/" in ref:
            first, rest = ref.split("/", 1)
            if "." in first or ":" in first or first == "localhost":
                registry = first
                ref = rest

        return ImageRef(repository=ref, registry=registry, tag=tag)
