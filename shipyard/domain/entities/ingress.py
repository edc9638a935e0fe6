"""
Ingress Routing Module

Architectural Intent:
- Faithful, field-for-field model of a networking.k8s.io/v1 Ingress
- Answers which backend a host+path is routed to, following the
  Kubernetes path matching rules (Exact before Prefix, longest prefix wins,
  prefixes match on whole path elements)
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

INGRESS_API_VERSION = "networking.k8s.io/v1"


class PathType(Enum):
    PREFIX = "Prefix"
    EXACT = "Exact"


@dataclass(frozen=True)
class Backend:
    service: str
    port: int

    def __str__(self) -> str:
        return f"{self.service}:{self.port}"


@dataclass(frozen=True)
class IngressRule:
    host: str
    path: str
    path_type: PathType
    backend: Backend

    def __post_init__(self) -> None:
        if not self.path.startswith("/"):
            raise ValueError(f"Ingress path must be absolute, got {self.path!r}")
        if not (1 <= self.backend.port <= 65535):
            raise ValueError(f"Backend port must be 1-65535, got {self.backend.port}")

    def matches(self, host: str, path: str) -> bool:
        if self.host and self.host != host:
            return False
        if self.path_type == PathType.EXACT:
            return path == self.path
        prefix = self.path.rstrip("/")
        if not prefix:
            return True
        return path == prefix or path.startswith(prefix + "/")

    def to_dict(self) -> dict[str, Any]:
        return {
            "host": self.host,
            "path": self.path,
            "pathType": self.path_type.value,
            "backendService": self.backend.service,
            "backendPort": self.backend.port,
        }


class IngressRoutingTable:
    """Ordered routing rules of a single Ingress object."""

    def __init__(
        self,
        name: str,
        rules: list[IngressRule],
        ingress_class: Optional[str] = None,
    ) -> None:
        if not name:
            raise ValueError("Ingress name cannot be empty")
        self.name = name
        self.rules = tuple(rules)
        self.ingress_class = ingress_class

    @property
    def hosts(self) -> list[str]:
        seen: list[str] = []
        for rule in self.rules:
            if rule.host not in seen:
                seen.append(rule.host)
        return seen

    def route(self, host: str, path: str = "/") -> Optional[Backend]:
        """Return the backend serving host+path, or None when nothing matches."""
        if not path.startswith("/"):
            path = "/" + path
        candidates = [r for r in self.rules if r.matches(host, path)]
        if not candidates:
            return None
        # Exact matches win, then the longest prefix, then specific hosts over wildcards
        best = max(
            candidates,
            key=lambda r: (
                r.path_type == PathType.EXACT,
                len(r.path.rstrip("/")),
                bool(r.host),
            ),
        )
        return best.backend

    @classmethod
    def from_manifest(cls, manifest: dict[str, Any]) -> IngressRoutingTable:
        if manifest.get("kind") != "Ingress":
            raise ValueError(f"Expected kind Ingress, got {manifest.get('kind')!r}")
        if manifest.get("apiVersion") != INGRESS_API_VERSION:
            raise ValueError(
                f"Unsupported Ingress apiVersion: {manifest.get('apiVersion')!r}"
            )
        spec = manifest.get("spec") or {}
        rules: list[IngressRule] = []
        for rule in spec.get("rules") or []:
            host = rule.get("host", "")
            for entry in (rule.get("http") or {}).get("paths") or []:
                service = entry["backend"]["service"]
                rules.append(
                    IngressRule(
                        host=host,
                        path=entry.get("path", "/"),
                        path_type=PathType(entry.get("pathType", "Prefix")),
                        backend=Backend(
                            service=service["name"],
                            port=int(service["port"]["number"]),
                        ),
                    )
                )
        return cls(
            name=(manifest.get("metadata") or {}).get("name", ""),
            rules=rules,
            ingress_class=spec.get("ingressClassName"),
        )

    def to_manifest(self) -> dict[str, Any]:
        grouped: dict[str, list[dict[str, Any]]] = {}
        for rule in self.rules:
            grouped.setdefault(rule.host, []).append(
                {
                    "path": rule.path,
                    "pathType": rule.path_type.value,
                    "backend": {
                        "service": {
                            "name": rule.backend.service,
                            "port": {"number": rule.backend.port},
                        }
                    },
                }
            )
        rules = []
        for host, paths in grouped.items():
            entry: dict[str, Any] = {"http": {"paths": paths}}
            if host:
                entry = {"host": host, **entry}
            rules.append(entry)

        spec: dict[str, Any] = {}
        if self.ingress_class:
            spec["ingressClassName"] = self.ingress_class
        spec["rules"] = rules
        return {
            "apiVersion": INGRESS_API_VERSION,
            "kind": "Ingress",
            "metadata": {"name": self.name},
            "spec": spec,
        }

    def to_dict(self) -> list[dict[str, Any]]:
        return [rule.to_dict() for rule in self.rules]
