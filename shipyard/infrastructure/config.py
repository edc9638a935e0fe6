"""
Configuration Module

Architectural Intent:
- Centralized configuration loading from a JSON file
- Provides typed access to all Shipyard settings
- Falls back to sensible defaults when the config file is absent
- Environment variables override file-based config

Design Decisions:
- Config is a frozen dataclass for immutability after load
- Nested config sections map to sub-dataclasses
- to_environment() turns the loaded config into the PipelineEnvironment
  handed to the orchestrator
"""

from __future__ import annotations
import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import json
import logging
import os

from shipyard.application.dtos.pipeline_environment import (
    DEFAULT_DEPLOY_TIMEOUT_SECONDS,
    PipelineEnvironment,
)
from shipyard.domain.value_objects.build_id import BuildId
from shipyard.domain.value_objects.credential_ref import CredentialRef
from shipyard.domain.value_objects.image_ref import ImageRef

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppConfig:
    """Application being shipped."""
    name: str = "app"
    workspace: str = "."
    build_context: str = "."


@dataclass(frozen=True)
class RegistryConfig:
    """Image registry coordinates."""
    image: str = ""
    credential: str = ""


@dataclass(frozen=True)
class ClusterConfig:
    """Target cluster."""
    name: str = "kind"
    kubeconfig: str = ""
    kubeconfig_credential: str = ""
    context: str = ""
    namespace: str = "default"


@dataclass(frozen=True)
class DeployConfig:
    """Workload shape and time budgets."""
    replicas: int = 2
    container_port: int = 80
    node_port: int = 30080
    access_host: str = "localhost"
    timeout_seconds: int = DEFAULT_DEPLOY_TIMEOUT_SECONDS
    rollout_timeout_seconds: int = 300
    remove_images: bool = True


@dataclass(frozen=True)
class SourceConfig:
    """Source checkout; empty repository means the workspace is used as is."""
    repository: str = ""
    ref: str = "main"


@dataclass(frozen=True)
class HistoryConfig:
    """Run history database."""
    db_path: str = "shipyard.db"


@dataclass(frozen=True)
class TelemetryConfig:
    """OpenTelemetry configuration."""
    endpoint: str = ""
    insecure: bool = False


@dataclass(frozen=True)
class ShipyardConfig:
    """Root configuration for the Shipyard application."""
    app: AppConfig = field(default_factory=AppConfig)
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    cluster: ClusterConfig = field(default_factory=ClusterConfig)
    deploy: DeployConfig = field(default_factory=DeployConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
    log_level: str = "WARNING"

    def to_environment(self, build_id: Optional[int] = None) -> PipelineEnvironment:
        """Build the immutable run environment; raises ValueError if incomplete."""
        if not self.registry.image:
            raise ValueError("registry.image is required")
        return PipelineEnvironment(
            app_name=self.app.name,
            image=ImageRef.parse(self.registry.image),
            cluster_name=self.cluster.name,
            workspace=Path(self.app.workspace).resolve(),
            build_id=BuildId(build_id) if build_id is not None else None,
            registry_credential=(
                CredentialRef(self.registry.credential) if self.registry.credential else None
            ),
            kubeconfig=Path(self.cluster.kubeconfig) if self.cluster.kubeconfig else None,
            kubeconfig_credential=(
                CredentialRef(self.cluster.kubeconfig_credential)
                if self.cluster.kubeconfig_credential
                else None
            ),
            kube_context=self.cluster.context or None,
            namespace=self.cluster.namespace,
            build_context=self.app.build_context,
            source_repository=self.source.repository or None,
            source_ref=self.source.ref,
            replicas=self.deploy.replicas,
            container_port=self.deploy.container_port,
            node_port=self.deploy.node_port,
            access_host=self.deploy.access_host,
            deploy_timeout_seconds=self.deploy.timeout_seconds,
            rollout_timeout_seconds=self.deploy.rollout_timeout_seconds,
        )


def _env_override(data: dict, prefix: str = "SHIPYARD") -> dict:
    """Override config values with environment variables.

    Environment variables follow the pattern SHIPYARD_SECTION_KEY.
    For example: SHIPYARD_CLUSTER_NAME=staging, SHIPYARD_DEPLOY_REPLICAS=3
    Secrets (SHIPYARD_SECRET_*) are never read into the config.
    """
    for key, value in os.environ.items():
        if not key.startswith(f"{prefix}_") or key.startswith(f"{prefix}_SECRET_"):
            continue
        parts = key[len(prefix) + 1:].lower().split("_", 1)
        if len(parts) == 2:
            section, field_name = parts
            if not isinstance(data.get(section), dict):
                data[section] = {}
            data[section][field_name] = value
        elif len(parts) == 1:
            data[parts[0]] = value
    return data


def _parse_config_file(path: Path) -> dict:
    """Parse a JSON config file. Returns empty dict on failure."""
    try:
        with open(path) as f:
            return json.load(f)
    except FileNotFoundError:
        logger.debug("Config file not found: %s", path)
        return {}
    except json.JSONDecodeError as e:
        logger.warning("Invalid config file %s: %s", path, e)
        return {}


def _build_sub_config(cls, data: dict):
    """Build a sub-config dataclass from a dict, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}

    # Convert string numbers to int/bool
    for f in dataclasses.fields(cls):
        if f.name in filtered and isinstance(filtered[f.name], str):
            if f.type == "int":
                filtered[f.name] = int(filtered[f.name])
            elif f.type == "bool":
                filtered[f.name] = filtered[f.name].lower() in ("true", "1", "yes")

    return cls(**filtered)


def load_config(
    path: Optional[str] = None,
    env_prefix: str = "SHIPYARD",
) -> ShipyardConfig:
    """Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (SHIPYARD_SECTION_KEY)
    2. Config file values
    3. Defaults

    Args:
        path: Path to config file (JSON). Defaults to shipyard.json in CWD.
        env_prefix: Environment variable prefix. Defaults to SHIPYARD.
    """
    config_path = Path(path) if path else Path("shipyard.json")
    data = _parse_config_file(config_path)
    data = _env_override(data, env_prefix)

    return ShipyardConfig(
        app=_build_sub_config(AppConfig, data.get("app", {})),
        registry=_build_sub_config(RegistryConfig, data.get("registry", {})),
        cluster=_build_sub_config(ClusterConfig, data.get("cluster", {})),
        deploy=_build_sub_config(DeployConfig, data.get("deploy", {})),
        source=_build_sub_config(SourceConfig, data.get("source", {})),
        history=_build_sub_config(HistoryConfig, data.get("history", {})),
        telemetry=_build_sub_config(TelemetryConfig, data.get("telemetry", {})),
        log_level=data.get("log_level", "WARNING"),
    )
