"""Tests for configuration module."""

import json
from pathlib import Path

import pytest
from unittest.mock import patch

from shipyard.infrastructure.config import (
    ClusterConfig,
    DeployConfig,
    RegistryConfig,
    ShipyardConfig,
    load_config,
)
from shipyard.domain.value_objects.build_id import BuildId


class TestDefaultConfig:
    def test_defaults(self):
        with patch.dict("os.environ", {}, clear=True):
            config = load_config(path="/nonexistent/shipyard.json")
        assert config.log_level == "WARNING"
        assert config.cluster.name == "kind"
        assert config.deploy.timeout_seconds == 600
        assert config.deploy.node_port == 30080
        assert config.deploy.remove_images is True
        assert config.history.db_path == "shipyard.db"
        assert config.telemetry.endpoint == ""


class TestFileConfig:
    def test_load_from_file(self, tmp_path):
        config_file = tmp_path / "shipyard.json"
        config_file.write_text(json.dumps({
            "log_level": "INFO",
            "app": {"name": "web", "workspace": str(tmp_path)},
            "registry": {"image": "registry.example.com/team/web", "credential": "registry-creds"},
            "cluster": {"name": "ingress-cluster", "kubeconfig": "/tmp/kc"},
            "deploy": {"replicas": 3, "timeout_seconds": 120},
            "unknown_section": {"ignored": True},
        }))

        with patch.dict("os.environ", {}, clear=True):
            config = load_config(path=str(config_file))

        assert config.log_level == "INFO"
        assert config.app.name == "web"
        assert config.cluster.name == "ingress-cluster"
        assert config.deploy.replicas == 3
        assert config.deploy.timeout_seconds == 120

    def test_invalid_json_falls_back_to_defaults(self, tmp_path):
        config_file = tmp_path / "shipyard.json"
        config_file.write_text("{not json")
        with patch.dict("os.environ", {}, clear=True):
            config = load_config(path=str(config_file))
        assert config.cluster.name == "kind"

    def test_unknown_keys_ignored(self, tmp_path):
        config_file = tmp_path / "shipyard.json"
        config_file.write_text(json.dumps({"deploy": {"replicas": 1, "bogus": 2}}))
        with patch.dict("os.environ", {}, clear=True):
            config = load_config(path=str(config_file))
        assert config.deploy.replicas == 1


class TestEnvOverride:
    def test_env_overrides_file(self, tmp_path):
        config_file = tmp_path / "shipyard.json"
        config_file.write_text(json.dumps({"cluster": {"name": "from-file"}}))
        env = {
            "SHIPYARD_CLUSTER_NAME": "from-env",
            "SHIPYARD_DEPLOY_REPLICAS": "5",
            "SHIPYARD_DEPLOY_REMOVE_IMAGES": "false",
            "SHIPYARD_HISTORY_DB_PATH": "/var/lib/shipyard.db",
        }
        with patch.dict("os.environ", env, clear=True):
            config = load_config(path=str(config_file))

        assert config.cluster.name == "from-env"
        assert config.deploy.replicas == 5
        assert config.deploy.remove_images is False
        assert config.history.db_path == "/var/lib/shipyard.db"

    def test_secret_variables_not_read(self):
        env = {"SHIPYARD_SECRET_REGISTRY_CREDS": "pw"}
        with patch.dict("os.environ", env, clear=True):
            config = load_config(path="/nonexistent/shipyard.json")
        assert "pw" not in repr(config)


class TestToEnvironment:
    def _config(self, tmp_path, **cluster):
        return ShipyardConfig(
            registry=RegistryConfig(image="registry.example.com/team/web", credential="registry-creds"),
            cluster=ClusterConfig(name="ingress-cluster", **cluster),
        )

    def test_builds_environment(self, tmp_path):
        env = self._config(tmp_path, kubeconfig="/tmp/kc").to_environment(build_id=7)

        assert env.build_id == BuildId(7)
        assert str(env.build_tag) == "registry.example.com/team/web:7"
        assert env.kubeconfig == Path("/tmp/kc")
        assert str(env.registry_credential) == "registry-creds"
        assert env.deploy_timeout_seconds == 600

    def test_kubeconfig_credential(self, tmp_path):
        env = self._config(tmp_path, kubeconfig_credential="kubeconfig").to_environment()
        assert env.kubeconfig is None
        assert str(env.kubeconfig_credential) == "kubeconfig"
        assert env.build_id is None

    def test_image_required(self):
        with pytest.raises(ValueError, match="registry.image"):
            ShipyardConfig().to_environment()

    def test_kubeconfig_required(self, tmp_path):
        with pytest.raises(ValueError, match="kubeconfig"):
            self._config(tmp_path).to_environment()

    def test_frozen(self):
        with pytest.raises(Exception):
            DeployConfig().replicas = 4
