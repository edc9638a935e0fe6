"""Tests for the environment secret resolver."""

import pytest

from shipyard.domain.errors import CredentialError
from shipyard.domain.value_objects.credential_ref import MASK, CredentialRef
from shipyard.infrastructure.adapters.env_secret_adapter import EnvSecretAdapter

REF = CredentialRef("registry-creds")


class TestEnvSecretAdapter:
    def test_variable_name(self):
        assert EnvSecretAdapter().variable_for(REF) == "SHIPYARD_SECRET_REGISTRY_CREDS"
        assert EnvSecretAdapter("CI").variable_for(CredentialRef("kube/config")) == "CI_KUBE_CONFIG"

    @pytest.mark.asyncio
    async def test_value_and_username(self):
        adapter = EnvSecretAdapter(
            environ={
                "SHIPYARD_SECRET_REGISTRY_CREDS": "pw",
                "SHIPYARD_SECRET_REGISTRY_CREDS_USERNAME": "ci",
            }
        )

        secret = await adapter.resolve(REF)

        assert secret.reveal() == "pw"
        assert secret.username == "ci"
        assert secret.ref == REF

    @pytest.mark.asyncio
    async def test_value_from_file(self, tmp_path):
        secret_file = tmp_path / "kubeconfig"
        secret_file.write_text("apiVersion: v1\n")
        adapter = EnvSecretAdapter(
            environ={"SHIPYARD_SECRET_REGISTRY_CREDS_FILE": str(secret_file)}
        )

        secret = await adapter.resolve(REF)

        assert secret.reveal() == "apiVersion: v1"

    @pytest.mark.asyncio
    async def test_password_file_masks_bare_value(self, tmp_path):
        secret_file = tmp_path / "password"
        secret_file.write_text("hunter2\n")
        adapter = EnvSecretAdapter(
            environ={"SHIPYARD_SECRET_REGISTRY_CREDS_FILE": str(secret_file)}
        )

        secret = await adapter.resolve(REF)

        assert secret.reveal() == "hunter2"
        assert secret.redact("login failed for password hunter2") == (
            f"login failed for password {MASK}"
        )

    @pytest.mark.asyncio
    async def test_unreadable_file(self, tmp_path):
        adapter = EnvSecretAdapter(
            environ={"SHIPYARD_SECRET_REGISTRY_CREDS_FILE": str(tmp_path / "missing")}
        )
        with pytest.raises(CredentialError, match="unreadable"):
            await adapter.resolve(REF)

    @pytest.mark.asyncio
    async def test_undefined(self):
        with pytest.raises(CredentialError, match="SHIPYARD_SECRET_REGISTRY_CREDS"):
            await EnvSecretAdapter(environ={}).resolve(REF)

    @pytest.mark.asyncio
    async def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("SHIPYARD_SECRET_REGISTRY_CREDS", "from-env")
        secret = await EnvSecretAdapter().resolve(REF)
        assert secret.reveal() == "from-env"
