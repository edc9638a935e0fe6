"""
Environment Secret Adapter

Architectural Intent:
- Implements SecretResolverPort from process environment variables
- A reference "registry-creds" is looked up as SHIPYARD_SECRET_REGISTRY_CREDS
  (the value), SHIPYARD_SECRET_REGISTRY_CREDS_USERNAME (optional user) and
  SHIPYARD_SECRET_REGISTRY_CREDS_FILE (read the value from a file instead)

Security:
- Values are read at resolution time only and never cached
- File values lose their trailing newline so redaction matches the bare value
"""

import logging
import os
import re
from pathlib import Path
from typing import Mapping, Optional

from shipyard.domain.errors import CredentialError
from shipyard.domain.value_objects.credential_ref import CredentialRef, Secret

logger = logging.getLogger(__name__)


class EnvSecretAdapter:
    def __init__(self, prefix: str = "SHIPYARD_SECRET", environ: Optional[Mapping[str, str]] = None):
        self.prefix = prefix
        self._environ = environ

    def _env(self) -> Mapping[str, str]:
        return self._environ if self._environ is not None else os.environ

    def variable_for(self, ref: CredentialRef) -> str:
        return f"{self.prefix}_{re.sub(r'[^A-Za-z0-9]', '_', ref.id).upper()}"

    async def resolve(self, ref: CredentialRef) -> Secret:
        env = self._env()
        name = self.variable_for(ref)
        username = env.get(f"{name}_USERNAME", "")

        file_path = env.get(f"{name}_FILE")
        if file_path:
            try:
                value = Path(file_path).read_text().rstrip("\r\n")
            except OSError as e:
                raise CredentialError(f"Credential '{ref}' file unreadable: {e}") from e
            return Secret(ref, username=username, value=value)

        if name in env:
            return Secret(ref, username=username, value=env[name])

        raise CredentialError(f"Credential '{ref}' is not defined (expected {name} or {name}_FILE)")
