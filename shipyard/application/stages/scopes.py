"""
Scoped Resources

Architectural Intent:
- Credentials, registry sessions and kube contexts are acquired at stage
  entry and released on every exit path (success, failure, cancellation)
- Resolved secrets are registered with the stage's redactor and never
  leave the scope

Design Decisions:
- async context managers (contextlib.asynccontextmanager) tie resource
  lifetime to the `async with` block of the stage body
- A kubeconfig held as a credential is materialised to a 0600 temp file
  for the duration of the scope and deleted afterwards
"""

from __future__ import annotations
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from shipyard.application.stages.base import StageContext
from shipyard.domain.errors import CredentialError
from shipyard.domain.value_objects.credential_ref import CredentialRef, Secret
from shipyard.domain.value_objects.kube_context import KubeContext

logger = logging.getLogger(__name__)

REGISTRY_SESSION = "registry_session"


@asynccontextmanager
async def credential_scope(context: StageContext, ref: CredentialRef) -> AsyncIterator[Secret]:
    try:
        secret = await context.secrets.resolve(ref)
    except CredentialError:
        raise
    except Exception as e:
        raise CredentialError(f"Could not resolve credential '{ref}': {e}") from e
    context.redactor.add(secret)
    logger.debug("Acquired credential %s", ref)
    try:
        yield secret
    finally:
        logger.debug("Released credential %s", ref)


@asynccontextmanager
async def registry_session(context: StageContext) -> AsyncIterator[str]:
    """Logs in to the image registry for the duration of the block."""
    env = context.environment
    registry = env.image.registry
    if env.registry_credential is None:
        # Anonymous or pre-authenticated registry
        yield registry
        return

    async with credential_scope(context, env.registry_credential) as secret:
        await context.container.login(registry, secret)
        context.artifacts[REGISTRY_SESSION] = registry
        try:
            yield registry
        finally:
            try:
                await context.container.logout(registry)
                context.artifacts.pop(REGISTRY_SESSION, None)
            except Exception as e:
                # Left marked open; the cleanup phase retries
                logger.warning("Registry logout from %s failed: %s", registry or "default", e)


@asynccontextmanager
async def kube_context_scope(context: StageContext) -> AsyncIterator[KubeContext]:
    env = context.environment
    if env.kubeconfig_credential is None:
        if env.kubeconfig is None:
            raise CredentialError("No kubeconfig path or kubeconfig credential configured")
        yield KubeContext(env.kubeconfig, env.kube_context, env.namespace)
        return

    async with credential_scope(context, env.kubeconfig_credential) as secret:
        fd, name = tempfile.mkstemp(prefix="shipyard-kubeconfig-", suffix=".yaml")
        path = Path(name)
        try:
            with os.fdopen(fd, "w") as f:
                f.write(secret.reveal())
            os.chmod(path, 0o600)
            yield KubeContext(path, env.kube_context, env.namespace)
        finally:
            path.unlink(missing_ok=True)
            logger.debug("Removed temporary kubeconfig %s", path)
