"""
Secret Resolver Port

Architectural Intent:
- Resolves opaque credential references to secret values at the point of use
- Callers must only hold the returned Secret inside a credential scope
"""

from typing import Protocol, runtime_checkable

from shipyard.domain.value_objects.credential_ref import CredentialRef, Secret


@runtime_checkable
class SecretResolverPort(Protocol):
    async def resolve(self, ref: CredentialRef) -> Secret:
        """Resolve a reference; raises CredentialError when unknown."""
        ...
