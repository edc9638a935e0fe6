"""
Credential Value Objects

Architectural Intent:
- CredentialRef is an opaque handle that is safe to store, log and persist
- Secret holds a resolved value and never renders it in repr/str
- Secrets only exist inside a credential scope (see application.stages.scopes)
"""

import re
from dataclasses import dataclass, field

_REF_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.\-/]*$")

MASK = "****"


@dataclass(frozen=True)
class CredentialRef:
    """
    Value Object naming a credential held by an external secret store.
    """
    id: str

    def __post_init__(self):
        if not self.id:
            raise ValueError("Credential reference cannot be empty")
        if not _REF_RE.match(self.id):
            raise ValueError(f"Invalid credential reference: {self.id!r}")

    def __str__(self):
        return self.id


@dataclass(frozen=True)
class Secret:
    """A resolved credential. The value is excluded from repr and equality."""
    ref: CredentialRef
    username: str = ""
    value: str = field(default="", repr=False, compare=False)

    def reveal(self) -> str:
        return self.value

    def redact(self, text: str) -> str:
        """Replace every occurrence of the secret value in text."""
        if not self.value or not text:
            return text
        text = text.replace(self.value, MASK)
        bare = self.value.rstrip("\r\n")
        if bare and bare != self.value:
            text = text.replace(bare, MASK)
        return text

    def __str__(self):
        return f"Secret({self.ref}, {MASK})"
