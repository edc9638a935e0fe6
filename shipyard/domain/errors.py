"""
Error Taxonomy

Architectural Intent:
- One exception type per failure class of the pipeline
- Stage bodies raise these; the orchestrator turns them into stage results
- Diagnostic collection never raises (see application.orchestration.post_run)
"""

from typing import Optional, Sequence


class ShipyardError(Exception):
    pass


class EnvironmentValidationError(ShipyardError):
    """A required tool or file is missing."""


class SourceCheckoutError(ShipyardError):
    pass


class BuildError(ShipyardError):
    pass


class PushError(ShipyardError):
    pass


class DeployError(ShipyardError):
    pass


class VerificationError(ShipyardError):
    pass


class CredentialError(ShipyardError):
    """A credential reference could not be resolved."""


class ManifestError(ShipyardError):
    """A manifest could not be read, parsed or validated."""


class ProvisioningError(ShipyardError):
    pass


class CommandError(ShipyardError):
    """An external command exited non-zero."""

    def __init__(
        self,
        argv: Sequence[str],
        returncode: Optional[int],
        stderr: str = "",
        stdout: str = "",
    ) -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        self.stdout = stdout
        detail = stderr.strip() or stdout.strip()
        message = f"'{' '.join(self.argv)}' exited with code {returncode}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
