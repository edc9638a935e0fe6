from shipyard.application.stages.base import Stage, StageContext
from shipyard.domain.errors import EnvironmentValidationError


class ValidateEnvironment(Stage):
    """Fails fast when a tool the later stages rely on is unavailable."""

    name = "validate-environment"

    async def run(self, context: StageContext) -> str:
        env = context.environment
        checks = [
            ("container tooling", context.container),
            ("cluster client", context.cluster),
        ]
        if env.source_repository:
            checks.append(("source control client", context.source))

        lines = []
        missing = []
        for label, port in checks:
            if await port.is_available():
                lines.append(f"{label}: available")
            else:
                missing.append(label)

        if env.kubeconfig is not None and not env.kubeconfig.is_file():
            missing.append(f"kubeconfig file {env.kubeconfig}")
        if not env.source_repository and not env.workspace.is_dir():
            missing.append(f"workspace {env.workspace}")

        if missing:
            raise EnvironmentValidationError("Missing: " + ", ".join(missing))
        return "\n".join(lines)
