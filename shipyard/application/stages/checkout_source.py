from shipyard.application.stages.base import Stage, StageContext
from shipyard.domain.errors import SourceCheckoutError


class CheckoutSource(Stage):
    name = "checkout-source"

    async def run(self, context: StageContext) -> str:
        env = context.environment
        if not env.source_repository:
            if not env.workspace.is_dir():
                raise SourceCheckoutError(f"Workspace {env.workspace} does not exist")
            return f"Using existing workspace {env.workspace}"

        commit = await context.source.checkout(
            env.source_repository, env.source_ref, env.workspace
        )
        context.artifacts["commit"] = commit
        return f"Checked out {env.source_repository}@{env.source_ref} ({commit})"
