from shipyard.application.stages.base import Stage, StageContext
from shipyard.domain.errors import BuildError, CommandError

BUILT_IMAGES = "built_images"


class BuildImage(Stage):
    name = "build-image"

    async def run(self, context: StageContext) -> str:
        env = context.environment
        if not env.context_dir.is_dir():
            raise BuildError(f"Build context {env.context_dir} does not exist")

        tags = list(env.image_tags)
        # Recorded before building so a partial build is still cleaned up
        context.artifacts[BUILT_IMAGES] = tags
        try:
            output = await context.container.build(env.context_dir, tags)
        except CommandError as e:
            raise BuildError(f"Image build failed: {e}") from e
        return output
