from shipyard.application.stages.scopes import registry_session
from shipyard.application.stages.base import Stage, StageContext
from shipyard.domain.errors import CommandError, PushError


class PushImage(Stage):
    name = "push-image"

    async def run(self, context: StageContext) -> str:
        env = context.environment
        outputs = []
        try:
            async with registry_session(context):
                for tag in env.image_tags:
                    outputs.append(await context.container.push(tag))
        except CommandError as e:
            raise PushError(f"Image push failed: {e}") from e
        context.artifacts["pushed_images"] = list(env.image_tags)
        return "\n".join(o for o in outputs if o)
