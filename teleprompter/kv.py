"""Read and render prompts from a key-value cache."""

import asyncio
from typing import Any, Mapping

import structlog

from .errors import TemplateNotFoundError
from .prompt import Prompt, render_template
from .store import KVNamespace

logger = structlog.get_logger(__name__)


class PromptCache:
    """Prompts as mirrored into a key-value store by the update relay.

    Only the current version of each prompt is held; there is no history.
    """

    def __init__(self, kv: KVNamespace):
        self.kv = kv

    async def list_prompts(self) -> list[Prompt]:
        """
        Get every cached prompt.

        Keys are fetched concurrently. Keys whose value has disappeared
        between listing and fetching are skipped; a fetch that raises
        fails the whole call.
        """
        keys = await self.kv.list()
        values = await asyncio.gather(*(self.kv.get(key, "json") for key in keys))
        prompts = [Prompt.from_dict(value) for value in values if value is not None]
        logger.debug("Listed cached prompts", keys=len(keys), found=len(prompts))
        return prompts

    async def get_prompt(self, prompt_id: str) -> Prompt | None:
        """Get a cached prompt, or None if it is not in the store."""
        value = await self.kv.get(prompt_id, "json")
        if value is None:
            return None
        return Prompt.from_dict(value)

    async def render(self, prompt_id: str, context: Mapping[str, Any] | None = None) -> str:
        """
        Render a cached prompt with Mustache syntax.

        Args:
            prompt_id: Id of the prompt to render.
            context: Values for the template's variables and sections.

        Returns:
            The rendered text.

        Raises:
            TemplateNotFoundError: If the prompt is not cached.
        """
        prompt = await self.get_prompt(prompt_id)
        if prompt is None:
            raise TemplateNotFoundError(prompt_id)

        logger.debug("Rendering prompt", prompt_id=prompt_id, version=prompt.version)
        return render_template(prompt.body, context)

    def __repr__(self) -> str:
        return f"PromptCache(kv={self.kv!r})"
