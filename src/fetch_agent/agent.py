from __future__ import annotations

import logging
from functools import lru_cache
from typing import AsyncIterator, Callable, Sequence

from langchain_core.messages import AIMessageChunk

from .config import Settings, get_settings
from .fetcher import GuardedFetcher
from .model import stream_completion
from .prompts import get_system_prompt
from .schemas import Message
from .stream import drive_response
from .turns import Fetcher, prepare_turn

logger = logging.getLogger(__name__)

ModelStream = Callable[[list[Message], str, Settings], AsyncIterator[AIMessageChunk]]


class FetchAgent:
    """Runs one turn: rewrite the history, call the model, relay its answer."""

    def __init__(
        self,
        settings: Settings,
        fetcher: Fetcher | None = None,
        model_stream: ModelStream | None = None,
    ) -> None:
        self.settings = settings
        self.fetcher = fetcher or GuardedFetcher.from_settings(settings)
        self.model_stream = model_stream or stream_completion
        self.system_prompt = get_system_prompt(
            override=settings.system_prompt, hardened=settings.hardened_prompt
        )

    async def generate_agent_response(
        self, history: Sequence[Message], token: str
    ) -> AsyncIterator[AIMessageChunk]:
        prepared = await prepare_turn(history, self.fetcher, self.system_prompt)
        logger.info("Prepared %s turn with %d messages", prepared.kind, len(prepared.messages))
        return self.model_stream(prepared.messages, token, self.settings)

    async def run_turn(self, history: Sequence[Message], token: str) -> AsyncIterator[str]:
        """Yield the SSE frames for one turn. Errors propagate to the caller."""
        chunks = await self.generate_agent_response(history, token)
        async for frame in drive_response(chunks):
            yield frame


@lru_cache
def get_agent() -> FetchAgent:
    return FetchAgent(get_settings())


__all__ = [
    "FetchAgent",
    "ModelStream",
    "get_agent",
]
