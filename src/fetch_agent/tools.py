"""Tool registry exposed to the model."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Dict

from langchain_core.tools import BaseTool, tool

from .config import get_settings
from .fetcher import GuardedFetcher
from .schemas import HttpMethod, ProposedAction

FETCH_TOOL_NAME = "fetch"


@tool(FETCH_TOOL_NAME, args_schema=ProposedAction)
async def fetch(
    url: str,
    method: HttpMethod,
    headers: Dict[str, str] | None = None,
    body: str | None = None,
) -> str:
    """Make an HTTP request"""

    # The agent never runs this during a model turn; confirmed calls go through prepare_turn.
    action = ProposedAction(url=url, method=method, headers=headers or {}, body=body)
    return await GuardedFetcher.from_settings(get_settings()).execute(action)


def get_registered_tools() -> Sequence[BaseTool]:
    """Return all tools available to the model."""

    return (fetch,)


def get_tools_by_name() -> Dict[str, BaseTool]:
    """Convenience mapping for tool lookup by name."""

    return {registered.name: registered for registered in get_registered_tools()}


def is_registered_tool(name: str) -> bool:
    return name in get_tools_by_name()


__all__ = [
    "FETCH_TOOL_NAME",
    "fetch",
    "get_registered_tools",
    "get_tools_by_name",
    "is_registered_tool",
]
