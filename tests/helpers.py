"""Shared test helpers (scripted model streams and fetch doubles)."""

from __future__ import annotations

import json
from typing import Any

from langchain_core.messages import AIMessageChunk
from langchain_core.messages.tool import tool_call_chunk

from fetch_agent.schemas import ProposedAction, UserMessage


def text_chunks(*parts: str) -> list[AIMessageChunk]:
    return [AIMessageChunk(content=part, id="chatcmpl-test") for part in parts]


def tool_call_chunks(
    name: str = "fetch",
    args: dict[str, Any] | str | None = None,
    call_id: str = "call_123",
    index: int = 0,
    pieces: int = 3,
) -> list[AIMessageChunk]:
    """Stream a tool call the way the OpenAI API does: header first, then argument fragments."""
    raw = args if isinstance(args, str) else json.dumps(args or {})
    size = max(1, -(-len(raw) // pieces))
    fragments = [raw[i : i + size] for i in range(0, len(raw), size)] or [""]
    chunks = [
        AIMessageChunk(
            content="",
            id="chatcmpl-test",
            tool_call_chunks=[tool_call_chunk(name=name, args="", id=call_id, index=index)],
        )
    ]
    for fragment in fragments:
        chunks.append(
            AIMessageChunk(
                content="",
                id="chatcmpl-test",
                tool_call_chunks=[tool_call_chunk(name=None, args=fragment, id=None, index=index)],
            )
        )
    return chunks


class ScriptedModel:
    """Stands in for the model stream; records the payload of every call."""

    def __init__(self, chunks: list[AIMessageChunk] | None = None) -> None:
        self.chunks = chunks or []
        self.calls: list[dict[str, Any]] = []

    def __call__(self, messages, token, settings):
        self.calls.append({"messages": messages, "token": token})
        return self._stream()

    async def _stream(self):
        for chunk in self.chunks:
            yield chunk


class RecordingFetcher:
    """Fetcher double that records every executed action."""

    def __init__(self, response: str = "ok") -> None:
        self.response = response
        self.actions: list[ProposedAction] = []

    async def execute(self, action: ProposedAction) -> str:
        self.actions.append(action)
        return self.response


async def collect(frames) -> list[str]:
    return [frame async for frame in frames]


def parse_events(frames: list[str] | str) -> list[dict[str, Any]]:
    """Split SSE output into events: {"event": name | None, "data": decoded data}."""
    text = frames if isinstance(frames, str) else "".join(frames)
    events = []
    for block in text.split("\n\n"):
        if not block.strip():
            continue
        event: dict[str, Any] = {"event": None, "data": None}
        for line in block.split("\n"):
            if line.startswith("event: "):
                event["event"] = line[len("event: ") :]
            elif line.startswith("data: "):
                raw = line[len("data: ") :]
                event["data"] = raw if raw == "[DONE]" else json.loads(raw)
        events.append(event)
    return events


def confirmation_message(
    args: dict,
    state: str = "accepted",
    function_name: str = "fetch",
    call_id: str = "call_123",
) -> UserMessage:
    """A user message carrying the client's decision on a confirmation."""
    return UserMessage.model_validate(
        {
            "role": "user",
            "content": "",
            "copilot_confirmations": [
                {
                    "state": state,
                    "confirmation": {"id": call_id, "functionName": function_name, "args": args},
                }
            ],
        }
    )
