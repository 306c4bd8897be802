"""Chat-completion model access through the Copilot API."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, AsyncIterator, Iterable

from langchain_core.messages import (
    AIMessage,
    AIMessageChunk,
    BaseMessage,
    HumanMessage,
)
from langchain_core.messages import SystemMessage as LCSystemMessage
from langchain_core.messages import ToolMessage as LCToolMessage
from langchain_openai import ChatOpenAI

from .config import Settings
from .schemas import AssistantMessage, Message, ToolMessage, UserMessage
from .tools import get_registered_tools

logger = logging.getLogger(__name__)


def build_model(settings: Settings, token: str) -> ChatOpenAI:
    """Instantiate the chat model, authenticated with the caller's Copilot token."""
    return ChatOpenAI(
        model=settings.copilot_model,
        api_key=token,
        base_url=settings.copilot_api_base_url,
        streaming=True,
        max_retries=0,
    )


def _assistant_tool_calls(message: AssistantMessage) -> tuple[list[dict], list[dict]]:
    tool_calls: list[dict] = []
    invalid: list[dict] = []
    for call in message.tool_calls or []:
        raw = call.function.arguments
        try:
            args = json.loads(raw) if raw else {}
        except json.JSONDecodeError as exc:
            invalid.append(
                {"name": call.function.name, "args": raw, "id": call.id, "error": str(exc), "type": "invalid_tool_call"}
            )
            continue
        tool_calls.append({"name": call.function.name, "args": args, "id": call.id, "type": "tool_call"})
    return tool_calls, invalid


def as_langchain_messages(raw: Iterable[Message]) -> list[BaseMessage]:
    messages: list[BaseMessage] = []
    for envelope in raw:
        if isinstance(envelope, UserMessage):
            messages.append(HumanMessage(content=envelope.content or ""))
        elif isinstance(envelope, AssistantMessage):
            tool_calls, invalid = _assistant_tool_calls(envelope)
            messages.append(
                AIMessage(content=envelope.content or "", tool_calls=tool_calls, invalid_tool_calls=invalid)
            )
        elif isinstance(envelope, ToolMessage):
            messages.append(
                LCToolMessage(content=envelope.content, tool_call_id=envelope.tool_call_id, name=envelope.name)
            )
        else:
            messages.append(LCSystemMessage(content=envelope.content))
    return messages


def content_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
            elif isinstance(block, str):
                parts.append(block)
        return "".join(parts)
    return ""


def serialize_chunk(chunk: AIMessageChunk) -> dict[str, Any]:
    """Render a streamed chunk in chat-completion-chunk form for the Copilot client."""
    delta: dict[str, Any] = {}
    text = content_text(chunk.content)
    if text:
        delta["content"] = text
    if chunk.tool_call_chunks:
        delta["tool_calls"] = [
            {
                "index": call.get("index") or 0,
                "id": call.get("id"),
                "type": "function",
                "function": {"name": call.get("name"), "arguments": call.get("args") or ""},
            }
            for call in chunk.tool_call_chunks
        ]
    metadata = chunk.response_metadata or {}
    return {
        "id": chunk.id,
        "object": "chat.completion.chunk",
        "created": int(time.time()),
        "model": metadata.get("model_name"),
        "choices": [
            {
                "index": 0,
                "delta": delta,
                "finish_reason": metadata.get("finish_reason"),
            }
        ],
    }


async def stream_completion(
    messages: list[Message], token: str, settings: Settings
) -> AsyncIterator[AIMessageChunk]:
    """Stream the model's answer to ``messages`` with the fetch tool bound."""
    model = build_model(settings, token).bind_tools(list(get_registered_tools()))
    logger.info("Calling %s with %d messages", settings.copilot_model, len(messages))
    async for chunk in model.astream(as_langchain_messages(messages)):
        yield chunk


__all__ = [
    "as_langchain_messages",
    "build_model",
    "content_text",
    "serialize_chunk",
    "stream_completion",
]
