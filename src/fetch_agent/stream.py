"""Relay the model stream as server-sent events and gate tool calls behind a confirmation."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterable, AsyncIterator

from langchain_core.messages import AIMessageChunk
from pydantic import ValidationError

from .errors import RETRY_MESSAGE, InvalidToolCall, UnknownFunction
from .model import serialize_chunk
from .schemas import ProposedAction
from .tools import is_registered_tool

logger = logging.getLogger(__name__)

DONE_EVENT = "data: [DONE]\n\n"
# Newlines before and after the confirmation so the client does not join it with earlier frames.
FRAME_BREAK = "\n\n"


@dataclass(frozen=True, slots=True)
class ProposedToolCall:
    id: str
    name: str
    raw_arguments: str


def data_event(payload: Any) -> str:
    return f"data: {json.dumps(payload)}\n\n"


def confirmation_event(title: str, message: str, data: dict[str, Any]) -> str:
    """Render a copilot_confirmation event; ``data`` comes back verbatim with the user's decision."""
    payload = {"type": "action", "title": title, "message": message, "confirmation": data}
    return f"event: copilot_confirmation\ndata: {json.dumps(payload)}\n\n"


def first_tool_call(message: AIMessageChunk | None) -> ProposedToolCall | None:
    """Return the first tool call of the assembled response; later ones are ignored."""
    if message is None or not message.tool_call_chunks:
        return None
    chunks = sorted(message.tool_call_chunks, key=lambda call: call.get("index") or 0)
    first = chunks[0]
    if len(chunks) > 1:
        logger.info("Model proposed %d tool calls; only the first is used", len(chunks))
    return ProposedToolCall(
        id=first.get("id") or "",
        name=first.get("name") or "",
        raw_arguments=first.get("args") or "",
    )


def parse_tool_arguments(call: ProposedToolCall) -> tuple[dict[str, Any], ProposedAction]:
    """Validate a proposed ``fetch`` call; returns the raw argument bag and the parsed action."""
    if not is_registered_tool(call.name):
        raise UnknownFunction(call.name, message=RETRY_MESSAGE)

    try:
        args = json.loads(call.raw_arguments) if call.raw_arguments else {}
    except json.JSONDecodeError as exc:
        raise InvalidToolCall(cause=exc) from exc
    if not isinstance(args, dict):
        raise InvalidToolCall(identifier=f"function missing args: {call.raw_arguments}")

    try:
        action = ProposedAction.model_validate(args)
    except ValidationError as exc:
        raise InvalidToolCall(identifier=f"function missing args: {call.raw_arguments}", cause=exc) from exc
    return args, action


def describe_request(args: dict[str, Any]) -> str:
    message = f"Do you want to make this request?\nmethod: {args['method']}\nurl: {args['url']}"
    if args.get("body"):
        message += f"\nbody: {json.dumps(args['body'], indent=2, ensure_ascii=False)}"
    if args.get("headers"):
        message += f"\nheaders: {json.dumps(args['headers'], indent=2, ensure_ascii=False)}"
    return message


async def drive_response(chunks: AsyncIterable[AIMessageChunk]) -> AsyncIterator[str]:
    """Yield SSE frames for the model stream, then ``[DONE]`` or a confirmation request."""
    final: AIMessageChunk | None = None
    async for chunk in chunks:
        yield data_event(serialize_chunk(chunk))
        final = chunk if final is None else final + chunk

    call = first_tool_call(final)
    if call is None:
        yield DONE_EVENT
        return

    args, action = parse_tool_arguments(call)
    logger.info("Requesting confirmation for %s %s (call %s)", action.method, action.url, call.id)
    yield FRAME_BREAK
    yield confirmation_event(
        title="Confirmation",
        message=describe_request(args),
        data={"args": args, "functionName": call.name, "id": call.id},
    )
    yield FRAME_BREAK


__all__ = [
    "DONE_EVENT",
    "ProposedToolCall",
    "confirmation_event",
    "data_event",
    "describe_request",
    "drive_response",
    "first_tool_call",
    "parse_tool_arguments",
]
