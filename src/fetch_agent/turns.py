"""Turn processing: decide what the model sees for the current turn.

The history arrives from the client on every request. The last message is the
current input: either a plain utterance or the user's decision on a
confirmation emitted during the previous turn. Accepted confirmations are
executed here, and the call plus its result are appended so the model can
answer from them.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Protocol, Sequence

from pydantic import ValidationError

from .errors import (
    AbortedByUser,
    ErrorCode,
    ErrorType,
    InvalidRequest,
    InvalidToolCall,
    UnknownFunction,
)
from .schemas import (
    AssistantMessage,
    ConfirmationTurn,
    FunctionCall,
    Message,
    ProposedAction,
    SystemMessage,
    ToolCall,
    ToolMessage,
    UserMessage,
    classify_turn,
)
from .tools import is_registered_tool

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    async def execute(self, action: ProposedAction) -> str: ...


@dataclass(slots=True)
class PreparedTurn:
    """Rewritten history plus the payload sent to the model."""

    history: list[Message]
    messages: list[Message]
    kind: str


def build_prompt(message: UserMessage) -> str:
    """Combine the utterance with any UI context the client attached."""
    prompt = f"user message: {message.content or ''}"
    if message.copilot_references:
        context = [reference.model_dump(mode="json", exclude_unset=True) for reference in message.copilot_references]
        prompt += f"\n\ncontext: {json.dumps(context, separators=(',', ':'), ensure_ascii=False)}"
    return prompt


def _validated_action(args: dict) -> ProposedAction:
    try:
        return ProposedAction.model_validate(args)
    except ValidationError as exc:
        raise InvalidToolCall(
            identifier=f"function missing args: {json.dumps(args)}", cause=exc
        ) from exc


async def _run_confirmation(turn: ConfirmationTurn, log: list[Message], fetcher: Fetcher) -> None:
    decision = turn.confirmation
    if not decision.accepted:
        raise AbortedByUser()

    data = decision.confirmation
    if not is_registered_tool(data.functionName):
        raise UnknownFunction(data.functionName, type=ErrorType.agent, code=ErrorCode.upstream)
    action = _validated_action(data.args)

    # The previous turn ended with an empty assistant message carrying the confirmation.
    if log and isinstance(log[-1], AssistantMessage):
        log.pop()

    result = await fetcher.execute(action)

    log.append(turn.message)
    log.append(
        AssistantMessage(
            tool_calls=[
                ToolCall(
                    id=data.id,
                    function=FunctionCall(name=data.functionName, arguments=json.dumps(data.args)),
                )
            ]
        )
    )
    log.append(ToolMessage(name=data.functionName, tool_call_id=data.id, content=result))


async def prepare_turn(
    history: Sequence[Message],
    fetcher: Fetcher,
    system_prompt: str,
) -> PreparedTurn:
    """Rewrite ``history`` for this turn and assemble the model payload.

    ``history`` itself is left untouched; the rewritten copy is returned.
    """
    log: list[Message] = list(history)
    if not log:
        raise InvalidRequest("No history provided")

    current = log.pop()
    if not isinstance(current, UserMessage):
        raise InvalidRequest(
            "The last message must come from the user",
            identifier=f"unexpected role: {current.role}",
        )

    turn = classify_turn(current)
    if isinstance(turn, ConfirmationTurn):
        logger.info(
            "Confirmation %s for %s (state=%s)",
            turn.confirmation.confirmation.id,
            turn.confirmation.confirmation.functionName,
            turn.confirmation.state,
        )
        await _run_confirmation(turn, log, fetcher)
        kind = "confirmation"
    else:
        log.append(current.model_copy(update={"content": build_prompt(current)}))
        kind = "utterance"

    return PreparedTurn(
        history=log,
        messages=[SystemMessage(content=system_prompt), *log],
        kind=kind,
    )


__all__ = [
    "Fetcher",
    "PreparedTurn",
    "build_prompt",
    "prepare_turn",
]
