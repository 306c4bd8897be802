from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

HttpMethod = Literal["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS", "TRACE", "CONNECT"]


class _Envelope(BaseModel):
    """Client-owned payload; unknown fields are kept so the history round-trips."""

    model_config = ConfigDict(extra="allow")


class CopilotReferenceMetadata(_Envelope):
    display_name: str | None = None
    display_icon: str | None = None
    display_url: str | None = None


class CopilotReference(_Envelope):
    type: str
    id: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    is_implicit: bool = False
    metadata: CopilotReferenceMetadata | None = None


class ConfirmationData(_Envelope):
    id: str
    functionName: str
    args: dict[str, Any] = Field(default_factory=dict)


class CopilotConfirmation(_Envelope):
    # accepted | dismissed; anything else is treated as not accepted
    state: str
    confirmation: ConfirmationData

    @property
    def accepted(self) -> bool:
        return self.state == "accepted"


class FunctionCall(_Envelope):
    name: str
    arguments: str = ""


class ToolCall(_Envelope):
    id: str
    type: Literal["function"] = "function"
    function: FunctionCall


class UserMessage(_Envelope):
    role: Literal["user"] = "user"
    content: str | None = None
    copilot_references: list[CopilotReference] | None = None
    copilot_confirmations: list[CopilotConfirmation] | None = None


class AssistantMessage(_Envelope):
    role: Literal["assistant"] = "assistant"
    content: str | None = None
    tool_calls: list[ToolCall] | None = None


class ToolMessage(_Envelope):
    role: Literal["tool"] = "tool"
    tool_call_id: str
    content: str = ""
    name: str | None = None


class SystemMessage(_Envelope):
    role: Literal["system"] = "system"
    content: str = ""


Message = Annotated[
    Union[UserMessage, AssistantMessage, ToolMessage, SystemMessage],
    Field(discriminator="role"),
]


class CopilotRequest(_Envelope):
    copilot_thread_id: str | None = None
    messages: list[Message]
    stop: str | list[str] | None = None
    top_p: float | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    copilot_skills: list[dict[str, Any]] | None = None
    agent: str | None = None


class ProposedAction(BaseModel):
    """Arguments of the ``fetch`` tool."""

    url: str = Field(..., min_length=1, description="The URL to make the request to")
    method: HttpMethod = Field(..., description="The HTTP method to use")
    headers: dict[str, str] = Field(default_factory=dict, description="Headers to include in the request")
    body: str | None = Field(default=None, description="The body of the request (for POST, PUT, PATCH)")

    @field_validator("headers", mode="before")
    @classmethod
    def _stringify_headers(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {str(key): v if isinstance(v, str) else json.dumps(v) for key, v in value.items()}
        return value

    @field_validator("body", mode="before")
    @classmethod
    def _stringify_body(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class ConfirmationTurn:
    """The current message answers a pending confirmation."""

    message: UserMessage
    confirmation: CopilotConfirmation


@dataclass(frozen=True, slots=True)
class UtteranceTurn:
    """The current message is a plain user utterance."""

    message: UserMessage


CurrentTurn = Union[ConfirmationTurn, UtteranceTurn]


def classify_turn(message: UserMessage) -> CurrentTurn:
    if message.copilot_confirmations:
        return ConfirmationTurn(message=message, confirmation=message.copilot_confirmations[0])
    return UtteranceTurn(message=message)


class HealthResponse(BaseModel):
    status: str = "ok"
