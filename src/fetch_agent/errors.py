"""Error taxonomy for agent turns and its Copilot wire rendering."""

from __future__ import annotations

import json
from enum import Enum

RETRY_MESSAGE = "Issue processing request, try stating the request again"


class ErrorType(str, Enum):
    agent = "agent"
    function = "function"
    reference = "reference"


class ErrorCode(str, Enum):
    upstream = "100"
    request = "101"
    confirmation = "102"
    blocked_destination = "103"
    timeout = "104"


class CopilotError(Exception):
    """Base error carrying a taxonomy tag plus the fields of a copilot_errors frame."""

    kind = "unclassified"
    default_type = ErrorType.agent
    default_code = ErrorCode.request

    def __init__(
        self,
        message: str,
        *,
        type: ErrorType | None = None,
        code: ErrorCode | None = None,
        identifier: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.type = type or self.default_type
        self.code = code or self.default_code
        self.identifier = identifier or "error"
        self.cause = cause

    def as_payload(self) -> dict[str, str]:
        return {
            "type": self.type.value,
            "code": self.code.value,
            "message": self.message,
            "identifier": self.identifier,
        }

    def to_event(self) -> str:
        """Render the error as a copilot_errors server-sent event."""
        return f"event: copilot_errors\ndata: {json.dumps([self.as_payload()])}\n\n"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind!r}, code={self.code.value!r}, message={self.message!r})"


class AbortedByUser(CopilotError):
    """The user dismissed the confirmation."""

    kind = "aborted_by_user"
    default_type = ErrorType.reference
    default_code = ErrorCode.confirmation

    def __init__(self, message: str = "Aborted request, try again", **kwargs) -> None:
        super().__init__(message, **kwargs)


class UnknownFunction(CopilotError):
    kind = "unknown_function"
    default_type = ErrorType.function
    default_code = ErrorCode.request

    def __init__(self, function_name: str, message: str = "Invalid function", **kwargs) -> None:
        kwargs.setdefault("identifier", f"invalid function: {function_name}")
        super().__init__(message, **kwargs)
        self.function_name = function_name


class InvalidToolCall(CopilotError):
    kind = "invalid_tool_call"
    default_type = ErrorType.function
    default_code = ErrorCode.request

    def __init__(
        self,
        message: str = RETRY_MESSAGE,
        **kwargs,
    ) -> None:
        super().__init__(message, **kwargs)


class PolicyViolation(CopilotError):
    """The destination is not allowed (private range or unparseable URL)."""

    kind = "policy_violation"
    default_type = ErrorType.function
    default_code = ErrorCode.blocked_destination

    def __init__(self, message: str, **kwargs) -> None:
        kwargs.setdefault("identifier", "blocked_destination")
        super().__init__(message, **kwargs)


class FetchTimeout(CopilotError):
    kind = "timeout"
    default_type = ErrorType.function
    default_code = ErrorCode.timeout

    def __init__(self, message: str = "The request timed out", **kwargs) -> None:
        kwargs.setdefault("identifier", "fetch_timeout")
        super().__init__(message, **kwargs)


class UpstreamAuthFailure(CopilotError):
    kind = "upstream_auth"
    default_type = ErrorType.agent
    default_code = ErrorCode.upstream


class InvalidRequest(CopilotError):
    kind = "invalid_request"
    default_type = ErrorType.agent
    default_code = ErrorCode.upstream


class UnclassifiedFailure(CopilotError):
    kind = "unclassified"
    default_type = ErrorType.agent
    default_code = ErrorCode.request

    def __init__(self, message: str = "Issue processing request", **kwargs) -> None:
        super().__init__(message, **kwargs)


def normalize_error(exc: BaseException) -> CopilotError:
    """Return ``exc`` if it is already classified, otherwise wrap it."""
    if isinstance(exc, CopilotError):
        return exc
    return UnclassifiedFailure(cause=exc)


__all__ = [
    "AbortedByUser",
    "CopilotError",
    "ErrorCode",
    "ErrorType",
    "RETRY_MESSAGE",
    "FetchTimeout",
    "InvalidRequest",
    "InvalidToolCall",
    "PolicyViolation",
    "UnclassifiedFailure",
    "UnknownFunction",
    "UpstreamAuthFailure",
    "normalize_error",
]
