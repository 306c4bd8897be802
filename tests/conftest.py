"""Shared test fixtures and configuration."""

from __future__ import annotations

import pytest

from fetch_agent.config import Settings
from fetch_agent.schemas import AssistantMessage, UserMessage
from tests.helpers import confirmation_message


@pytest.fixture
def settings():
    """Settings with signature checks off and the default fetch policy."""
    return Settings(
        VERIFY_SIGNATURES=False,
        FETCH_TIMEOUT_SECONDS=5.0,
        FETCH_MAX_RESPONSE_CHARS=3750,
        SYSTEM_PROMPT=None,
    )


@pytest.fixture
def sample_references():
    """UI context the Copilot client attaches to a user message."""
    return [
        {
            "type": "github.web-page",
            "id": "page-1",
            "data": {"type": "web-page", "url": "https://docs.example.com/api", "title": "API docs"},
            "is_implicit": True,
            "metadata": {
                "display_name": "API docs",
                "display_icon": "",
                "display_url": "https://docs.example.com/api",
            },
        }
    ]


@pytest.fixture
def make_confirmation_history():
    """Build the history a client sends back after answering a confirmation."""

    def _build(args: dict, state: str = "accepted", function_name: str = "fetch", call_id: str = "call_123"):
        return [
            UserMessage(content="get example.com"),
            AssistantMessage(content=""),
            confirmation_message(args, state=state, function_name=function_name, call_id=call_id),
        ]

    return _build
