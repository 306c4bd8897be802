"""Tests for the tool registry."""

from unittest.mock import AsyncMock, patch

import pytest
from langchain_core.utils.function_calling import convert_to_openai_tool

from fetch_agent.schemas import ProposedAction
from fetch_agent.tools import fetch, get_tools_by_name, is_registered_tool


def test_fetch_is_the_only_tool():
    assert list(get_tools_by_name()) == ["fetch"]
    assert is_registered_tool("fetch")
    assert not is_registered_tool("shell")


def test_fetch_schema_follows_proposed_action():
    """Parameter names and descriptions come from the ProposedAction model."""
    function = convert_to_openai_tool(fetch)["function"]
    parameters = function["parameters"]

    assert function["name"] == "fetch"
    assert function["description"] == "Make an HTTP request"
    assert sorted(parameters["required"]) == ["method", "url"]
    assert set(parameters["properties"]) == {"url", "method", "headers", "body"}
    assert "GET" in parameters["properties"]["method"]["enum"]
    assert "CONNECT" in parameters["properties"]["method"]["enum"]
    for name, field in ProposedAction.model_fields.items():
        assert parameters["properties"][name]["description"] == field.description


@pytest.mark.asyncio
async def test_invoking_the_tool_goes_through_the_guard():
    with patch("fetch_agent.tools.GuardedFetcher.execute", new_callable=AsyncMock) as mock_execute:
        mock_execute.return_value = "ok"

        result = await fetch.ainvoke({"url": "https://example.com", "method": "GET"})

    assert result == "ok"
    (action,) = mock_execute.await_args.args
    assert action == ProposedAction(url="https://example.com", method="GET")
