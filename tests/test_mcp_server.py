"""Tests for MCP server functionality."""

import json
import subprocess
from unittest.mock import Mock, patch

import pytest

from beanjump import mcp_server


RESOLVE_OUTPUT = [
    {
        "use_site": {
            "requested_type": "Pay",
            "member_name": "pay",
            "parameter_name": None,
        },
        "candidates": [
            {
                "name": "wechat",
                "type": "Pay",
                "score": 80,
                "reason": "primary",
                "label": "@Bean Pay",
                "detail": "@Bean • wechat • @Primary • PayConfig.java:17",
                "location": {"file_id": "PayConfig.java", "line": 15},
            }
        ],
    },
    {
        "use_site": {"requested_type": "Clock", "member_name": "clock", "parameter_name": None},
        "candidates": [],
    },
]


@pytest.mark.asyncio
async def test_list_tools():
    """Test that list_tools returns the bean_resolve and bean_find tools."""
    tools = await mcp_server.list_tools()

    assert len(tools) == 2

    resolve_tool = tools[0]
    assert resolve_tool.name == "bean_resolve"
    assert "location" in resolve_tool.inputSchema["properties"]
    assert resolve_tool.inputSchema["required"] == ["location"]

    find_tool = tools[1]
    assert find_tool.name == "bean_find"
    assert "type" in find_tool.inputSchema["properties"]
    assert "name" in find_tool.inputSchema["properties"]


@pytest.mark.asyncio
async def test_call_tool_unknown():
    """Test that calling an unknown tool raises ValueError."""
    with pytest.raises(ValueError, match="Unknown tool"):
        await mcp_server.call_tool("nonexistent_tool", {})


@pytest.mark.asyncio
async def test_resolve_formats_candidates():
    completed = Mock(stdout=json.dumps(RESOLVE_OUTPUT))
    with patch("beanjump.mcp_server.subprocess.run", return_value=completed) as run:
        result = await mcp_server.call_tool(
            "bean_resolve", {"location": "UserController.java:18", "root": "/project"}
        )

    run.assert_called_once()
    assert run.call_args[0][0] == ["beanjump", "resolve", "UserController.java:18", "--root", "/project"]
    text = result[0].text
    assert "pay (Pay):" in text
    assert "[80] @Bean Pay 'wechat' at PayConfig.java:16 (primary)" in text
    assert "clock (Clock): no bean found" in text


@pytest.mark.asyncio
async def test_resolve_reports_cli_errors():
    error = subprocess.CalledProcessError(1, ["beanjump"], stderr="Error: No injection point at A.java:3\n")
    with patch("beanjump.mcp_server.subprocess.run", side_effect=error):
        result = await mcp_server.call_tool("bean_resolve", {"location": "A.java:3"})

    assert result[0].text == "Error running beanjump resolve: Error: No injection point at A.java:3"


@pytest.mark.asyncio
async def test_find_builds_command_and_returns_json():
    beans = [{"name": "wechat", "type": "Pay"}]
    completed = Mock(stdout=json.dumps(beans))
    with patch("beanjump.mcp_server.subprocess.run", return_value=completed) as run:
        result = await mcp_server.call_tool("bean_find", {"type": "Pay", "name": "wechat"})

    assert run.call_args[0][0] == ["beanjump", "beans", "--type", "Pay", "--name", "wechat"]
    assert json.loads(result[0].text) == beans


@pytest.mark.asyncio
async def test_find_without_results():
    completed = Mock(stdout="[]")
    with patch("beanjump.mcp_server.subprocess.run", return_value=completed):
        result = await mcp_server.call_tool("bean_find", {})

    assert result[0].text == "No beans found"


@pytest.mark.asyncio
async def test_find_reports_invalid_output():
    completed = Mock(stdout="not json")
    with patch("beanjump.mcp_server.subprocess.run", return_value=completed):
        result = await mcp_server.call_tool("bean_find", {"name": "x"})

    assert result[0].text.startswith("Error parsing beanjump output")
