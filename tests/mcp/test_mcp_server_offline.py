from __future__ import annotations

import sys
from pathlib import Path

import pytest
from mcp.client.session import ClientSession
from mcp.client.stdio import StdioServerParameters, stdio_client

from spinnaker_mcp.app import SERVER_NAME

WORKSPACE = Path(__file__).resolve().parents[2]
# Nothing listens on the discard port, so Gate calls fail fast without egress.
UNREACHABLE_GATE = "http://127.0.0.1:9"


def _server_parameters(tmp_path: Path) -> StdioServerParameters:
    return StdioServerParameters(
        command=sys.executable,
        args=["-m", "spinnaker_mcp", "--config", str(tmp_path / "absent.yaml")],
        env={
            "PYTHONPATH": str(WORKSPACE),
            "SPINNAKER_GATE_ENDPOINT": UNREACHABLE_GATE,
            "LOG_LEVEL": "INFO",
        },
        cwd=tmp_path,
    )


@pytest.mark.anyio
async def test_stdio_server_runs_offline(tmp_path: Path) -> None:
    async with stdio_client(_server_parameters(tmp_path)) as (read_stream, write_stream):
        async with ClientSession(read_stream, write_stream) as session:
            initialize = await session.initialize()
            assert initialize.serverInfo.name == SERVER_NAME
            assert initialize.capabilities.tools.listChanged is True

            tools = await session.list_tools()
            assert {tool.name for tool in tools.tools} == {"getApplications", "getPipelines", "getPipeline"}

            unknown = await session.call_tool("getApplication", {})
            assert unknown.isError
            assert "tool call not found" in unknown.content[0].text

            bad_limit = await session.call_tool("getPipeline", {"pipelineConfigId": "abc", "limit": "x"})
            assert bad_limit.isError

            unreachable = await session.call_tool("getApplications", {})
            assert unreachable.isError
            assert "GET /applications failed" in unreachable.content[0].text
