"""MCP server exposing Spinnaker Gate operations as tools over stdio or HTTP."""

from __future__ import annotations

import argparse
import contextlib
import json
import sys
from collections.abc import AsyncIterator
from functools import partial
from pathlib import Path
from typing import Any

import anyio
import uvicorn
from mcp import types
from mcp.server.lowlevel import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.applications import Starlette
from starlette.routing import Mount
from starlette.types import Receive, Scope, Send

from .app import SERVER_NAME, SERVER_VERSION, SpinnakerApp, ToolCallRequest
from .auth import build_auth
from .config import ConfigurationError, ServerConfig
from .gate import GateClient
from .logging import configure_logging
from .registry import list_tools

INSTRUCTIONS = "Read-only access to Spinnaker applications, pipelines and executions."
MCP_PATH = "/mcp"


class SpinnakerServer(Server):
    """Low-level MCP server whose identity and capabilities come from the app."""

    def __init__(self, app: SpinnakerApp) -> None:
        info = app.server_info()
        super().__init__(name=info.name, version=info.version, instructions=INSTRUCTIONS)
        self.app = app

    def create_initialization_options(
        self,
        notification_options: NotificationOptions | None = None,
        experimental_capabilities: dict[str, dict[str, Any]] | None = None,
    ) -> InitializationOptions:
        caps = self.app.get_capabilities()
        if notification_options is None:
            notification_options = NotificationOptions(
                prompts_changed=caps.prompts.list_changed,
                resources_changed=caps.resources.list_changed,
                tools_changed=caps.tools.list_changed,
            )
        return super().create_initialization_options(notification_options, experimental_capabilities)


def build_server(app: SpinnakerApp) -> SpinnakerServer:
    server = SpinnakerServer(app)
    tools_cache = [descriptor.to_mcp() for descriptor in app.list_tools()[0]]

    @server.list_tools()
    async def _handle_list_tools() -> list[types.Tool]:
        return tools_cache

    # Arguments are checked by the dispatcher, which reports them as tool errors.
    @server.call_tool(validate_input=False)
    async def _handle_call_tool(tool_name: str, arguments: dict[str, Any] | None) -> types.CallToolResult:
        request = ToolCallRequest(name=tool_name, arguments=arguments)
        result = await anyio.to_thread.run_sync(partial(app.dispatch, request))
        return result.to_call_tool_result()

    # Registered so the prompts and resources groups are advertised.
    @server.list_prompts()
    async def _handle_list_prompts() -> list[types.Prompt]:
        return []

    @server.list_resources()
    async def _handle_list_resources() -> list[types.Resource]:
        return []

    return server


async def run_stdio(server: SpinnakerServer) -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def build_http_app(server: SpinnakerServer) -> Starlette:
    """Mount the streamable HTTP transport at ``/mcp``."""
    session_manager = StreamableHTTPSessionManager(app=server, stateless=True, json_response=True)

    async def _handle_mcp(scope: Scope, receive: Receive, send: Send) -> None:
        await session_manager.handle_request(scope, receive, send)

    @contextlib.asynccontextmanager
    async def _lifespan(_app: Starlette) -> AsyncIterator[None]:
        async with session_manager.run():
            yield

    return Starlette(routes=[Mount(MCP_PATH, app=_handle_mcp)], lifespan=_lifespan)


def run_http(server: SpinnakerServer, *, host: str, port: int, log_level: str = "INFO") -> None:
    uvicorn.run(build_http_app(server), host=host, port=port, log_level=log_level.lower())


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Spinnaker MCP server")
    parser.add_argument("--config", help="Path to config.yaml", default="config.yaml")
    parser.add_argument(
        "--transport",
        choices=("stdio", "http"),
        default="stdio",
        help="Serve over stdio or streamable HTTP at /mcp",
    )
    parser.add_argument("--host", help="HTTP bind address (overrides config)")
    parser.add_argument("--port", type=int, help="HTTP port (overrides config)")
    parser.add_argument("--version", action="store_true", help="Print server version and exit")
    parser.add_argument("--list-tools", action="store_true", help="Print the tool catalog as JSON and exit")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.version:
        print(f"{SERVER_NAME} {SERVER_VERSION}")
        return 0
    if args.list_tools:
        descriptors, _cursor = list_tools()
        print(json.dumps([d.model_dump(by_alias=True) for d in descriptors], indent=2))
        return 0

    try:
        config = ServerConfig.load(base_dir=Path.cwd(), config_path=Path(args.config))
        logger = configure_logging(config.log_level)
        auth = build_auth(config.auth)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    logger.info(
        "server.startup",
        extra={
            "event": {
                "endpoint": config.gate.endpoint,
                "auth": auth is not None,
                "transport": args.transport,
            }
        },
    )

    with GateClient(config.gate.endpoint, auth=auth, retry_timeout=config.gate.retry_timeout) as client:
        server = build_server(SpinnakerApp(client, logger))
        try:
            if args.transport == "http":
                run_http(
                    server,
                    host=args.host or config.host,
                    port=args.port or config.port,
                    log_level=config.log_level,
                )
            else:
                anyio.run(run_stdio, server)
        except KeyboardInterrupt:
            pass
    return 0
