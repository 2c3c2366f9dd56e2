"""Spinnaker MCP application: identity, capabilities, catalog and dispatch."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from . import registry
from .gate import GateClientError, GateOperations
from .logging import tool_log_context
from .results import BackendError, ToolCallError, ToolResult, UnknownToolError

SERVER_NAME = "Spinnaker-mcp-server"
SERVER_TITLE = "spinnaker-mcp"
SERVER_VERSION = "0.0.1"


@dataclass(frozen=True)
class ServerInfo:
    name: str
    title: str
    version: str


@dataclass(frozen=True)
class CapabilityFlags:
    list_changed: bool = False


@dataclass(frozen=True)
class Capabilities:
    prompts: CapabilityFlags = field(default_factory=CapabilityFlags)
    resources: CapabilityFlags = field(default_factory=CapabilityFlags)
    tools: CapabilityFlags = field(default_factory=CapabilityFlags)


class ToolCallRequest(BaseModel):
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("arguments", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value


# listChanged is advertised for forward compatibility; the catalog is static.
_CAPABILITIES = Capabilities(tools=CapabilityFlags(list_changed=True))
_SERVER_INFO = ServerInfo(name=SERVER_NAME, title=SERVER_TITLE, version=SERVER_VERSION)


class SpinnakerApp:
    """Routes tool calls to Gate and normalizes the outcome.

    Holds no per-request state; one instance serves concurrent dispatches as
    long as the injected client is thread-safe.
    """

    def __init__(self, client: GateOperations, logger: Optional[logging.Logger] = None) -> None:
        self.client = client
        self.logger = logger or logging.getLogger(__name__)

    def get_capabilities(self) -> Capabilities:
        return _CAPABILITIES

    def server_info(self) -> ServerInfo:
        return _SERVER_INFO

    def list_tools(self) -> Tuple[Tuple[registry.ToolDescriptor, ...], str]:
        return registry.list_tools()

    def dispatch(self, request: ToolCallRequest) -> ToolResult:
        """Run one tool call; every per-request failure becomes an error result."""
        self.logger.debug(
            "tool.request",
            extra={"event": {"tool": request.name, "arguments": request.arguments}},
        )
        with tool_log_context(self.logger, tool=request.name) as outcome:
            try:
                body = self._call(request)
            except ToolCallError as exc:
                outcome.update(status="error", error_kind=exc.kind, error=str(exc))
                return ToolResult.failure(exc)
            outcome["bytes"] = len(body)
            return ToolResult.success(body)

    def _call(self, request: ToolCallRequest) -> bytes:
        tool = registry.get_tool(request.name)
        if tool is None:
            raise UnknownToolError(request.name)
        args = tool.extract_arguments(request.arguments)
        try:
            return tool.invoke(self.client, args)
        except GateClientError as exc:
            raise BackendError(str(exc)) from exc
        except Exception as exc:  # noqa: BLE001 - every backend failure is a tool error
            raise BackendError(f"{request.name} failed: {exc}") from exc
