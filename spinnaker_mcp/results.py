"""Per-request tool errors and the uniform result envelope."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from mcp import types


class ToolCallError(Exception):
    """Base class for recoverable, per-request tool failures."""

    kind = "error"


class UnknownToolError(ToolCallError):
    kind = "unknown_tool"

    def __init__(self, name: str) -> None:
        super().__init__(f"tool call not found: {name}")
        self.name = name


class ArgumentError(ToolCallError):
    kind = "invalid_argument"

    def __init__(self, argument: str, message: str) -> None:
        super().__init__(f"argument {argument!r}: {message}")
        self.argument = argument


class BackendError(ToolCallError):
    kind = "backend"


@dataclass(frozen=True)
class ToolResult:
    content: str
    is_error: bool = False

    @classmethod
    def success(cls, body: bytes | str) -> "ToolResult":
        if isinstance(body, bytes):
            body = body.decode("utf-8", errors="replace")
        return cls(content=body)

    @classmethod
    def failure(cls, error: BaseException | str) -> "ToolResult":
        return cls(content=str(error), is_error=True)

    def to_payload(self) -> dict[str, Any]:
        """Plain mapping form: ``{content}`` or ``{isError, content}``."""
        if self.is_error:
            return {"isError": True, "content": self.content}
        return {"content": self.content}

    def to_call_tool_result(self) -> types.CallToolResult:
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=self.content)],
            isError=self.is_error,
        )
