"""Spinnaker tool registry.

Each tool is declared once as a :class:`ToolDefinition`; the discovery catalog
and the dispatch table are both derived from :data:`TOOLS`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Tuple

from mcp import types
from pydantic import BaseModel, ConfigDict, Field

from .gate import GateOperations
from .results import ArgumentError

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
_DECIMAL_RE = re.compile(r"[+-]?[0-9]+")


def as_string(name: str, raw: str) -> str:
    return raw


def as_int32(name: str, raw: str) -> int:
    """Parse a base-10 integer that fits in a signed 32-bit value."""
    if not _DECIMAL_RE.fullmatch(raw):
        raise ArgumentError(name, f"invalid syntax: {raw!r} is not a base-10 integer")
    value = int(raw, 10)
    if not INT32_MIN <= value <= INT32_MAX:
        raise ArgumentError(name, f"value out of range: {raw!r}")
    return value


Coercer = Callable[[str, str], Any]
Invoker = Callable[[GateOperations, Dict[str, Any]], bytes]


@dataclass(frozen=True)
class ArgumentSpec:
    name: str
    description: str
    # JSON type advertised in the schema; every value is transmitted as a string
    json_type: str = "string"
    required: bool = True
    coerce: Coercer = as_string

    def extract(self, arguments: Mapping[str, Any]) -> Any:
        raw = arguments.get(self.name)
        if raw is None:
            if self.required:
                raise ArgumentError(self.name, "required argument is missing")
            return None
        if not isinstance(raw, str):
            raw = str(raw)
        return self.coerce(self.name, raw)


class ToolDescriptor(BaseModel):
    """Discovery view of a tool."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    title: str
    description: str
    input_schema: Dict[str, Any] = Field(alias="inputSchema")

    def to_mcp(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            title=self.title,
            description=self.description,
            inputSchema=self.input_schema,
        )


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    title: str
    description: str
    arguments: Tuple[ArgumentSpec, ...]
    invoke: Invoker

    def input_schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {"type": "object"}
        if self.arguments:
            schema["properties"] = {
                spec.name: {"type": spec.json_type, "description": spec.description}
                for spec in self.arguments
            }
        schema["required"] = [spec.name for spec in self.arguments if spec.required]
        return schema

    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            title=self.title,
            description=self.description,
            input_schema=self.input_schema(),
        )

    def extract_arguments(self, arguments: Mapping[str, Any]) -> Dict[str, Any]:
        return {spec.name: spec.extract(arguments) for spec in self.arguments}


def _get_applications(client: GateOperations, args: Dict[str, Any]) -> bytes:
    return client.get_all_applications()


def _get_pipelines(client: GateOperations, args: Dict[str, Any]) -> bytes:
    return client.get_pipelines(args["application"])


def _get_pipeline_executions(client: GateOperations, args: Dict[str, Any]) -> bytes:
    return client.get_latest_executions_by_config_ids(
        [args["pipelineConfigId"]], limit=args["limit"]
    )


TOOLS: Tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="getApplications",
        title="Spinnaker Applications",
        description="Get list of Applications from spinnaker",
        arguments=(),
        invoke=_get_applications,
    ),
    ToolDefinition(
        name="getPipelines",
        title="Spinnaker Pipelines under the Application",
        description="Get list of pipelines in spinnaker",
        arguments=(
            ArgumentSpec(
                name="application",
                description="Get list of pipelines from application",
            ),
        ),
        invoke=_get_pipelines,
    ),
    ToolDefinition(
        name="getPipeline",
        title="Retrieve pipeline executions",
        description="Get execution for a pipeline based on pipelineconfigId and limit",
        arguments=(
            ArgumentSpec(
                name="pipelineConfigId",
                description="PipelineConfigId of the pipeline to get executions",
            ),
            ArgumentSpec(
                name="limit",
                description="Number of latest executions to fetch",
                coerce=as_int32,
            ),
        ),
        invoke=_get_pipeline_executions,
    ),
)

TOOLS_BY_NAME: Dict[str, ToolDefinition] = {tool.name: tool for tool in TOOLS}
DESCRIPTORS: Tuple[ToolDescriptor, ...] = tuple(tool.descriptor() for tool in TOOLS)


def list_tools() -> Tuple[Tuple[ToolDescriptor, ...], str]:
    """Return the full catalog and an always-empty pagination cursor."""
    return DESCRIPTORS, ""


def get_tool(name: str) -> ToolDefinition | None:
    return TOOLS_BY_NAME.get(name)
