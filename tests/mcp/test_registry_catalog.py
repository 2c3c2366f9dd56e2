from __future__ import annotations

import pytest

from spinnaker_mcp import registry
from spinnaker_mcp.results import ArgumentError


def test_catalog_lists_three_tools_in_fixed_order():
    descriptors, cursor = registry.list_tools()
    assert cursor == ""
    assert [d.name for d in descriptors] == ["getApplications", "getPipelines", "getPipeline"]
    again, _ = registry.list_tools()
    assert again == descriptors


def test_required_arguments_per_tool():
    descriptors, _ = registry.list_tools()
    required = {d.name: set(d.input_schema["required"]) for d in descriptors}
    assert required == {
        "getApplications": set(),
        "getPipelines": {"application"},
        "getPipeline": {"pipelineConfigId", "limit"},
    }


def test_schemas_are_objects_with_string_properties():
    descriptors, _ = registry.list_tools()
    for descriptor in descriptors:
        assert descriptor.input_schema["type"] == "object"
    get_apps, get_pipelines, get_pipeline = descriptors
    assert "properties" not in get_apps.input_schema
    assert get_pipelines.input_schema["properties"]["application"]["type"] == "string"
    assert get_pipeline.input_schema["properties"]["limit"] == {
        "type": "string",
        "description": "Number of latest executions to fetch",
    }


def test_dispatch_table_matches_catalog():
    descriptors, _ = registry.list_tools()
    assert [d.name for d in descriptors] == list(registry.TOOLS_BY_NAME)
    assert registry.get_tool("getPipeline") is registry.TOOLS_BY_NAME["getPipeline"]
    assert registry.get_tool("getpipeline") is None


def test_descriptor_converts_to_mcp_tool():
    descriptors, _ = registry.list_tools()
    tool = descriptors[2].to_mcp()
    assert tool.name == "getPipeline"
    assert tool.title == "Retrieve pipeline executions"
    assert tool.inputSchema["required"] == ["pipelineConfigId", "limit"]
    assert descriptors[2].model_dump(by_alias=True)["inputSchema"] == tool.inputSchema


@pytest.mark.parametrize("raw,expected", [("5", 5), ("+7", 7), ("-3", -3), ("2147483647", 2147483647)])
def test_as_int32_accepts_decimal(raw, expected):
    assert registry.as_int32("limit", raw) == expected


@pytest.mark.parametrize("raw", ["", "five", "5.0", " 5", "1_000", "0x10", "2147483648", "-2147483649"])
def test_as_int32_rejects_invalid(raw):
    with pytest.raises(ArgumentError) as excinfo:
        registry.as_int32("limit", raw)
    assert excinfo.value.argument == "limit"
    assert excinfo.value.kind == "invalid_argument"


def test_missing_required_argument_raises():
    tool = registry.TOOLS_BY_NAME["getPipelines"]
    with pytest.raises(ArgumentError, match="application"):
        tool.extract_arguments({})


def test_non_string_values_are_stringified_before_coercion():
    tool = registry.TOOLS_BY_NAME["getPipeline"]
    args = tool.extract_arguments({"pipelineConfigId": "abc", "limit": 10})
    assert args == {"pipelineConfigId": "abc", "limit": 10}
