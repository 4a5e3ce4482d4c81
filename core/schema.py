"""Conversion of catalog entries into the shapes exposed on the wire."""
from __future__ import annotations

from typing import Any, Iterable

from mcp import types

from core.catalog import ToolDefinition


def empty_schema() -> dict[str, Any]:
    return {"type": "object", "properties": {}}


def to_wire(tool: ToolDefinition) -> dict[str, Any] | None:
    """Return ``{name, description, inputSchema}`` for a tool, or None if its definition is malformed."""
    if tool.function is None or tool.name is None:
        return None
    return {
        "name": tool.name,
        "description": tool.description,
        "inputSchema": tool.input_schema or empty_schema(),
    }


def transform_tools(tools: Iterable[ToolDefinition]) -> list[dict[str, Any]]:
    """Wire shapes for every well-formed tool; malformed entries are dropped silently."""
    return [wire for wire in (to_wire(tool) for tool in tools) if wire is not None]


def to_mcp_tools(tools: Iterable[ToolDefinition]) -> list[types.Tool]:
    return [types.Tool(**wire) for wire in transform_tools(tools)]


def describe_tools(tools: Iterable[ToolDefinition]) -> list[dict[str, Any]]:
    """REST listing shape: ``{name, description, parameters}``."""
    return [
        {
            "name": wire["name"],
            "description": wire["description"],
            "parameters": wire["inputSchema"],
        }
        for wire in transform_tools(tools)
    ]
