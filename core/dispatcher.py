"""Tool call dispatch: resolve, validate required parameters, invoke, wrap."""
from __future__ import annotations

import inspect
import json
import logging
from typing import Any, Mapping

from mcp import types
from mcp.shared.exceptions import McpError

from core.catalog import ToolCatalog, ToolDefinition

logger = logging.getLogger(__name__)


def required_parameters(tool: ToolDefinition) -> list[str]:
    return tool.required


def missing_parameters(tool: ToolDefinition, arguments: Mapping[str, Any] | None) -> list[str]:
    """All required keys absent from `arguments`, in declared order.

    Only key presence counts; null or falsy values satisfy the requirement.
    """
    arguments = arguments or {}
    return [name for name in tool.required if name not in arguments]


async def invoke(tool: ToolDefinition, arguments: dict[str, Any]) -> Any:
    """Call a tool implementation, awaiting it when it is a coroutine function."""
    result = tool.implementation(arguments)
    if inspect.isawaitable(result):
        result = await result
    return result


def serialize_result(result: Any) -> str:
    return json.dumps(result, indent=2, ensure_ascii=False, default=str)


def _error(code: int, message: str) -> McpError:
    return McpError(types.ErrorData(code=code, message=message))


class Dispatcher:
    def __init__(self, catalog: ToolCatalog):
        self.catalog = catalog

    def resolve(self, name: str) -> ToolDefinition:
        tool = self.catalog.find(name)
        if tool is None:
            raise _error(types.METHOD_NOT_FOUND, f"Unknown tool: {name}")
        return tool

    async def dispatch(self, name: str, arguments: Mapping[str, Any] | None) -> types.CallToolResult:
        """Run one tool call and return its protocol result.

        Raises McpError with METHOD_NOT_FOUND for unknown tools, INVALID_PARAMS
        naming the first missing required parameter, and INTERNAL_ERROR when the
        implementation raises. The original exception is logged, not sent.
        """
        tool = self.resolve(name)
        arguments = dict(arguments or {})

        for param in tool.required:
            if param not in arguments:
                raise _error(types.INVALID_PARAMS, f"Missing required parameter: {param}")

        try:
            result = await invoke(tool, arguments)
            text = serialize_result(result)
        except Exception as e:
            logger.exception("Tool %s failed", name)
            raise _error(types.INTERNAL_ERROR, f"API error: {e}") from e

        return types.CallToolResult(content=[types.TextContent(type="text", text=text)])
