"""Factory for MCP protocol servers bound to a tool catalog."""
from __future__ import annotations

import logging
from typing import Callable

from mcp import types
from mcp.server.lowlevel import Server

from core.catalog import ToolCatalog
from core.config import Settings
from core.dispatcher import Dispatcher
from core.schema import to_mcp_tools

logger = logging.getLogger(__name__)

ServerFactory = Callable[[], Server]


def create_server(catalog: ToolCatalog, settings: Settings) -> Server:
    """Build one low-level MCP server exposing `catalog` through list/call tool handlers.

    The call handler is registered directly rather than via ``Server.call_tool()``
    so that dispatch errors reach the client as JSON-RPC errors with their
    codes instead of being folded into an ``isError`` result.
    """
    server = Server(settings.server_name, version=settings.server_version)
    dispatcher = Dispatcher(catalog)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return to_mcp_tools(catalog)

    async def call_tool(req: types.CallToolRequest) -> types.ServerResult:
        logger.info("Calling tool %s", req.params.name)
        result = await dispatcher.dispatch(req.params.name, req.params.arguments)
        return types.ServerResult(result)

    server.request_handlers[types.CallToolRequest] = call_tool
    return server


def server_factory(catalog: ToolCatalog, settings: Settings) -> ServerFactory:
    def factory() -> Server:
        return create_server(catalog, settings)

    return factory
