"""Single-stream adapter: one MCP server on stdin/stdout for the process lifetime."""
from __future__ import annotations

import logging
import signal

import anyio
from mcp.server.stdio import stdio_server

from core.catalog import ToolCatalog
from core.config import Settings
from core.protocol import create_server

logger = logging.getLogger(__name__)


async def _cancel_on_signal(scope: anyio.CancelScope) -> None:
    with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:
        async for signum in signals:
            logger.info("Received %s, shutting down MCP server", signal.Signals(signum).name)
            scope.cancel()
            return


async def serve_stdio(catalog: ToolCatalog, settings: Settings) -> None:
    """Serve `catalog` over stdio until EOF or an interrupt signal."""
    server = create_server(catalog, settings)
    async with anyio.create_task_group() as tg:
        tg.start_soon(_cancel_on_signal, tg.cancel_scope)
        async with stdio_server() as (read_stream, write_stream):
            logger.info("MCP server listening on stdio")
            await server.run(read_stream, write_stream, server.create_initialization_options())
        tg.cancel_scope.cancel()
    logger.info("MCP server shut down.")


def run_stdio(catalog: ToolCatalog, settings: Settings) -> None:
    anyio.run(serve_stdio, catalog, settings)
