"""HTTP server: MCP over SSE plus a small REST surface for direct tool calls.

Endpoints:
- GET  /health             liveness check
- GET  /                   server identity, endpoints and tool names
- GET  /api/tools          tool list with descriptions and parameter schemas
- POST /api/call-tool      ``{toolName, arguments}``, returns the raw tool result
- GET  /sse                opens an MCP session event stream
- POST /messages           ``?sessionId=<id>``, posts a JSON-RPC message to a session
"""
from __future__ import annotations

import contextlib
import logging
import traceback

import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from core.catalog import ToolCatalog
from core.config import Settings
from core.dispatcher import invoke, missing_parameters, required_parameters
from core.protocol import server_factory
from core.schema import describe_tools
from core.sessions import SessionManager

logger = logging.getLogger(__name__)


class SseEndpoint:
    """Raw ASGI endpoint: the event stream needs the ASGI ``send`` callable."""

    def __init__(self, sessions: SessionManager):
        self.sessions = sessions

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.sessions.handle_sse(scope, receive, send)


class ToolApi:
    """REST handlers that bypass the MCP envelope."""

    def __init__(self, catalog: ToolCatalog, settings: Settings):
        self.catalog = catalog
        self.settings = settings

    async def health(self, request: Request) -> Response:
        return JSONResponse({"status": "ok", "message": "MCP Server is running"})

    async def index(self, request: Request) -> Response:
        return JSONResponse(
            {
                "message": self.settings.server_title,
                "endpoints": ["/health", "/sse", self.settings.message_path, "/api/call-tool", "/api/tools"],
                "availableTools": self.catalog.names(),
            }
        )

    async def list_tools(self, request: Request) -> Response:
        return JSONResponse({"tools": describe_tools(self.catalog)})

    async def call_tool(self, request: Request) -> Response:
        try:
            body = await request.json()
        except ValueError:
            return JSONResponse({"error": "Invalid JSON body"}, status_code=400)
        if not isinstance(body, dict):
            return JSONResponse({"error": "Invalid JSON body"}, status_code=400)

        tool_name = body.get("toolName")
        arguments = body.get("arguments")
        if arguments is None:
            arguments = {}
        if not tool_name:
            return JSONResponse({"error": "Missing required field: toolName"}, status_code=400)
        if not isinstance(arguments, dict):
            return JSONResponse({"error": "Field 'arguments' must be an object"}, status_code=400)

        tool = self.catalog.find(tool_name)
        if tool is None:
            return JSONResponse(
                {"error": f"Tool '{tool_name}' not found", "availableTools": self.catalog.names()},
                status_code=404,
            )

        missing = missing_parameters(tool, arguments)
        if missing:
            return JSONResponse(
                {
                    "error": f"Missing required parameter: {missing[0]}",
                    "requiredParameters": required_parameters(tool),
                    "missingParameters": missing,
                },
                status_code=400,
            )

        logger.info("Executing tool: %s", tool_name)
        try:
            result = await invoke(tool, arguments)
            return JSONResponse(result)
        except Exception as e:
            logger.exception("Tool execution error: %s", tool_name)
            payload = {"error": str(e)}
            if self.settings.debug:
                payload["stack"] = traceback.format_exc()
            return JSONResponse(payload, status_code=500)


def create_app(catalog: ToolCatalog, settings: Settings, sessions: SessionManager | None = None) -> Starlette:
    if sessions is None:
        sessions = SessionManager(server_factory(catalog, settings), settings.message_path)
    api = ToolApi(catalog, settings)

    routes = [
        Route("/health", api.health, methods=["GET"]),
        Route("/", api.index, methods=["GET"]),
        Route("/api/tools", api.list_tools, methods=["GET"]),
        Route("/api/call-tool", api.call_tool, methods=["POST"]),
        Route("/sse", SseEndpoint(sessions), methods=["GET"]),
        Route(settings.message_path, sessions.handle_post_message, methods=["POST"]),
    ]
    middleware = [Middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])]

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette):
        yield
        await sessions.close_all()

    app = Starlette(routes=routes, middleware=middleware, lifespan=lifespan)
    app.state.sessions = sessions
    return app


def run_http(catalog: ToolCatalog, settings: Settings) -> None:
    app = create_app(catalog, settings)
    logger.info("[SSE Server] running on port %s", settings.port)
    logger.info("REST API available at http://%s:%s/api/call-tool", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
