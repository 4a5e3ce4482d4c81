"""Server-sent-events transport for one MCP session.

The client opens ``GET /sse`` and first receives an ``endpoint`` event naming
the URL it must POST its JSON-RPC messages to (``<message_path>?sessionId=<id>``).
Server messages are then pushed down the event stream as ``message`` events.
"""
from __future__ import annotations

import logging
import math
from uuid import uuid4

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from mcp import types
from mcp.shared.message import SessionMessage
from pydantic import ValidationError
from sse_starlette.sse import EventSourceResponse
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import Receive, Scope, Send

logger = logging.getLogger(__name__)

# posted messages queued ahead of the server's read loop
INCOMING_BUFFER_SIZE = 32


class SseSessionTransport:
    """Owns the event stream and the posted-message channel of one session.

    ``read_stream`` and ``write_stream`` are handed to ``Server.run``. The write
    side is unbounded so a slow event stream never blocks a dispatch.
    """

    def __init__(self, message_path: str):
        self.session_id = uuid4().hex
        self.message_path = message_path
        self.closed = False

        self._incoming_send: MemoryObjectSendStream[SessionMessage | Exception]
        self.read_stream: MemoryObjectReceiveStream[SessionMessage | Exception]
        self._incoming_send, self.read_stream = anyio.create_memory_object_stream(INCOMING_BUFFER_SIZE)

        self.write_stream: MemoryObjectSendStream[SessionMessage]
        self._outgoing_receive: MemoryObjectReceiveStream[SessionMessage]
        self.write_stream, self._outgoing_receive = anyio.create_memory_object_stream(math.inf)

    @property
    def endpoint(self) -> str:
        return f"{self.message_path}?sessionId={self.session_id}"

    async def _events(self):
        yield {"event": "endpoint", "data": self.endpoint}
        async for session_message in self._outgoing_receive:
            if self.closed:
                break
            yield {
                "event": "message",
                "data": session_message.message.model_dump_json(by_alias=True, exclude_none=True),
            }

    async def stream(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Serve the event stream until the client disconnects."""
        logger.debug("SSE stream opened for session %s", self.session_id)
        response = EventSourceResponse(self._events())
        await response(scope, receive, send)
        logger.debug("SSE stream closed for session %s", self.session_id)

    async def handle_post_message(self, request: Request) -> Response:
        """Parse a posted JSON-RPC message and queue it for the session's server."""
        body = await request.body()
        try:
            message = types.JSONRPCMessage.model_validate_json(body)
        except ValidationError as e:
            logger.warning("Could not parse message for session %s: %s", self.session_id, e)
            return Response("Could not parse message", status_code=400)

        if self.closed:
            return Response("Session closed", status_code=400)

        try:
            await self._incoming_send.send(SessionMessage(message))
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            return Response("Session closed", status_code=400)
        return Response("Accepted", status_code=202)

    async def aclose(self) -> None:
        """End the server's read loop. Idempotent.

        Responses still in flight keep being accepted by ``write_stream`` and are
        discarded by ``release_outgoing`` once the server has stopped.
        """
        if self.closed:
            return
        self.closed = True
        await self._incoming_send.aclose()

    async def release_outgoing(self) -> None:
        await self.write_stream.aclose()
        await self._outgoing_receive.aclose()
