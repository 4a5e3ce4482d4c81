"""Registry of live SSE sessions, one protocol server and transport per session."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

import anyio
from mcp.server.lowlevel import Server
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from core.protocol import ServerFactory
from transports.sse import SseSessionTransport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    session_id: str
    server: Server
    transport: SseSessionTransport


class SessionManager:
    """Creates, tracks and tears down sessions for the multiplexed HTTP adapter.

    The registry is only mutated in ``open_session`` and ``close_session``; both
    run on the event loop thread, so no lock is needed.
    """

    def __init__(self, server_factory: ServerFactory, message_path: str = "/messages"):
        self._server_factory = server_factory
        self._message_path = message_path
        self._sessions: dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._sessions))

    def get(self, session_id: str | None) -> Session | None:
        if session_id is None:
            return None
        return self._sessions.get(session_id)

    def open_session(self) -> Session:
        """Allocate a server and transport pair and register it under a fresh session id."""
        transport = SseSessionTransport(self._message_path)
        server = self._server_factory()
        if transport.session_id in self._sessions:
            raise RuntimeError(f"Session id collision: {transport.session_id}")
        session = Session(transport.session_id, server, transport)
        self._sessions[session.session_id] = session
        logger.info("Session %s opened (%d active)", session.session_id, len(self._sessions))
        return session

    async def close_session(self, session_id: str) -> None:
        """Unregister a session, then release its transport. Safe to call twice."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return
        logger.info("Session %s closed (%d active)", session_id, len(self._sessions))
        try:
            await session.transport.aclose()
        except Exception:
            logger.exception("Failed to release session %s", session_id)

    async def _run_server(self, session: Session) -> None:
        server, transport = session.server, session.transport
        try:
            await server.run(
                transport.read_stream,
                transport.write_stream,
                server.create_initialization_options(),
            )
        except Exception:
            # a dispatch finishing after disconnect writes to a closed stream
            if not transport.closed:
                raise
            logger.debug("Session %s: late responses discarded after close", session.session_id, exc_info=True)

    async def handle_sse(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI handler for the event-stream endpoint: serve one session until it closes."""
        session = self.open_session()
        transport = session.transport

        async def serve_stream() -> None:
            try:
                await transport.stream(scope, receive, send)
            finally:
                with anyio.CancelScope(shield=True):
                    await self.close_session(session.session_id)

        try:
            async with anyio.create_task_group() as tg:
                tg.start_soon(serve_stream)
                await self._run_server(session)
                tg.cancel_scope.cancel()
        finally:
            with anyio.CancelScope(shield=True):
                await self.close_session(session.session_id)
                await transport.release_outgoing()

    async def handle_post_message(self, request: Request) -> Response:
        """Route a posted message to its session's transport by ``sessionId``."""
        session_id = request.query_params.get("sessionId")
        session = self.get(session_id)
        if session is None:
            logger.warning("No transport/server found for sessionId %s", session_id)
            return Response("No transport/server found for sessionId", status_code=400)
        return await session.transport.handle_post_message(request)

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.close_session(session_id)
