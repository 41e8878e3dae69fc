"""TCP chat sessions that speak the length-prefixed JSON protocol."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from webgallery.chat_server import MAIN_ROOM, ChatServer
from webgallery.codec import (
    ChatCodec,
    ChatRequest,
    ChatResponse,
    CodecError,
    RequestKind,
    ResponseKind,
)

log = logging.getLogger(__name__)

HEARTBEAT_INTERVAL = 1.0
"""Seconds between pings sent to the peer."""
CLIENT_TIMEOUT = 10.0
"""Seconds without a ping from the peer before the connection is dropped."""
DEFAULT_TCP_PORT = 12345
READ_SIZE = 4096


class TcpChatSession:
    """One TCP chat participant; ``write`` sends a response to the peer."""

    def __init__(self, server: ChatServer, write: Callable[[ChatResponse], object]) -> None:
        self.server = server
        self.write = write
        self.id = 0
        self.hb = time.monotonic()
        self.room = MAIN_ROOM

    def start(self) -> None:
        """Register with the chat server."""
        self.id = self.server.connect(self.deliver)

    def stop(self) -> None:
        """Tell the chat server this session is gone."""
        self.server.disconnect(self.id)

    def heartbeat_expired(self, now: float | None = None) -> bool:
        """Whether the peer has been silent for longer than the timeout."""
        if now is None:
            now = time.monotonic()
        return now - self.hb > CLIENT_TIMEOUT

    def handle_request(self, request: ChatRequest) -> None:
        """Act on one request from the peer."""
        kind = request.kind
        if kind is RequestKind.LIST:
            log.info("List rooms")
            self.write(ChatResponse(ResponseKind.ROOMS, self.server.list_rooms()))
        elif kind is RequestKind.JOIN:
            name = request.data
            log.info("Join to room: %s", name)
            self.room = name
            self.server.join(self.id, name)
            self.write(ChatResponse(ResponseKind.JOINED, name))
        elif kind is RequestKind.MESSAGE:
            log.info("Peer message: %s", request.data)
            self.server.client_message(self.id, request.data, self.room)
        elif kind is RequestKind.PING:
            self.hb = time.monotonic()

    def deliver(self, message: str) -> None:
        """Pass a message from the chat server to the peer."""
        self.write(ChatResponse(ResponseKind.MESSAGE, message))


async def _heartbeat(session: TcpChatSession, writer: asyncio.StreamWriter) -> None:
    while True:
        await asyncio.sleep(HEARTBEAT_INTERVAL)
        if session.heartbeat_expired():
            log.warning("Client heartbeat failed, disconnecting!")
            writer.close()
            return
        try:
            session.write(ChatResponse(ResponseKind.PING))
        except ConnectionError:
            return


async def handle_connection(
    server: ChatServer, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
) -> None:
    """Run a chat session over one accepted TCP connection."""
    codec = ChatCodec()

    def write(response: ChatResponse) -> None:
        if writer.is_closing():
            raise ConnectionError("connection closed")
        writer.write(codec.encode(response))

    session = TcpChatSession(server, write)
    session.start()
    beat = asyncio.create_task(_heartbeat(session, writer))
    try:
        while True:
            data = await reader.read(READ_SIZE)
            if not data:
                break
            for request in codec.feed(data):
                session.handle_request(request)
    except (CodecError, ConnectionError) as exc:
        log.info("closing connection: %s", exc)
    finally:
        session.stop()
        beat.cancel()
        await asyncio.gather(beat, return_exceptions=True)
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass


async def serve_tcp(
    server: ChatServer, host: str = "127.0.0.1", port: int = DEFAULT_TCP_PORT
) -> asyncio.base_events.Server:
    """Start accepting TCP chat connections; return the listening server."""

    async def accept(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        await handle_connection(server, reader, writer)

    return await asyncio.start_server(accept, host, port)