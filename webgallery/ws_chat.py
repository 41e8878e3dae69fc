"""WebSocket chat server built on the room-based chat hub."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import time
from collections.abc import Callable
from pathlib import Path

from aiohttp import WSMsgType, web

from webgallery.chat_server import MAIN_ROOM, ChatServer

log = logging.getLogger(__name__)

HEARTBEAT_INTERVAL = 5.0
"""Seconds between pings sent to the client."""
CLIENT_TIMEOUT = 10.0
"""Seconds of silence from the client before the connection is dropped."""

CHAT_SERVER = web.AppKey("chat_server", ChatServer)

_HOME_PAGE = "/static/websocket.html"


def _quoted(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


class WsChatSession:
    """One chat participant; ``send`` delivers text to its peer."""

    def __init__(self, server: ChatServer, send: Callable[[str], object]) -> None:
        self.server = server
        self.send = send
        self.id = 0
        self.hb = time.monotonic()
        self.room = MAIN_ROOM
        self.name: str | None = None

    def start(self) -> None:
        """Register with the chat server."""
        self.id = self.server.connect(self.deliver)

    def stop(self) -> None:
        """Tell the chat server this session is gone."""
        self.server.disconnect(self.id)

    def touch(self) -> None:
        """Record that the client is alive."""
        self.hb = time.monotonic()

    def heartbeat_expired(self, now: float | None = None) -> bool:
        """Whether the client has been silent for longer than the timeout."""
        if now is None:
            now = time.monotonic()
        return now - self.hb > CLIENT_TIMEOUT

    def deliver(self, message: str) -> None:
        """Pass a message from the chat server to the peer."""
        self.send(message)

    def handle_text(self, text: str) -> None:
        """Act on a text frame: a slash command or a chat message."""
        m = text.strip()
        if not m.startswith("/"):
            msg = f"{self.name}: {m}" if self.name is not None else m
            self.server.client_message(self.id, msg, self.room)
            return
        parts = m.split(" ", 1)
        command = parts[0]
        if command == "/list":
            log.info("List rooms")
            for room in self.server.list_rooms():
                self.send(room)
        elif command == "/join":
            if len(parts) == 2:
                self.room = parts[1]
                self.server.join(self.id, self.room)
                self.send("joined")
            else:
                self.send("!!! room name is required")
        elif command == "/name":
            if len(parts) == 2:
                self.name = parts[1]
            else:
                self.send("!!! name is required")
        else:
            self.send(f"!!! unknown command: {_quoted(m)}")


async def _pump(ws: web.WebSocketResponse, outbox: asyncio.Queue) -> None:
    while True:
        text = await outbox.get()
        try:
            await ws.send_str(text)
        except (ConnectionError, RuntimeError):
            return


async def _heartbeat(ws: web.WebSocketResponse, session: WsChatSession) -> None:
    while not ws.closed:
        await asyncio.sleep(HEARTBEAT_INTERVAL)
        if session.heartbeat_expired():
            log.warning("Websocket Client heartbeat failed, disconnecting!")
            await ws.close()
            return
        try:
            await ws.ping(b"")
        except (ConnectionError, RuntimeError):
            return


async def chat_route(request: web.Request) -> web.WebSocketResponse:
    """Upgrade to a WebSocket and run a chat session over it."""
    ws = web.WebSocketResponse(autoping=False)
    await ws.prepare(request)
    outbox: asyncio.Queue[str] = asyncio.Queue()

    def send(text: str) -> None:
        if ws.closed:
            raise ConnectionError("websocket closed")
        outbox.put_nowait(text)

    session = WsChatSession(request.app[CHAT_SERVER], send)
    session.start()
    tasks = [
        asyncio.create_task(_pump(ws, outbox)),
        asyncio.create_task(_heartbeat(ws, session)),
    ]
    try:
        async for msg in ws:
            log.debug("WEBSOCKET MESSAGE: %r", msg)
            if msg.type is WSMsgType.PING:
                session.touch()
                await ws.pong(msg.data)
            elif msg.type is WSMsgType.PONG:
                session.touch()
            elif msg.type is WSMsgType.TEXT:
                session.handle_text(msg.data)
            elif msg.type is WSMsgType.BINARY:
                log.warning("Unexpected binary")
            elif msg.type is WSMsgType.ERROR:
                break
    finally:
        session.stop()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
    return ws


async def _redirect_home(request: web.Request) -> web.Response:
    return web.Response(status=302, headers={"Location": _HOME_PAGE})


def create_app(server: ChatServer | None = None, static_dir: str | Path = "static") -> web.Application:
    """Build the chat application around a chat server."""
    app = web.Application()
    app[CHAT_SERVER] = server if server is not None else ChatServer()
    app.router.add_get("/", _redirect_home)
    app.router.add_get("/ws/", chat_route)
    if Path(static_dir).is_dir():
        app.router.add_static("/static/", static_dir)
    else:
        log.warning("static directory %s not found", static_dir)
    return app


def main(argv: list[str] | None = None) -> int:
    """Run the WebSocket chat server."""
    parser = argparse.ArgumentParser(description="WebSocket chat server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--static", default="static")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    web.run_app(create_app(ChatServer(), args.static), host=args.host, port=args.port)
    return 0