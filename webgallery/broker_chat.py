"""WebSocket chat where sessions talk through a shared room registry."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from collections.abc import Callable
from pathlib import Path

from aiohttp import WSMsgType, web

from webgallery.broker_server import RoomServer

log = logging.getLogger(__name__)

ROOM_SERVER = web.AppKey("room_server", RoomServer)


class BrokerChatSession:
    """One participant; ``send`` delivers text to its peer."""

    def __init__(self, server: RoomServer, send: Callable[[str], object]) -> None:
        self.server = server
        self.send = send
        self.id = 0
        self.room = ""
        self.name: str | None = None

    @property
    def display_name(self) -> str:
        return self.name if self.name is not None else "anon"

    def start(self) -> None:
        """Join the main room."""
        self.join_room("Main")

    def stop(self) -> str:
        """Log that the session has closed and return the log line."""
        summary = f"WsChatSession closed for {self.display_name}({self.id}) in room {self.room}"
        log.info("%s", summary)
        return summary

    def join_room(self, room_name: str) -> None:
        """Leave the current room and join another."""
        self.server.leave_room(self.room, self.id)
        self.id = self.server.join_room(room_name, self.name, self.deliver)
        self.room = room_name

    def list_rooms(self) -> None:
        """Send the name of every room to the peer."""
        for room in self.server.list_rooms():
            self.send(room)

    def send_msg(self, msg: str) -> None:
        """Broadcast a chat line to the current room."""
        content = f"{self.display_name}: {msg}"
        self.server.send_chat_message(self.room, content, self.id)

    def deliver(self, message: str) -> None:
        """Pass a message from the room to the peer."""
        self.send(message)

    def handle_text(self, text: str) -> None:
        """Act on a text frame: a slash command or a chat message."""
        msg = text.strip()
        if not msg.startswith("/"):
            self.send_msg(msg)
            return
        parts = msg.split(" ", 1)
        command = parts[0]
        if command == "/list":
            self.list_rooms()
        elif command == "/join":
            if len(parts) == 2:
                self.join_room(parts[1])
            else:
                self.send("!!! room name is required")
        elif command == "/name":
            if len(parts) == 2:
                self.name = parts[1]
                self.send(f"name changed to: {parts[1]}")
            else:
                self.send("!!! name is required")
        else:
            self.send(f"!!! unknown command: {json.dumps(msg, ensure_ascii=False)}")


async def _pump(ws: web.WebSocketResponse, outbox: asyncio.Queue) -> None:
    while True:
        text = await outbox.get()
        try:
            await ws.send_str(text)
        except (ConnectionError, RuntimeError):
            return


async def chat_route(request: web.Request) -> web.WebSocketResponse:
    """Upgrade to a WebSocket and run a chat session over it."""
    ws = web.WebSocketResponse()
    await ws.prepare(request)
    outbox: asyncio.Queue[str] = asyncio.Queue()

    def send(text: str) -> None:
        if ws.closed:
            raise ConnectionError("websocket closed")
        outbox.put_nowait(text)

    session = BrokerChatSession(request.app[ROOM_SERVER], send)
    session.start()
    writer = asyncio.create_task(_pump(ws, outbox))
    try:
        async for msg in ws:
            log.debug("WEBSOCKET MESSAGE: %r", msg)
            if msg.type is WSMsgType.TEXT:
                session.handle_text(msg.data)
            elif msg.type is WSMsgType.ERROR:
                break
    finally:
        session.stop()
        writer.cancel()
        await asyncio.gather(writer, return_exceptions=True)
    return ws


def _static_handler(directory: str | Path, index: str = "index.html"):
    root = Path(directory).resolve()

    async def handler(request: web.Request) -> web.FileResponse:
        target = (root / request.match_info.get("tail", "")).resolve()
        if target != root and root not in target.parents:
            raise web.HTTPNotFound()
        if target.is_dir():
            target = target / index
        if not target.is_file():
            raise web.HTTPNotFound()
        return web.FileResponse(target)

    return handler


def create_app(server: RoomServer | None = None, static_dir: str | Path = "static") -> web.Application:
    """Build the broker chat application."""
    app = web.Application()
    app[ROOM_SERVER] = server if server is not None else RoomServer()
    app.router.add_get("/ws/", chat_route)
    app.router.add_get("/{tail:.*}", _static_handler(static_dir))
    return app


def main(argv: list[str] | None = None) -> int:
    """Run the broker chat server."""
    parser = argparse.ArgumentParser(description="Broker WebSocket chat server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--static", default="static")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    log.info("Started http server: %s:%s", args.host, args.port)
    web.run_app(create_app(RoomServer(), args.static), host=args.host, port=args.port)
    return 0