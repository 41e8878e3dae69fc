"""WebSocket echo server with heartbeat checking."""

from __future__ import annotations

import argparse
import asyncio
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from aiohttp import WSMsgType, web

log = logging.getLogger(__name__)

HEARTBEAT_INTERVAL = 5.0
CLIENT_TIMEOUT = 10.0


@dataclass
class Heartbeat:
    """Tracks when the client was last heard from."""

    last: float = field(default_factory=time.monotonic)
    timeout: float = CLIENT_TIMEOUT

    def touch(self) -> None:
        """Record that the client is alive."""
        self.last = time.monotonic()

    def expired(self, now: float | None = None) -> bool:
        """Whether the client has been silent for longer than the timeout."""
        if now is None:
            now = time.monotonic()
        return now - self.last > self.timeout


async def _keepalive(ws: web.WebSocketResponse, heartbeat: Heartbeat) -> None:
    while not ws.closed:
        await asyncio.sleep(HEARTBEAT_INTERVAL)
        if heartbeat.expired():
            log.warning("Websocket Client heartbeat failed, disconnecting!")
            await ws.close()
            return
        try:
            await ws.ping(b"")
        except (ConnectionError, RuntimeError):
            return


async def ws_index(request: web.Request) -> web.WebSocketResponse:
    """Upgrade to a WebSocket and echo back what arrives."""
    log.debug("%r", request)
    ws = web.WebSocketResponse(autoping=False)
    await ws.prepare(request)
    heartbeat = Heartbeat()
    beat = asyncio.create_task(_keepalive(ws, heartbeat))
    try:
        async for msg in ws:
            log.debug("WS: %r", msg)
            if msg.type is WSMsgType.PING:
                heartbeat.touch()
                await ws.pong(msg.data)
            elif msg.type is WSMsgType.PONG:
                heartbeat.touch()
            elif msg.type is WSMsgType.TEXT:
                await ws.send_str(msg.data)
            elif msg.type is WSMsgType.BINARY:
                await ws.send_bytes(msg.data)
            elif msg.type is WSMsgType.ERROR:
                break
    finally:
        beat.cancel()
        await asyncio.gather(beat, return_exceptions=True)
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


def create_app(static_dir: str | Path = "static") -> web.Application:
    """Build the echo application."""
    app = web.Application()
    app.router.add_get("/ws/", ws_index)
    app.router.add_get("/{tail:.*}", _static_handler(static_dir))
    return app


def main(argv: list[str] | None = None) -> int:
    """Run the echo server."""
    parser = argparse.ArgumentParser(description="WebSocket echo server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--static", default="static")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    web.run_app(create_app(args.static), host=args.host, port=args.port)
    return 0