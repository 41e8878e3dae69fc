"""Chat server reachable both over WebSocket and over raw TCP."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from aiohttp import web

from webgallery import ws_chat
from webgallery.chat_server import ChatServer
from webgallery.tcp_session import DEFAULT_TCP_PORT, serve_tcp

log = logging.getLogger(__name__)


def create_app(server: ChatServer | None = None, static_dir: str | Path = "static") -> web.Application:
    """Build the WebSocket side of the chat around a shared chat server."""
    return ws_chat.create_app(server, static_dir)


async def run(
    host: str = "127.0.0.1",
    port: int = 8080,
    tcp_port: int = DEFAULT_TCP_PORT,
    static_dir: str | Path = "static",
) -> None:
    """Serve the HTTP/WebSocket and TCP chat until cancelled."""
    server = ChatServer()
    tcp = await serve_tcp(server, host, tcp_port)
    runner = web.AppRunner(create_app(server, static_dir))
    await runner.setup()
    try:
        site = web.TCPSite(runner, host, port)
        await site.start()
        log.info("Started http server: %s:%s", host, port)
        await asyncio.Event().wait()
    finally:
        tcp.close()
        await runner.cleanup()


def main(argv: list[str] | None = None) -> int:
    """Run the combined chat server."""
    parser = argparse.ArgumentParser(description="WebSocket and TCP chat server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--tcp-port", type=int, default=DEFAULT_TCP_PORT)
    parser.add_argument("--static", default="static")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    try:
        asyncio.run(run(args.host, args.port, args.tcp_port, args.static))
    except KeyboardInterrupt:
        pass
    return 0