"""Console WebSocket client: sends typed lines, prints text it receives."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import threading
from collections.abc import AsyncIterable, AsyncIterator, Iterable
from typing import TextIO, Union

import aiohttp

DEFAULT_URL = "http://127.0.0.1:8080/ws/"
PING_INTERVAL = 1.0

Commands = Union[Iterable[str], AsyncIterable[str], None]


async def _stdin_lines() -> AsyncIterator[str]:
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[str] = asyncio.Queue()

    def reader() -> None:
        for line in sys.stdin:
            loop.call_soon_threadsafe(queue.put_nowait, line)
        loop.call_soon_threadsafe(queue.put_nowait, "")

    threading.Thread(target=reader, daemon=True).start()
    while True:
        line = await queue.get()
        if not line:
            return
        yield line


async def _as_async(commands: Commands) -> AsyncIterator[str]:
    if commands is None:
        async for line in _stdin_lines():
            yield line
    elif isinstance(commands, AsyncIterable):
        async for line in commands:
            yield line
    else:
        for line in commands:
            yield line


async def _send_commands(ws: aiohttp.ClientWebSocketResponse, commands: Commands) -> None:
    async for line in _as_async(commands):
        if ws.closed:
            return
        await ws.send_str(line)


async def _ping(ws: aiohttp.ClientWebSocketResponse) -> None:
    while not ws.closed:
        await asyncio.sleep(PING_INTERVAL)
        try:
            await ws.ping(b"")
        except (ConnectionError, RuntimeError):
            return


async def run_client(url: str = DEFAULT_URL, commands: Commands = None, output: TextIO | None = None) -> bool:
    """Connect, send each command as text and print what the server sends.

    Returns False when the connection could not be made.
    """
    out = output if output is not None else sys.stdout
    async with aiohttp.ClientSession() as session:
        try:
            ws = await session.ws_connect(url)
        except (aiohttp.ClientError, OSError) as exc:
            print(f"Error: {exc}", file=out)
            return False
        print("Connected", file=out)
        tasks = [
            asyncio.create_task(_send_commands(ws, commands)),
            asyncio.create_task(_ping(ws)),
        ]
        try:
            async for msg in ws:
                if msg.type is aiohttp.WSMsgType.TEXT:
                    print(f"Server: {json.dumps(msg.data, ensure_ascii=False)}", file=out)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            await ws.close()
        print("Server disconnected", file=out)
        print("Disconnected", file=out)
    return True


def main(argv: list[str] | None = None) -> int:
    """Run the console client."""
    parser = argparse.ArgumentParser(description="WebSocket console client")
    parser.add_argument("url", nargs="?", default=DEFAULT_URL)
    args = parser.parse_args(argv)
    connected = asyncio.run(run_client(args.url))
    return 0 if connected else 1