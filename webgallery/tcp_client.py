"""Console client for the TCP chat protocol."""

from __future__ import annotations

import argparse
import asyncio
import sys
import threading
from collections.abc import AsyncIterable, AsyncIterator, Callable, Iterable
from typing import TextIO, Union

from webgallery.codec import (
    ChatRequest,
    ChatResponse,
    ClientChatCodec,
    CodecError,
    RequestKind,
    ResponseKind,
)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 12345
PING_INTERVAL = 1.0
READ_SIZE = 4096

Commands = Union[Iterable[str], AsyncIterable[str], None]


class CommandError(ValueError):
    """A console line is not a valid command."""


def parse_command(line: str) -> ChatRequest | None:
    """Turn a console line into a request; None for a blank line."""
    m = line.strip()
    if not m:
        return None
    if not m.startswith("/"):
        return ChatRequest(RequestKind.MESSAGE, m)
    parts = m.split(" ", 1)
    command = parts[0]
    if command == "/list":
        return ChatRequest(RequestKind.LIST)
    if command == "/join":
        if len(parts) == 2:
            return ChatRequest(RequestKind.JOIN, parts[1])
        raise CommandError("!!! room name is required")
    raise CommandError("!!! unknown command")


def format_response(response: ChatResponse) -> str | None:
    """Text to print for a server response; None for ones not shown."""
    if response.kind is ResponseKind.MESSAGE:
        return f"message: {response.data}"
    if response.kind is ResponseKind.JOINED:
        return f"!!! joined: {response.data}"
    if response.kind is ResponseKind.ROOMS:
        return "\n".join(["", "!!! Available rooms:", *response.data, ""])
    return None


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


async def _send_commands(commands: Commands, send: Callable[[ChatRequest], bool], out: TextIO) -> None:
    async for line in _as_async(commands):
        try:
            request = parse_command(line)
        except CommandError as exc:
            print(exc, file=out)
            continue
        if request is not None and not send(request):
            return


async def _ping(send: Callable[[ChatRequest], bool]) -> None:
    while True:
        await asyncio.sleep(PING_INTERVAL)
        if not send(ChatRequest(RequestKind.PING)):
            return


async def run_client(
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    commands: Commands = None,
    output: TextIO | None = None,
) -> bool:
    """Connect, send the commands and print responses until the server closes.

    Returns False when the connection could not be made.
    """
    out = output if output is not None else sys.stdout
    print("Running chat client", file=out)
    try:
        reader, writer = await asyncio.open_connection(host, port)
    except OSError as exc:
        print(f"Can not connect to server: {exc}", file=out)
        return False

    codec = ClientChatCodec()

    def send(request: ChatRequest) -> bool:
        if writer.is_closing():
            return False
        writer.write(codec.encode(request))
        return True

    tasks = [
        asyncio.create_task(_send_commands(commands, send, out)),
        asyncio.create_task(_ping(send)),
    ]
    try:
        while True:
            try:
                data = await reader.read(READ_SIZE)
            except ConnectionError:
                break
            if not data:
                break
            try:
                responses = codec.feed(data)
            except CodecError as exc:
                print(f"error: {exc}", file=out)
                break
            for response in responses:
                text = format_response(response)
                if text is not None:
                    print(text, file=out)
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
    print("Disconnected", file=out)
    return True


def main(argv: list[str] | None = None) -> int:
    """Run the console TCP chat client."""
    parser = argparse.ArgumentParser(description="TCP chat console client")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args(argv)
    try:
        connected = asyncio.run(run_client(args.host, args.port))
    except KeyboardInterrupt:
        return 0
    return 0 if connected else 1