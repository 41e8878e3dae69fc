import asyncio
import random
import socket

import aiohttp
import pytest
from aiohttp.test_utils import TestClient, TestServer

from webgallery.chat_server import ChatServer
from webgallery.codec import ChatRequest, ClientChatCodec, RequestKind, ResponseKind
from webgallery.tcp_chat import create_app, run
from webgallery.tcp_session import serve_tcp


def _free_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


async def _read_until(reader, codec, predicate):
    async def loop():
        while True:
            data = await reader.read(4096)
            assert data, "connection closed"
            for response in codec.feed(data):
                if predicate(response):
                    return response

    return await asyncio.wait_for(loop(), 5)


async def _ws_until(ws, text):
    async def loop():
        while True:
            got = await ws.receive_str()
            if got == text:
                return got

    return await asyncio.wait_for(loop(), 5)


@pytest.mark.asyncio
async def test_root_redirects_to_websocket_page(tmp_path):
    app = create_app(ChatServer(random.Random(1)), tmp_path)
    async with TestClient(TestServer(app)) as client:
        response = await client.get("/", allow_redirects=False)
        assert response.status == 302
        assert response.headers["Location"] == "/static/websocket.html"


@pytest.mark.asyncio
async def test_websocket_list_rooms(tmp_path):
    app = create_app(ChatServer(random.Random(2)), tmp_path)
    async with TestClient(TestServer(app)) as client:
        ws = await client.ws_connect("/ws/")
        await ws.send_str("/list")
        assert await ws.receive_str(timeout=5) == "Main"
        await ws.close()


@pytest.mark.asyncio
async def test_tcp_message_reaches_websocket(tmp_path):
    chat = ChatServer(random.Random(3))
    listener = await serve_tcp(chat, "127.0.0.1", 0)
    port = listener.sockets[0].getsockname()[1]
    app = create_app(chat, tmp_path)
    async with TestClient(TestServer(app)) as client:
        ws = await client.ws_connect("/ws/")
        await ws.send_str("/list")
        assert await ws.receive_str(timeout=5) == "Main"

        reader, writer = await asyncio.open_connection("127.0.0.1", port)
        codec = ClientChatCodec()
        try:
            writer.write(codec.encode(ChatRequest(RequestKind.LIST)))
            rooms = await _read_until(reader, codec, lambda r: r.kind is ResponseKind.ROOMS)
            assert rooms.data == ["Main"]
            assert await _ws_until(ws, "Someone joined") == "Someone joined"

            writer.write(codec.encode(ChatRequest(RequestKind.MESSAGE, "hello")))
            assert await _ws_until(ws, "hello") == "hello"
        finally:
            writer.close()
            await writer.wait_closed()
            await ws.close()
    listener.close()
    await asyncio.wait_for(listener.wait_closed(), 5)


@pytest.mark.asyncio
async def test_run_serves_http_and_tcp(tmp_path):
    http_port, tcp_port = _free_port(), _free_port()
    task = asyncio.create_task(run("127.0.0.1", http_port, tcp_port, tmp_path))
    try:
        status = None
        async with aiohttp.ClientSession() as session:
            for _ in range(100):
                try:
                    async with session.get(f"http://127.0.0.1:{http_port}/", allow_redirects=False) as response:
                        status = response.status
                    break
                except aiohttp.ClientConnectionError:
                    await asyncio.sleep(0.05)
        assert status == 302

        reader, writer = await asyncio.open_connection("127.0.0.1", tcp_port)
        codec = ClientChatCodec()
        try:
            writer.write(codec.encode(ChatRequest(RequestKind.LIST)))
            rooms = await _read_until(reader, codec, lambda r: r.kind is ResponseKind.ROOMS)
            assert rooms.data == ["Main"]
        finally:
            writer.close()
            await writer.wait_closed()
    finally:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
    assert task.cancelled()