import pytest
from aiohttp import WSMsgType
from aiohttp.test_utils import TestClient, TestServer

from webgallery.echo_ws import CLIENT_TIMEOUT, Heartbeat, create_app


def test_heartbeat_expiry():
    beat = Heartbeat(last=100.0)
    assert not beat.expired(100.0 + CLIENT_TIMEOUT)
    assert beat.expired(100.0 + CLIENT_TIMEOUT + 0.5)


def test_heartbeat_touch_resets():
    beat = Heartbeat(last=0.0)
    beat.touch()
    assert beat.last > 0.0
    assert not beat.expired(beat.last + 1)


@pytest.mark.asyncio
async def test_echoes_text_and_binary(tmp_path):
    async with TestClient(TestServer(create_app(tmp_path))) as client:
        ws = await client.ws_connect("/ws/")
        await ws.send_str("hello")
        assert await ws.receive_str(timeout=5) == "hello"
        await ws.send_bytes(b"\x00\x01")
        assert await ws.receive_bytes(timeout=5) == b"\x00\x01"
        await ws.close()


@pytest.mark.asyncio
async def test_ping_answered_with_pong(tmp_path):
    async with TestClient(TestServer(create_app(tmp_path))) as client:
        ws = await client.ws_connect("/ws/", autoping=False)
        await ws.ping(b"abc")
        msg = await ws.receive(timeout=5)
        assert msg.type is WSMsgType.PONG
        assert msg.data == b"abc"
        await ws.close()


@pytest.mark.asyncio
async def test_serves_index(tmp_path):
    (tmp_path / "index.html").write_text("<title>echo</title>")
    async with TestClient(TestServer(create_app(tmp_path))) as client:
        page = await client.get("/")
        assert page.status == 200
        assert await page.text() == "<title>echo</title>"
        missing = await client.get("/absent.js")
        assert missing.status == 404