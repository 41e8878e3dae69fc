import contextlib

import pytest
from aiohttp.test_utils import TestClient, TestServer

from webgallery.cors import CorsPolicy, UserInfo, create_app

ORIGIN = "http://localhost:8080"
PAYLOAD = {
    "username": "alice",
    "email": "alice@example.com",
    "password": "password",
    "confirm_password": "password",
}


@contextlib.asynccontextmanager
async def _client(app):
    async with TestClient(TestServer(app)) as client:
        yield client


def test_policy_origins():
    policy = CorsPolicy()
    assert policy.allows_origin(ORIGIN) is True
    assert policy.allows_origin("http://other.example.com") is False


def test_user_info_from_mapping_round_trip():
    info = UserInfo.from_mapping(PAYLOAD)
    assert info.username == "alice"
    assert info.email == "alice@example.com"


def test_user_info_missing_field():
    with pytest.raises(ValueError):
        UserInfo.from_mapping({"username": "alice"})


@pytest.mark.asyncio
async def test_echo_without_origin():
    async with _client(create_app()) as client:
        resp = await client.post("/user/info", json=PAYLOAD)
        assert resp.status == 200
        assert await resp.json() == PAYLOAD
        assert "Access-Control-Allow-Origin" not in resp.headers


@pytest.mark.asyncio
async def test_echo_with_allowed_origin():
    async with _client(create_app()) as client:
        resp = await client.post("/user/info", json=PAYLOAD, headers={"Origin": ORIGIN})
        assert resp.status == 200
        assert resp.headers["Access-Control-Allow-Origin"] == ORIGIN
        assert await resp.json() == PAYLOAD


@pytest.mark.asyncio
async def test_disallowed_origin_rejected():
    async with _client(create_app()) as client:
        resp = await client.post("/user/info", json=PAYLOAD, headers={"Origin": "http://other.example.com"})
        assert resp.status == 400


@pytest.mark.asyncio
async def test_preflight_allowed():
    headers = {
        "Origin": ORIGIN,
        "Access-Control-Request-Method": "POST",
        "Access-Control-Request-Headers": "content-type, accept",
    }
    async with _client(create_app()) as client:
        resp = await client.options("/user/info", headers=headers)
        assert resp.status == 200
        assert resp.headers["Access-Control-Allow-Origin"] == ORIGIN
        assert resp.headers["Access-Control-Max-Age"] == "3600"
        assert "POST" in resp.headers["Access-Control-Allow-Methods"]


@pytest.mark.asyncio
async def test_preflight_bad_method():
    headers = {"Origin": ORIGIN, "Access-Control-Request-Method": "PUT"}
    async with _client(create_app()) as client:
        resp = await client.options("/user/info", headers=headers)
        assert resp.status == 400


@pytest.mark.asyncio
async def test_preflight_bad_header():
    headers = {
        "Origin": ORIGIN,
        "Access-Control-Request-Method": "POST",
        "Access-Control-Request-Headers": "X-Custom",
    }
    async with _client(create_app()) as client:
        resp = await client.options("/user/info", headers=headers)
        assert resp.status == 400


@pytest.mark.asyncio
async def test_missing_field_is_bad_request():
    async with _client(create_app()) as client:
        resp = await client.post("/user/info", json={"username": "alice"})
        assert resp.status == 400