"""Cross-origin request handling and the user-info echo backend."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields

from aiohttp import web

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CorsPolicy:
    """Which origins, methods and headers cross-origin callers may use."""

    allowed_origins: frozenset[str] = frozenset({"http://localhost:8080"})
    allowed_methods: tuple[str, ...] = ("GET", "POST")
    allowed_headers: tuple[str, ...] = ("Authorization", "Accept", "Content-Type")
    max_age: int = 3600

    def allows_origin(self, origin: str) -> bool:
        """Whether requests from this origin are accepted."""
        return origin in self.allowed_origins

    def _allows_method(self, method: str) -> bool:
        return method.upper() in {m.upper() for m in self.allowed_methods}

    def _allows_headers(self, names: list[str]) -> bool:
        allowed = {h.lower() for h in self.allowed_headers}
        return all(name.lower() in allowed for name in names)


def _bad_request(text: str) -> web.Response:
    return web.Response(status=400, text=text)


def cors_middleware(policy: CorsPolicy):
    """Middleware that answers preflights and checks request origins."""

    @web.middleware
    async def middleware(request: web.Request, handler):
        origin = request.headers.get("Origin")
        requested_method = request.headers.get("Access-Control-Request-Method")
        if request.method == "OPTIONS" and requested_method is not None:
            if origin is None or not policy.allows_origin(origin):
                return _bad_request("Origin is not allowed to make this request")
            if not policy._allows_method(requested_method):
                return _bad_request("Requested method is not allowed")
            raw = request.headers.get("Access-Control-Request-Headers", "")
            names = [name.strip() for name in raw.split(",") if name.strip()]
            if not policy._allows_headers(names):
                return _bad_request("One or more request headers are not allowed")
            return web.Response(
                headers={
                    "Access-Control-Allow-Origin": origin,
                    "Access-Control-Allow-Methods": ", ".join(policy.allowed_methods),
                    "Access-Control-Allow-Headers": ", ".join(policy.allowed_headers),
                    "Access-Control-Max-Age": str(policy.max_age),
                    "Vary": "Origin",
                }
            )
        if origin is None:
            return await handler(request)
        if not policy.allows_origin(origin):
            return _bad_request("Origin is not allowed to make this request")
        response = await handler(request)
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Vary"] = "Origin"
        return response

    return middleware


@dataclass(frozen=True)
class UserInfo:
    """A sign-up form as submitted by the front end."""

    username: str
    email: str
    password: str
    confirm_password: str

    @classmethod
    def from_mapping(cls, data: object) -> UserInfo:
        """Build from decoded JSON; raise ValueError if a field is missing."""
        if not isinstance(data, Mapping):
            raise ValueError("expected a JSON object")
        values = {}
        for f in fields(cls):
            value = data.get(f.name)
            if not isinstance(value, str):
                raise ValueError(f"missing or invalid field {f.name!r}")
            values[f.name] = value
        return cls(**values)


async def user_info(request: web.Request) -> web.Response:
    """Echo the submitted user info back as JSON."""
    try:
        info = UserInfo.from_mapping(await request.json())
    except ValueError:
        raise web.HTTPBadRequest(text="Json deserialize error") from None
    log.info("==========%r=========", info)
    return web.json_response(asdict(info))


def create_app(policy: CorsPolicy | None = None) -> web.Application:
    """Build the backend with its CORS policy."""
    app = web.Application(middlewares=[cors_middleware(policy if policy is not None else CorsPolicy())])
    app.router.add_post("/user/info", user_info)
    return app


def main(argv: list[str] | None = None) -> int:
    """Run the CORS backend."""
    parser = argparse.ArgumentParser(description="CORS example backend")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    web.run_app(create_app(), host=args.host, port=args.port)
    return 0