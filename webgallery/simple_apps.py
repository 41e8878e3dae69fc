"""Small servers: a request counter, static files, TLS and a Unix socket."""

from __future__ import annotations

import argparse
import logging
import ssl
from dataclasses import dataclass
from pathlib import Path

from aiohttp import web

log = logging.getLogger(__name__)

UNIX_SOCKET_PATH = "/tmp/actix-uds.socket"


@dataclass
class _Counter:
    value: int = 0


COUNTER = web.AppKey("counter", _Counter)


async def _count(request: web.Request) -> web.Response:
    log.debug("%r", request)
    counter = request.app[COUNTER]
    counter.value += 1
    return web.Response(text=f"Num of requests: {counter.value}")


def create_state_app() -> web.Application:
    """An app that counts the requests it has served."""
    app = web.Application()
    app[COUNTER] = _Counter()
    app.router.add_route("*", "/", _count)
    return app


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


def create_static_app(static_dir: str | Path = "static") -> web.Application:
    """An app that serves a directory, with index.html for directories."""
    app = web.Application()
    app.router.add_get("/{tail:.*}", _static_handler(static_dir))
    return app


async def _welcome(request: web.Request) -> web.Response:
    log.debug("%r", request)
    return web.Response(text="Welcome!", content_type="text/plain")


async def _to_index(request: web.Request) -> web.Response:
    return web.Response(status=302, headers={"Location": "/index.html"})


def create_tls_app() -> web.Application:
    """An app that greets at /index.html and redirects / there."""
    app = web.Application()
    app.router.add_route("*", "/index.html", _welcome)
    app.router.add_get("/", _to_index)
    return app


def create_ssl_context(certfile: str | Path = "cert.pem", keyfile: str | Path = "key.pem") -> ssl.SSLContext:
    """A server TLS context loaded from PEM files."""
    context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    context.load_cert_chain(str(certfile), str(keyfile))
    return context


async def _hello(request: web.Request) -> web.Response:
    return web.Response(text="Hello world!")


def create_unix_app() -> web.Application:
    """An app answering 'Hello world!' at / and /index.html."""
    app = web.Application()
    app.router.add_route("*", "/index.html", _hello)
    app.router.add_route("*", "/", _hello)
    return app


def main(argv: list[str] | None = None) -> int:
    """Run one of the small servers."""
    parser = argparse.ArgumentParser(description="Small example servers")
    sub = parser.add_subparsers(dest="app", required=True)
    state = sub.add_parser("state")
    state.add_argument("--port", type=int, default=8080)
    static = sub.add_parser("static")
    static.add_argument("--port", type=int, default=8080)
    static.add_argument("--static", default="static")
    tls = sub.add_parser("tls")
    tls.add_argument("--port", type=int, default=8443)
    tls.add_argument("--cert", default="cert.pem")
    tls.add_argument("--key", default="key.pem")
    unix = sub.add_parser("unix")
    unix.add_argument("--path", default=UNIX_SOCKET_PATH)
    for p in (state, static, tls):
        p.add_argument("--host", default="127.0.0.1")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    if args.app == "state":
        web.run_app(create_state_app(), host=args.host, port=args.port)
    elif args.app == "static":
        web.run_app(create_static_app(args.static), host=args.host, port=args.port)
    elif args.app == "tls":
        context = create_ssl_context(args.cert, args.key)
        log.info("Started http server: %s:%s", args.host, args.port)
        web.run_app(create_tls_app(), host=args.host, port=args.port, ssl_context=context)
    else:
        log.info("Started http server: %s", args.path)
        web.run_app(create_unix_app(), path=args.path)
    return 0