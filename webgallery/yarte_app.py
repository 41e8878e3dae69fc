"""Greeting page rendered from the query string, with a sign-in form fallback."""

from __future__ import annotations

import argparse
import html
import logging
from collections.abc import Mapping

from aiohttp import web

log = logging.getLogger(__name__)

_HEAD = (
    "<!DOCTYPE html>"
    "<html>"
    '<head><meta charset="utf-8" /><title>Actix web</title></head>'
)

_FORM_PAGE = (
    _HEAD
    + "<body>"
    '<h1 id="welcome" class="welcome">Welcome!</h1><div>'
    "<h3>What is your name?</h3>"
    "<form>"
    'Name: <input type="text" name="name" />'
    '<br/>Last name: <input type="text" name="lastname" />'
    '<br/><p><input type="submit"></p></form>'
    "</div>"
    "</body></html>"
)


class TemplateError(Exception):
    """The page cannot be rendered from the values given."""


def render_index(query: Mapping[str, str]) -> str:
    """Render the page: a greeting when ``name`` is given, else the form.

    A ``name`` without a ``lastname`` cannot be rendered.
    """
    name = query.get("name")
    if name is None:
        return _FORM_PAGE
    lastname = query.get("lastname")
    if lastname is None:
        raise TemplateError("lastname is required with name")
    return (
        _HEAD
        + "<body>"
        f"<h1>Hi, {html.escape(name)} {html.escape(lastname)}!</h1>"
        '<p id="hi" class="welcome">Welcome</p>'
        "</body></html>"
    )


async def index(request: web.Request) -> web.Response:
    """Serve the page for the request's query string."""
    try:
        body = render_index(request.query)
    except TemplateError as exc:
        log.error("render failed: %s", exc)
        raise web.HTTPInternalServerError(text="Template error") from exc
    return web.Response(text=body, content_type="text/html")


def create_app() -> web.Application:
    """Build the application."""
    app = web.Application()
    app.router.add_get("/", index)
    return app


def main(argv: list[str] | None = None) -> int:
    """Run the greeting server."""
    parser = argparse.ArgumentParser(description="Greeting page server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8080)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    web.run_app(create_app(), host=args.host, port=args.port)
    return 0