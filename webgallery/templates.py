"""Servers that render pages from a directory of HTML templates."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import jinja2
from aiohttp import web

log = logging.getLogger(__name__)

TEMPLATES = web.AppKey("templates", jinja2.Environment)
WELCOME_TEXT = "Welcome!"


def load_environment(template_dir: str | Path) -> jinja2.Environment:
    """A template environment reading HTML templates from a directory."""
    return jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(template_dir)),
        autoescape=jinja2.select_autoescape(["html", "htm", "xml"]),
    )


def _render(env: jinja2.Environment, name: str, **context: object) -> str:
    try:
        return env.get_template(name).render(**context)
    except jinja2.TemplateError as exc:
        log.error("rendering %s failed: %s", name, exc)
        raise web.HTTPInternalServerError(text="Template error") from exc


async def _query_index(request: web.Request) -> web.Response:
    env = request.app[TEMPLATES]
    name = request.query.get("name")
    if name is not None:
        body = _render(env, "user.html", name=name, text=WELCOME_TEXT)
    else:
        body = _render(env, "index.html")
    return web.Response(text=body, content_type="text/html")


def create_query_app(template_dir: str | Path = "templates") -> web.Application:
    """An app greeting by the ``name`` query value, or showing a form.

    Uses ``user.html`` (with ``name`` and ``text``) and ``index.html``.
    """
    app = web.Application()
    app[TEMPLATES] = load_environment(template_dir)
    app.router.add_get("/", _query_index)
    return app


async def _path_index(request: web.Request) -> web.Response:
    body = _render(request.app[TEMPLATES], "index.html", name="Handlebars")
    return web.Response(text=body, content_type="text/html")


async def _path_user(request: web.Request) -> web.Response:
    body = _render(
        request.app[TEMPLATES],
        "user.html",
        user=request.match_info["user"],
        data=request.match_info["data"],
    )
    return web.Response(text=body, content_type="text/html")


def create_path_app(template_dir: str | Path = "static/templates") -> web.Application:
    """An app rendering ``index.html`` at / and ``user.html`` at /{user}/{data}."""
    app = web.Application()
    app[TEMPLATES] = load_environment(template_dir)
    app.router.add_get("/", _path_index)
    app.router.add_get("/{user}/{data}", _path_user)
    return app


def main(argv: list[str] | None = None) -> int:
    """Run one of the template servers."""
    parser = argparse.ArgumentParser(description="Template rendering servers")
    sub = parser.add_subparsers(dest="app", required=True)
    query = sub.add_parser("query")
    query.add_argument("--templates", default="templates")
    path = sub.add_parser("path")
    path.add_argument("--templates", default="static/templates")
    for p in (query, path):
        p.add_argument("--host", default="127.0.0.1")
        p.add_argument("--port", type=int, default=8080)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    if args.app == "query":
        app = create_query_app(args.templates)
    else:
        app = create_path_app(args.templates)
    web.run_app(app, host=args.host, port=args.port)
    return 0