[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "webgallery"
version = "0.1.0"
description = "Small aiohttp web services: WebSocket and TCP chat, WebSocket echo, CORS, templates and more"
requires-python = ">=3.10"
keywords = ["aiohttp", "websocket", "chat", "http", "server", "templates", "cors"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Framework :: AsyncIO",
    "Framework :: aiohttp",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "aiohttp>=3.9",
    "jinja2>=3.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "pytest-asyncio>=0.21",
]

[project.scripts]
webgallery-ws-chat = "webgallery.ws_chat:main"
webgallery-broker-chat = "webgallery.broker_chat:main"
webgallery-echo-ws = "webgallery.echo_ws:main"
webgallery-ws-client = "webgallery.ws_client:main"
webgallery-tcp-chat = "webgallery.tcp_chat:main"
webgallery-tcp-client = "webgallery.tcp_client:main"
webgallery-simple = "webgallery.simple_apps:main"
webgallery-cors = "webgallery.cors:main"
webgallery-templates = "webgallery.templates:main"
webgallery-yarte = "webgallery.yarte_app:main"

[tool.hatch.build.targets.wheel]
packages = ["webgallery"]

[tool.hatch.build.targets.sdist]
include = ["webgallery", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
