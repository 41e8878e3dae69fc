"""Small aiohttp web services: WebSocket and TCP chat, echo, CORS and templates."""

__version__ = "0.1.0"