"""Length-prefixed JSON framing for the TCP chat protocol.

Every frame is a two-byte big-endian length followed by that many bytes of
JSON. Messages are tagged objects: ``{"cmd": <name>, "data": <content>}``,
where ``data`` is left out for commands that carry nothing.
"""

from __future__ import annotations

import json
import struct
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Union

_HEADER = struct.Struct(">H")
MAX_PAYLOAD = 0xFFFF

_NOTHING = "nothing"
_TEXT = "text"
_TEXT_LIST = "text list"


class CodecError(ValueError):
    """A frame could not be encoded or decoded."""


class RequestKind(str, Enum):
    """Commands a client sends to the server."""

    LIST = "List"
    JOIN = "Join"
    MESSAGE = "Message"
    PING = "Ping"


class ResponseKind(str, Enum):
    """Commands the server sends to a client."""

    PING = "Ping"
    ROOMS = "Rooms"
    JOINED = "Joined"
    MESSAGE = "Message"


_REQUEST_SHAPES = {
    RequestKind.LIST: _NOTHING,
    RequestKind.JOIN: _TEXT,
    RequestKind.MESSAGE: _TEXT,
    RequestKind.PING: _NOTHING,
}

_RESPONSE_SHAPES = {
    ResponseKind.PING: _NOTHING,
    ResponseKind.ROOMS: _TEXT_LIST,
    ResponseKind.JOINED: _TEXT,
    ResponseKind.MESSAGE: _TEXT,
}

Payload = Union[str, Sequence[str], None]


@dataclass(frozen=True)
class ChatRequest:
    """A request from client to server."""

    kind: RequestKind
    data: str | None = None


@dataclass(frozen=True)
class ChatResponse:
    """A response from server to client."""

    kind: ResponseKind
    data: Payload = None


def _check_shape(kind: Enum, data: object, shape: str) -> None:
    if shape == _NOTHING:
        valid = data is None
    elif shape == _TEXT:
        valid = isinstance(data, str)
    else:
        valid = isinstance(data, (list, tuple)) and all(isinstance(item, str) for item in data)
    if not valid:
        raise CodecError(f"{kind.value} expects {shape}, got {data!r}")


def _encode_tagged(kind: Enum, data: object, shapes: dict) -> bytes:
    shape = shapes[kind]
    _check_shape(kind, data, shape)
    message: dict[str, object] = {"cmd": kind.value}
    if shape == _TEXT_LIST:
        message["data"] = list(data)  # type: ignore[arg-type]
    elif shape == _TEXT:
        message["data"] = data
    return json.dumps(message, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _decode_tagged(payload: bytes, kinds: type[Enum], shapes: dict) -> tuple[Enum, object]:
    try:
        message = json.loads(payload)
    except ValueError as exc:
        raise CodecError(f"invalid JSON: {exc}") from exc
    if not isinstance(message, dict) or "cmd" not in message:
        raise CodecError("message has no 'cmd' tag")
    try:
        kind = kinds(message["cmd"])
    except (ValueError, TypeError) as exc:
        raise CodecError(f"unknown command {message['cmd']!r}") from exc
    data = message.get("data")
    _check_shape(kind, data, shapes[kind])
    return kind, data


def encode_frame(payload: bytes) -> bytes:
    """Prefix a payload with its two-byte big-endian length."""
    if len(payload) > MAX_PAYLOAD:
        raise CodecError(f"payload of {len(payload)} bytes does not fit in a frame")
    return _HEADER.pack(len(payload)) + payload


def encode_request(request: ChatRequest) -> bytes:
    """Serialise a request to its JSON payload."""
    return _encode_tagged(request.kind, request.data, _REQUEST_SHAPES)


def decode_request(payload: bytes) -> ChatRequest:
    """Parse a JSON payload into a request."""
    kind, data = _decode_tagged(payload, RequestKind, _REQUEST_SHAPES)
    return ChatRequest(kind, data)  # type: ignore[arg-type]


def encode_response(response: ChatResponse) -> bytes:
    """Serialise a response to its JSON payload."""
    return _encode_tagged(response.kind, response.data, _RESPONSE_SHAPES)


def decode_response(payload: bytes) -> ChatResponse:
    """Parse a JSON payload into a response."""
    kind, data = _decode_tagged(payload, ResponseKind, _RESPONSE_SHAPES)
    return ChatResponse(kind, data)  # type: ignore[arg-type]


class _FrameBuffer:
    """Accumulates bytes and yields complete frame payloads."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    def payloads(self, data: bytes) -> Iterator[bytes]:
        self._buffer += data
        while len(self._buffer) >= _HEADER.size:
            (size,) = _HEADER.unpack_from(self._buffer)
            end = _HEADER.size + size
            if len(self._buffer) < end:
                return
            payload = bytes(self._buffer[_HEADER.size:end])
            del self._buffer[:end]
            yield payload


class ChatCodec:
    """Server side: decodes requests, encodes responses."""

    def __init__(self) -> None:
        self._frames = _FrameBuffer()

    def encode(self, response: ChatResponse) -> bytes:
        """Return the framed bytes for a response."""
        return encode_frame(encode_response(response))

    def feed(self, data: bytes) -> list[ChatRequest]:
        """Add received bytes; return every request now complete."""
        return [decode_request(payload) for payload in self._frames.payloads(data)]


class ClientChatCodec:
    """Client side: decodes responses, encodes requests."""

    def __init__(self) -> None:
        self._frames = _FrameBuffer()

    def encode(self, request: ChatRequest) -> bytes:
        """Return the framed bytes for a request."""
        return encode_frame(encode_request(request))

    def feed(self, data: bytes) -> list[ChatResponse]:
        """Add received bytes; return every response now complete."""
        return [decode_response(payload) for payload in self._frames.payloads(data)]