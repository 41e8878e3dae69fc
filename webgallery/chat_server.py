"""Room-based chat hub shared by the WebSocket and TCP chat servers."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable

log = logging.getLogger(__name__)

MAIN_ROOM = "Main"

Recipient = Callable[[str], object]


class ChatServer:
    """Keeps connected sessions and the rooms they are in.

    A recipient is a callable that takes a message string. A recipient that
    raises ``ConnectionError`` is skipped silently.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng if rng is not None else random.Random()
        self.sessions: dict[int, Recipient] = {}
        self.rooms: dict[str, set[int]] = {MAIN_ROOM: set()}

    def send_message(self, room: str, message: str, skip_id: int) -> None:
        """Send a message to everyone in a room except ``skip_id``."""
        for session_id in tuple(self.rooms.get(room, ())):
            if session_id == skip_id:
                continue
            recipient = self.sessions.get(session_id)
            if recipient is None:
                continue
            try:
                recipient(message)
            except ConnectionError:
                pass

    def connect(self, recipient: Recipient) -> int:
        """Register a session, put it in the main room and return its id."""
        log.info("Someone joined")
        self.send_message(MAIN_ROOM, "Someone joined", 0)
        session_id = self.rng.getrandbits(64)
        self.sessions[session_id] = recipient
        self.rooms[MAIN_ROOM].add(session_id)
        return session_id

    def disconnect(self, session_id: int) -> None:
        """Remove a session and tell the rooms it left."""
        log.info("Someone disconnected")
        left: list[str] = []
        if self.sessions.pop(session_id, None) is not None:
            for name, members in self.rooms.items():
                if session_id in members:
                    members.discard(session_id)
                    left.append(name)
        for room in left:
            self.send_message(room, "Someone disconnected", 0)

    def client_message(self, session_id: int, message: str, room: str) -> None:
        """Relay a message from a session to the others in its room."""
        self.send_message(room, message, session_id)

    def list_rooms(self) -> list[str]:
        """Return the names of all rooms."""
        return list(self.rooms)

    def join(self, session_id: int, name: str) -> None:
        """Move a session into a room, creating the room if needed."""
        left: list[str] = []
        for room, members in self.rooms.items():
            if session_id in members:
                members.discard(session_id)
                left.append(room)
        for room in left:
            self.send_message(room, "Someone disconnected", 0)
        self.rooms.setdefault(name, set())
        self.send_message(name, "Someone connected", session_id)
        self.rooms[name].add(session_id)