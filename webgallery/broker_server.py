"""Room registry for the broker-based WebSocket chat."""

from __future__ import annotations

import random
from collections.abc import Callable

Client = Callable[[str], object]


class RoomServer:
    """Keeps rooms of clients keyed by session id.

    A client is a callable taking a message. A client that raises
    ``ConnectionError`` when sent a message is dropped from its room.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng if rng is not None else random.Random()
        self.rooms: dict[str, dict[int, Client]] = {}

    def _random_id(self) -> int:
        return self.rng.getrandbits(64)

    def _take_room(self, room_name: str) -> dict[int, Client] | None:
        room = self.rooms.get(room_name)
        if room is None:
            return None
        self.rooms[room_name] = {}
        return room

    def add_client_to_room(self, room_name: str, session_id: int | None, client: Client) -> int:
        """Put a client in a room under a free id and return that id."""
        if session_id is None:
            session_id = self._random_id()
        room = self.rooms.get(room_name)
        if room is None:
            self.rooms[room_name] = {session_id: client}
            return session_id
        while session_id in room:
            session_id = self._random_id()
        room[session_id] = client
        return session_id

    def send_chat_message(self, room_name: str, message: str, source_id: int) -> bool:
        """Send a message to every client in a room, dropping dead ones.

        Returns False when the room does not exist.
        """
        room = self._take_room(room_name)
        if room is None:
            return False
        for session_id, client in room.items():
            try:
                client(message)
            except ConnectionError:
                continue
            self.add_client_to_room(room_name, session_id, client)
        return True

    def join_room(self, room_name: str, client_name: str | None, client: Client) -> int:
        """Add a client to a room, announce it and return its id."""
        session_id = self.add_client_to_room(room_name, None, client)
        name = "anon" if client_name is None else client_name
        self.send_chat_message(room_name, f"{name} joined {room_name}", session_id)
        return session_id

    def leave_room(self, room_name: str, session_id: int) -> None:
        """Remove a client from a room if it is there."""
        room = self.rooms.get(room_name)
        if room is not None:
            room.pop(session_id, None)

    def list_rooms(self) -> list[str]:
        """Return the names of all rooms."""
        return list(self.rooms)