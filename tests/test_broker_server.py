import random

from webgallery.broker_server import RoomServer


class _SequenceRng:
    def __init__(self, values):
        self._values = iter(values)

    def getrandbits(self, _bits):
        return next(self._values)


def make_server():
    return RoomServer(random.Random(99))


def test_join_creates_room_and_announces_to_joiner():
    server = make_server()
    inbox = []
    session_id = server.join_room("Main", None, inbox.append)
    assert inbox == ["anon joined Main"]
    assert server.list_rooms() == ["Main"]
    assert session_id in server.rooms["Main"]


def test_join_uses_client_name():
    server = make_server()
    first, second = [], []
    server.join_room("Lobby", None, first.append)
    server.join_room("Lobby", "alice", second.append)
    assert first[-1] == "alice joined Lobby"
    assert second == ["alice joined Lobby"]


def test_colliding_id_is_replaced():
    server = RoomServer(_SequenceRng([7, 7, 9]))
    assert server.add_client_to_room("Main", None, lambda m: None) == 7
    assert server.add_client_to_room("Main", None, lambda m: None) == 9
    assert set(server.rooms["Main"]) == {7, 9}


def test_explicit_id_kept_when_free():
    server = RoomServer(_SequenceRng([]))
    assert server.add_client_to_room("Main", 5, lambda m: None) == 5


def test_send_to_unknown_room():
    server = make_server()
    assert server.send_chat_message("Nowhere", "hi", 0) is False
    assert server.list_rooms() == []


def test_send_reaches_every_client_and_keeps_ids():
    server = make_server()
    a, b = [], []
    a_id = server.join_room("Main", None, a.append)
    b_id = server.join_room("Main", None, b.append)
    assert server.send_chat_message("Main", "hello", a_id) is True
    assert a[-1] == "hello"
    assert b[-1] == "hello"
    assert set(server.rooms["Main"]) == {a_id, b_id}


def test_dead_client_is_dropped():
    server = make_server()
    alive = []
    alive_id = server.join_room("Main", None, alive.append)

    def broken(_message):
        raise ConnectionError("gone")

    dead_id = server.add_client_to_room("Main", None, broken)
    server.send_chat_message("Main", "ping", alive_id)
    assert dead_id not in server.rooms["Main"]
    assert alive_id in server.rooms["Main"]
    assert alive[-1] == "ping"


def test_leave_room():
    server = make_server()
    session_id = server.join_room("Main", None, lambda m: None)
    server.leave_room("Main", session_id)
    assert server.rooms["Main"] == {}
    assert server.list_rooms() == ["Main"]


def test_leave_unknown_room_is_harmless():
    server = make_server()
    session_id = server.join_room("Main", None, lambda m: None)
    server.leave_room("Other", session_id)
    server.leave_room("Main", session_id + 1)
    assert list(server.rooms["Main"]) == [session_id]


def test_list_rooms_lists_every_room():
    server = make_server()
    server.join_room("Main", None, lambda m: None)
    server.join_room("Lobby", None, lambda m: None)
    assert sorted(server.list_rooms()) == ["Lobby", "Main"]