import random

from webgallery.chat_server import ChatServer


def make_server(seed=1234):
    return ChatServer(random.Random(seed))


def test_starts_with_main_room():
    assert make_server().list_rooms() == ["Main"]


def test_connect_notifies_existing_members():
    server = make_server()
    first, second = [], []
    first_id = server.connect(first.append)
    second_id = server.connect(second.append)
    assert first == ["Someone joined"]
    assert second == []
    assert first_id != second_id
    assert server.rooms["Main"] == {first_id, second_id}


def test_ids_follow_rng():
    a, b = make_server(7), make_server(7)
    assert [a.connect(lambda m: None) for _ in range(3)] == [b.connect(lambda m: None) for _ in range(3)]


def test_client_message_skips_sender():
    server = make_server()
    a, b = [], []
    a_id = server.connect(a.append)
    server.connect(b.append)
    a.clear()
    server.client_message(a_id, "hi", "Main")
    assert a == []
    assert b == ["hi"]


def test_join_moves_session_between_rooms():
    server = make_server()
    a, b, c = [], [], []
    a_id = server.connect(a.append)
    b_id = server.connect(b.append)
    server.connect(c.append)
    for inbox in (a, b, c):
        inbox.clear()

    server.join(a_id, "Lobby")
    assert b == ["Someone disconnected"]
    assert c == ["Someone disconnected"]
    assert a == []
    assert a_id not in server.rooms["Main"]
    assert server.rooms["Lobby"] == {a_id}

    server.join(b_id, "Lobby")
    assert a == ["Someone connected"]
    assert sorted(server.list_rooms()) == ["Lobby", "Main"]


def test_message_stays_in_room():
    server = make_server()
    a, b = [], []
    a_id = server.connect(a.append)
    server.connect(b.append)
    server.join(a_id, "Lobby")
    b.clear()
    server.client_message(a_id, "secret", "Lobby")
    assert b == []


def test_disconnect_notifies_room():
    server = make_server()
    a, b = [], []
    server.connect(a.append)
    b_id = server.connect(b.append)
    a.clear()
    server.disconnect(b_id)
    assert a == ["Someone disconnected"]
    assert b_id not in server.sessions
    assert b_id not in server.rooms["Main"]


def test_disconnect_unknown_session_is_silent():
    server = make_server()
    a = []
    server.connect(a.append)
    server.disconnect(42)
    assert a == []


def test_unknown_room_is_ignored():
    server = make_server()
    a = []
    a_id = server.connect(a.append)
    server.client_message(a_id, "hi", "Nowhere")
    assert a == []
    assert "Nowhere" not in server.rooms


def test_failing_recipient_does_not_stop_delivery():
    server = make_server()

    def broken(_message):
        raise ConnectionError("gone")

    received = []
    server.connect(broken)
    sender = server.connect(lambda m: None)
    server.connect(received.append)
    received.clear()
    server.client_message(sender, "hello", "Main")
    assert received == ["hello"]