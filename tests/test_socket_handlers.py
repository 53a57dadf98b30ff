import pytest

from course_chat.api.realtime.socket_handlers import active_session_count
from course_chat.infrastructure.realtime.socketio_server import socketio
from tests.conftest import ALICE, BOB


@pytest.fixture
def connect(app, jwt_provider):
    clients = []

    def _connect(user_id=None):
        query = f"token={jwt_provider.issue_access_token(subject=user_id)}" if user_id else None
        sc = socketio.test_client(app, query_string=query)
        clients.append(sc)
        return sc

    yield _connect
    for sc in clients:
        if sc.is_connected():
            sc.disconnect()


def _events(sc, name):
    return [r["args"][0] for r in sc.get_received() if r["name"] == name]


def test_connect_without_token_is_rejected(connect):
    assert not connect().is_connected()


def test_connect_for_unknown_account_is_rejected(connect):
    assert not connect("ghost").is_connected()


def test_connect_starts_and_disconnect_stops_chat_session(connect, client, auth_headers):
    before = active_session_count()
    sc = connect(ALICE.user_id)

    assert sc.is_connected()
    assert active_session_count() == before + 1
    online = client.get("/api/presence/online", headers=auth_headers(BOB.user_id)).get_json()
    assert online["count"] == 1

    sc.disconnect()
    assert active_session_count() == before
    online = client.get("/api/presence/online", headers=auth_headers(BOB.user_id)).get_json()
    assert online["count"] == 0


def test_join_pushes_snapshots_and_live_updates(connect, client, auth_headers):
    sc = connect(BOB.user_id)

    ack = sc.emit("chat:join", {"channel": "csm101"}, callback=True)
    assert ack == {"ok": True, "channel": "CSM101"}
    assert _events(sc, "messages:snapshot") == [{"channel": "CSM101", "messages": []}]

    client.post(
        "/api/channels/CSM101/messages",
        json={"text": "welcome"},
        headers=auth_headers(ALICE.user_id),
    )

    snapshots = _events(sc, "messages:snapshot")
    assert [m["text"] for m in snapshots[-1]["messages"]] == ["welcome"]


def test_join_foreign_channel_is_refused(connect):
    sc = connect(BOB.user_id)

    ack = sc.emit("chat:join", {"channel": "CSM102"}, callback=True)

    assert ack["ok"] is False
    assert _events(sc, "messages:snapshot") == []


def test_typing_over_socket_reaches_other_member(connect):
    alice = connect(ALICE.user_id)
    bob = connect(BOB.user_id)
    alice.emit("chat:join", {"channel": "CSM101"}, callback=True)
    alice.get_received()

    assert bob.emit("typing:set", {"channel": "CSM101", "is_typing": True}, callback=True) == {"ok": True}

    snapshots = _events(alice, "typing:snapshot")
    assert snapshots[-1]["users"] == [{"id": BOB.user_id, "name": BOB.full_name, "role": "student"}]


def test_presence_watch_pushes_counts(connect):
    alice = connect(ALICE.user_id)
    ack = alice.emit("presence:watch", {"role": "student"}, callback=True)
    assert ack == {"ok": True, "filter": "student:*"}
    assert _events(alice, "presence:count")[-1]["count"] == 1

    connect(BOB.user_id)
    assert _events(alice, "presence:count")[-1]["count"] == 2

    assert alice.emit("presence:unwatch", callback=True) == {"ok": True}
