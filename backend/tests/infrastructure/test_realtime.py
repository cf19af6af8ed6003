"""Realtime Hub — verifies room membership and delivery.

Tests:
    - emit reaches every socket in the room and nobody else
    - A socket that fails to receive is dropped from all rooms
    - disconnect removes a socket from every room it joined
"""

from vida.infrastructure.realtime import RealtimeHub, representative_room, user_room


class FakeSocket:
    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail
        self.accepted = False

    async def accept(self):
        self.accepted = True

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)


def test_room_names():
    assert user_room("42") == "user-42"
    assert representative_room("42") == "representative-42"


async def test_emit_reaches_room_members_only():
    hub = RealtimeHub()
    a, b, outsider = FakeSocket(), FakeSocket(), FakeSocket()
    await hub.connect(a)
    assert a.accepted
    await hub.join(a, "user-1")
    await hub.join(b, "user-1")
    await hub.join(outsider, "user-2")

    delivered = await hub.emit("user-1", "panic-alert-sent", {"alert_id": "x"})

    assert delivered == 2
    assert a.sent == [{"event": "panic-alert-sent", "data": {"alert_id": "x"}}]
    assert b.sent == a.sent
    assert outsider.sent == []


async def test_emit_to_empty_room_is_noop():
    assert await RealtimeHub().emit("nobody", "x", {}) == 0


async def test_failing_socket_is_dropped():
    hub = RealtimeHub()
    good, bad = FakeSocket(), FakeSocket(fail=True)
    await hub.join(good, "representative-1")
    await hub.join(bad, "representative-1")
    await hub.join(bad, "user-1")

    assert await hub.emit("representative-1", "panic-alert", {}) == 1
    assert hub.members("representative-1") == 1
    assert hub.members("user-1") == 0


async def test_disconnect_leaves_every_room():
    hub = RealtimeHub()
    ws = FakeSocket()
    await hub.join(ws, "user-1")
    await hub.join(ws, "representative-1")
    await hub.disconnect(ws)
    assert hub.members("user-1") == 0
    assert hub.members("representative-1") == 0
