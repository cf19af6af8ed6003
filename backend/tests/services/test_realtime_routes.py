"""Realtime Route — verifies room joins over the WebSocket endpoint.

Invariants:
    - join-user needs a valid access token and lands in user-{id}
    - join-representative lands in representative-{patient_id}
    - Bad tokens and malformed messages get an error event; the socket stays usable
"""

import uuid

import pytest
from fastapi.testclient import TestClient

from vida.api.dependencies import get_realtime_hub
from vida.infrastructure.realtime import RealtimeHub
from vida.infrastructure.security import create_token_pair
from vida.main import app

WS_PATH = "/api/v1/realtime/ws"


@pytest.fixture
def hub():
    hub = RealtimeHub()
    app.dependency_overrides[get_realtime_hub] = lambda: hub
    yield hub
    app.dependency_overrides.clear()


def test_join_user_room_with_access_token(hub):
    user_id = str(uuid.uuid4())
    token = create_token_pair(user_id, "ana@example.mx").access_token
    with TestClient(app).websocket_connect(WS_PATH) as ws:
        ws.send_json({"action": "join-user", "token": token})
        assert ws.receive_json() == {"event": "joined", "data": {"room": f"user-{user_id}"}}
        assert hub.members(f"user-{user_id}") == 1


def test_refresh_token_cannot_join(hub):
    pair = create_token_pair(str(uuid.uuid4()), "ana@example.mx")
    with TestClient(app).websocket_connect(WS_PATH) as ws:
        ws.send_json({"action": "join-user", "token": pair.refresh_token})
        assert ws.receive_json() == {"event": "error", "data": {"code": "INVALID_TOKEN"}}


def test_join_representative_room(hub):
    patient_id = str(uuid.uuid4())
    with TestClient(app).websocket_connect(WS_PATH) as ws:
        ws.send_json({"action": "join-representative", "user_id": patient_id})
        assert ws.receive_json() == {
            "event": "joined", "data": {"room": f"representative-{patient_id}"},
        }
        assert hub.members(f"representative-{patient_id}") == 1


def test_join_representative_accepts_patient_id_alias(hub):
    patient_id = str(uuid.uuid4())
    with TestClient(app).websocket_connect(WS_PATH) as ws:
        ws.send_json({"action": "join-representative", "patient_id": patient_id})
        assert ws.receive_json()["data"]["room"] == f"representative-{patient_id}"


def test_malformed_messages_keep_socket_open(hub):
    with TestClient(app).websocket_connect(WS_PATH) as ws:
        ws.send_text("not json")
        assert ws.receive_json()["data"]["code"] == "INVALID_MESSAGE"
        ws.send_json({"action": "join-representative", "user_id": "nope"})
        assert ws.receive_json()["data"]["code"] == "INVALID_MESSAGE"
        ws.send_json({"action": "dance"})
        assert ws.receive_json()["data"]["code"] == "INVALID_MESSAGE"
        ws.send_json({"action": "join-user", "token": "garbage"})
        assert ws.receive_json()["data"]["code"] == "INVALID_TOKEN"
