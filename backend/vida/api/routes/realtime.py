"""Realtime Route — WebSocket endpoint for panic and QR-access events.

Invariants:
    - A socket joins user-{id} only with a valid access token for that user
    - representative-{id} rooms are joined by patient id, sent as user_id
      (patient_id is accepted as an alias)
    - Malformed messages get an error event; the socket stays open

Design Decisions:
    - Client messages are {"action": ..., ...}; server pushes are
      {"event": ..., "data": ...} from RealtimeHub.emit
"""

import json
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from vida.api.dependencies import get_realtime_hub
from vida.core.errors import AuthenticationError
from vida.infrastructure.realtime import RealtimeHub, representative_room, user_room
from vida.services.auth_service import authenticate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/realtime", tags=["realtime"])


def _resolve_room(message: dict) -> str:
    action = message.get("action")
    if action == "join-user":
        return user_room(authenticate(str(message.get("token") or "")))
    if action == "join-representative":
        patient_id = message.get("user_id") or message.get("patient_id")
        return representative_room(UUID(str(patient_id)))
    raise ValueError(f"unknown action {action!r}")


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket, hub: RealtimeHub = Depends(get_realtime_hub),
):
    await hub.connect(websocket)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                message = None
            if not isinstance(message, dict):
                await websocket.send_json(
                    {"event": "error", "data": {"code": "INVALID_MESSAGE"}},
                )
                continue
            try:
                room = _resolve_room(message)
            except AuthenticationError as e:
                await websocket.send_json({"event": "error", "data": {"code": e.code}})
                continue
            except ValueError:
                await websocket.send_json(
                    {"event": "error", "data": {"code": "INVALID_MESSAGE"}},
                )
                continue
            await hub.join(websocket, room)
            await websocket.send_json({"event": "joined", "data": {"room": room}})
    except WebSocketDisconnect:
        logger.info("Realtime socket disconnected", extra={"event": "ws_disconnect"})
    finally:
        await hub.disconnect(websocket)
