"""Realtime Hub — in-process WebSocket rooms for panic and QR-access events.

Invariants:
    - Rooms are named user-{id} and representative-{id}
    - emit() never raises; a socket that fails to receive is dropped from every room
    - A socket may sit in several rooms; disconnect removes it from all of them

Design Decisions:
    - Module singleton realtime_hub: single uvicorn process, no broker
    - Events are JSON objects {"event": name, "data": payload}
"""

import asyncio
import logging
from collections import defaultdict

from fastapi import WebSocket

logger = logging.getLogger(__name__)


def user_room(user_id) -> str:
    return f"user-{user_id}"


def representative_room(user_id) -> str:
    return f"representative-{user_id}"


class RealtimeHub:
    def __init__(self):
        self._rooms: dict[str, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()

    async def join(self, websocket: WebSocket, room: str) -> None:
        async with self._lock:
            self._rooms[room].add(websocket)

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            for room in list(self._rooms):
                self._rooms[room].discard(websocket)
                if not self._rooms[room]:
                    del self._rooms[room]

    def members(self, room: str) -> int:
        return len(self._rooms.get(room, ()))

    async def emit(self, room: str, event: str, data: dict) -> int:
        """Send to every socket in room; returns how many received it."""
        async with self._lock:
            targets = list(self._rooms.get(room, ()))
        delivered = 0
        dead = []
        for ws in targets:
            try:
                await ws.send_json({"event": event, "data": data})
                delivered += 1
            except Exception as e:
                logger.info(
                    f"Dropping socket from {room}: {e}",
                    extra={"event": event},
                )
                dead.append(ws)
        for ws in dead:
            await self.disconnect(ws)
        return delivered


realtime_hub = RealtimeHub()
