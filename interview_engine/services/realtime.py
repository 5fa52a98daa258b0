import asyncio
import json
import logging
from collections import defaultdict

from fastapi import WebSocket
from starlette.websockets import WebSocketState

logger = logging.getLogger(__name__)


def candidate_room(session_id: str) -> str:
    return f"session-{session_id}"


def recruiter_room(session_id: str) -> str:
    return f"recruiter-{session_id}"


class RoomManager:
    """In-process pub/sub: room id -> connected websockets."""

    def __init__(self):
        self.rooms: dict[str, set[WebSocket]] = defaultdict(set)
        self.lock = asyncio.Lock()

    async def join(self, room_id: str, websocket: WebSocket) -> None:
        async with self.lock:
            self.rooms[room_id].add(websocket)
        logger.info("Connection joined room %s", room_id)

    async def leave(self, room_id: str, websocket: WebSocket) -> None:
        async with self.lock:
            members = self.rooms.get(room_id)
            if members:
                members.discard(websocket)
                if not members:
                    self.rooms.pop(room_id, None)
        logger.info("Connection left room %s", room_id)

    async def broadcast(self, room_id: str, event: str, data: dict) -> int:
        """Send to every live member; returns how many received it."""
        async with self.lock:
            targets = list(self.rooms.get(room_id, ()))

        encoded = json.dumps({"event": event, "data": data}, default=str)
        delivered = 0
        for conn in targets:
            if conn.client_state != WebSocketState.CONNECTED:
                continue
            try:
                await conn.send_text(encoded)
                delivered += 1
            except Exception as exc:
                logger.warning("Broadcast to room %s failed: %s", room_id, exc)
        return delivered


def violation_event(violation, integrity: dict) -> dict:
    return {
        "violation_id": violation.id,
        "session_id": violation.session_id,
        "violation_type": violation.violation_type,
        "severity": violation.severity,
        "source": violation.source,
        "details": violation.details,
        "timestamp": violation.timestamp.isoformat() if violation.timestamp else None,
        "integrity_score": integrity["integrity_score"],
        "risk_level": integrity["risk_level"],
    }
