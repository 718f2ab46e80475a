"""
Real-time channel: authenticated websocket connections grouped in per-user rooms.

One channel object is created per application lifespan and handed to whoever
needs to publish. Every message is ``{"event": <name>, "data": <payload>}``.
"""
import asyncio
import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)

CONNECTED_EVENT = "connected"
NOTIFICATION_EVENT = "notification:new"
ORDER_CREATED_EVENT = "order:created"
ORDER_UPDATED_EVENT = "order:updated"


class RealtimeChannel:
    """Track websocket sessions per user and deliver targeted or ward-wide events."""

    def __init__(self) -> None:
        self._rooms: Dict[int, Set[WebSocket]] = defaultdict(set)
        self._wards: Dict[WebSocket, Optional[int]] = {}
        self._lock = asyncio.Lock()

    async def join(self, websocket: WebSocket, user_id: int, ward_id: Optional[int]) -> None:
        """Put an accepted *websocket* into the room of *user_id*."""
        async with self._lock:
            self._rooms[user_id].add(websocket)
            self._wards[websocket] = ward_id
        logger.info(f"User {user_id} joined the realtime channel (ward {ward_id})")

    async def leave(self, websocket: WebSocket, user_id: int) -> None:
        async with self._lock:
            self._discard(websocket, user_id)
        logger.info(f"User {user_id} left the realtime channel")

    def connection_count(self, user_id: Optional[int] = None) -> int:
        if user_id is not None:
            return len(self._rooms.get(user_id, ()))
        return len(self._wards)

    async def emit_to_user(self, user_id: int, event: str, data: Any) -> int:
        """
        Send *event* to every connection of *user_id*.
        
        Returns:
            int: Number of connections that received it
        """
        async with self._lock:
            targets = [(ws, user_id) for ws in self._rooms.get(user_id, ())]
        return await self._fanout(targets, {"event": event, "data": data})

    async def broadcast(self, event: str, data: Any, ward_id: Optional[int] = None) -> int:
        """
        Send *event* to the connections of *ward_id* plus unrestricted ones.
        
        With ``ward_id=None`` every connection receives it.
        """
        async with self._lock:
            targets = [
                (ws, user_id)
                for user_id, sockets in self._rooms.items()
                for ws in sockets
                if ward_id is None or self._wards.get(ws) in (None, ward_id)
            ]
        return await self._fanout(targets, {"event": event, "data": data})

    async def close(self) -> None:
        """Close every connection; called when the application shuts down."""
        async with self._lock:
            sockets = list(self._wards)
            self._rooms.clear()
            self._wards.clear()
        for ws in sockets:
            try:
                await ws.close()
            except Exception:  # already gone
                pass

    async def _fanout(self, targets: List[tuple], message: Dict[str, Any]) -> int:
        if not targets:
            return 0
        delivered = 0
        dead = []
        for ws, user_id in targets:
            try:
                await ws.send_json(message)
                delivered += 1
            except Exception as e:
                logger.debug(f"Dropping realtime connection of user {user_id}: {str(e)}")
                dead.append((ws, user_id))
        if dead:
            async with self._lock:
                for ws, user_id in dead:
                    self._discard(ws, user_id)
        return delivered

    def _discard(self, websocket: WebSocket, user_id: int) -> None:
        sockets = self._rooms.get(user_id)
        if sockets:
            sockets.discard(websocket)
            if not sockets:
                self._rooms.pop(user_id, None)
        self._wards.pop(websocket, None)
