"""
WebSocket connection registry for live roster updates.

Each event has its own channel (keyed by the event GUID). Viewers join a
channel by opening the event's WebSocket and leave it by disconnecting;
roster changes are broadcast to every socket on the channel.

The manager is created once per process in the application lifespan and
handed to consumers explicitly (``app.state.websocket_manager``).

Usage:
    manager = ConnectionManager()

    # In WebSocket endpoint (socket already accepted)
    await manager.register_accepted(event_guid, websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        manager.disconnect(event_guid, websocket)

    # After a committed roster change
    await manager.broadcast(event_guid, {"type": "attendee:added", ...})
"""

import asyncio
from typing import Dict, Set, Any, Optional

from fastapi import WebSocket

from backend.src.utils.logging_config import get_logger

logger = get_logger("websocket")


class ConnectionManager:
    """
    Maps channel identifiers to the set of WebSockets subscribed to them.

    Several sockets may watch the same event (multiple check-in desks,
    a projector view, ...).
    """

    def __init__(self):
        self._connections: Dict[str, Set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def register_accepted(self, channel: str, websocket: WebSocket) -> None:
        """
        Register an already-accepted WebSocket on a channel.

        Args:
            channel: Channel identifier (event GUID)
            websocket: Accepted WebSocket connection
        """
        async with self._lock:
            self._connections.setdefault(channel, set()).add(websocket)
            logger.debug(
                f"WebSocket registered for channel {channel}. "
                f"Total connections: {len(self._connections[channel])}"
            )

    def disconnect(self, channel: str, websocket: WebSocket) -> None:
        """
        Unregister a WebSocket connection.

        Synchronous so it can be called from exception handlers.
        """
        if channel in self._connections:
            self._connections[channel].discard(websocket)
            logger.debug(
                f"WebSocket disconnected from channel {channel}. "
                f"Remaining connections: {len(self._connections[channel])}"
            )
            if not self._connections[channel]:
                del self._connections[channel]

    async def broadcast(self, channel: str, data: Dict[str, Any]) -> int:
        """
        Send a JSON message to every socket on a channel.

        Sockets that fail to receive are dropped from the channel; delivery
        to the remaining sockets continues.

        Returns:
            Number of sockets the message was delivered to
        """
        if channel not in self._connections:
            return 0

        connections = self._connections[channel].copy()
        disconnected: Set[WebSocket] = set()

        for connection in connections:
            try:
                await connection.send_json(data)
            except Exception as e:
                logger.debug(f"Failed to send to WebSocket on {channel}: {e}")
                disconnected.add(connection)

        for conn in disconnected:
            self.disconnect(channel, conn)

        return len(connections) - len(disconnected)

    def get_connection_count(self, channel: Optional[str] = None) -> int:
        """
        Number of open sockets on one channel, or across all channels.
        """
        if channel:
            return len(self._connections.get(channel, set()))
        return sum(len(conns) for conns in self._connections.values())

    def get_channels(self) -> Set[str]:
        """Channels that currently have at least one subscriber."""
        return set(self._connections.keys())

    async def close_channel(self, channel: str, reason: str, code: int = 1000) -> None:
        """
        Notify and close every socket on a channel, then forget the channel.

        Used when the event behind the channel is deleted.
        """
        if channel not in self._connections:
            return

        await self.broadcast(channel, {"type": "closed", "reason": reason})

        for connection in self._connections.get(channel, set()).copy():
            try:
                await connection.close(code=code)
            except Exception as e:
                logger.debug(f"WebSocket on {channel} already closed: {e}")

        self._connections.pop(channel, None)
        logger.debug(f"Closed all WebSocket connections for channel {channel}")

    async def close_all(self, reason: str = "Server shutting down") -> None:
        """Close every registered socket (application shutdown)."""
        for channel in list(self._connections.keys()):
            await self.close_channel(channel, reason, code=1001)
