"""
Real-time fan-out of roster changes.

Services call ``notify`` after a roster change has been committed. The
broadcast is scheduled on the running event loop and the call returns
immediately, so the HTTP response does not wait for WebSocket delivery.

Every message has the shape::

    {"type": "attendee:checked_in", "event_id": "evt_...", ...payload}

There is no history: a viewer that (re)connects must fetch the roster.
"""

import asyncio
from enum import Enum
from typing import Any, Dict, Optional, Set, Union

from backend.src.utils.logging_config import get_logger
from backend.src.utils.websocket import ConnectionManager


logger = get_logger("websocket")


class RosterEventType(str, Enum):
    """Message types published on an event channel."""
    ATTENDEE_ADDED = "attendee:added"
    ATTENDEE_CHECKED_IN = "attendee:checked_in"
    ATTENDEE_UNCHECKED = "attendee:unchecked"
    ATTENDEE_DELETED = "attendee:deleted"
    ATTENDEES_IMPORTED = "attendees:imported"
    ATTENDEES_CLEARED = "attendees:cleared"


class RosterNotifier:
    """
    Publishes roster events to the subscribers of an event channel.

    Args:
        manager: Connection registry owning the WebSocket channels
    """

    def __init__(self, manager: ConnectionManager):
        self.manager = manager
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def publish(
        self,
        channel: str,
        event_name: Union[RosterEventType, str],
        payload: Dict[str, Any],
    ) -> int:
        """
        Broadcast one message and wait for delivery.

        Returns:
            Number of sockets that received the message
        """
        message_type = RosterEventType(event_name).value
        message = {"type": message_type, "event_id": channel, **payload}
        delivered = await self.manager.broadcast(channel, message)
        logger.debug(
            f"Published {message_type} to {delivered} subscriber(s)",
            extra={"event_guid": channel, "message_type": message_type},
        )
        return delivered

    def notify(
        self,
        channel: str,
        event_name: Union[RosterEventType, str],
        payload: Dict[str, Any],
    ) -> Optional[asyncio.Task]:
        """
        Schedule a broadcast without waiting for it.

        Must be called from the event loop thread. Outside a running loop
        (scripts, synchronous maintenance code) nobody can be subscribed,
        so the message is dropped with a warning.

        Returns:
            The delivery task, or None when no loop is running
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                f"No running event loop; {RosterEventType(event_name).value} "
                f"for {channel} not broadcast"
            )
            return None

        task = loop.create_task(self.publish(channel, event_name, payload))
        self._pending.add(task)
        task.add_done_callback(self._on_delivered)
        return task

    def _on_delivered(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                f"Roster broadcast failed: {error}",
                exc_info=(type(error), error, error.__traceback__),
            )

    async def drain(self, timeout: float = 5.0) -> None:
        """
        Wait for scheduled broadcasts to finish (application shutdown).

        Deliveries still running after ``timeout`` seconds are cancelled.
        """
        if not self._pending:
            return
        done, pending = await asyncio.wait(set(self._pending), timeout=timeout)
        for task in pending:
            task.cancel()
        logger.info(
            f"Drained roster notifier: {len(done)} delivered, {len(pending)} cancelled"
        )
