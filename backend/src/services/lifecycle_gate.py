"""
Guard for roster mutations on finished events.

Adding, importing, confirming duplicates, checking in and deleting
attendees all call ``assert_mutable`` before touching the roster.
Undoing a check-in does not.
"""

from backend.src.models import Event
from backend.src.services.exceptions import EventFinishedError
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


def assert_mutable(event: Event, action: str) -> None:
    """
    Reject a roster mutation when the event is finished.

    Args:
        event: Owning event
        action: Short verb phrase for the error message ("check in attendees")

    Raises:
        EventFinishedError: If the event is finished
    """
    if event.is_finished:
        logger.warning(
            f"Blocked '{action}' on finished event {event.guid}",
            extra={"event_guid": event.guid, "action": action},
        )
        raise EventFinishedError(event.guid, action)
