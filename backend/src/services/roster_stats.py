"""
Roster statistics queries.

Statistics are always recomputed from the attendees table; they are
never cached beyond one response or broadcast.
"""

from typing import Dict, Iterable

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from backend.src.models import Attendee


def _checked_in_sum():
    return func.coalesce(func.sum(case((Attendee.checked_in.is_(True), 1), else_=0)), 0)


def compute_roster_stats(db: Session, event_id: int) -> Dict[str, int]:
    """
    Count attendees of one event.

    Returns:
        {"total": int, "checked_in": int}
    """
    total, checked_in = (
        db.query(func.count(Attendee.id), _checked_in_sum())
        .filter(Attendee.event_id == event_id)
        .one()
    )
    return {"total": int(total), "checked_in": int(checked_in)}


def compute_roster_stats_by_event(
    db: Session, event_ids: Iterable[int]
) -> Dict[int, Dict[str, int]]:
    """
    Count attendees of several events in one query.

    Events without attendees are reported with zero counts.
    """
    ids = list(event_ids)
    stats = {event_id: {"total": 0, "checked_in": 0} for event_id in ids}
    if not ids:
        return stats
    rows = (
        db.query(Attendee.event_id, func.count(Attendee.id), _checked_in_sum())
        .filter(Attendee.event_id.in_(ids))
        .group_by(Attendee.event_id)
        .all()
    )
    for event_id, total, checked_in in rows:
        stats[event_id] = {"total": int(total), "checked_in": int(checked_in)}
    return stats
