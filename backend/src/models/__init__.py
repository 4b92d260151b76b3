"""
SQLAlchemy models for the Ekklesia roster service.

This module provides the declarative base class and imports all models
to ensure they are registered with SQLAlchemy's metadata.
"""

from sqlalchemy.orm import declarative_base

# All models inherit from this Base class
Base = declarative_base()


# Import all models here so they are registered with Base.metadata
# This is required for Alembic autogenerate to detect models
from backend.src.models.event import Event, EventLifecycle
from backend.src.models.attendee import Attendee, AttendeeSource, CheckInState

__all__ = [
    "Base",
    "Event",
    "EventLifecycle",
    "Attendee",
    "AttendeeSource",
    "CheckInState",
]
