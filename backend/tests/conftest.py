"""
Pytest configuration and fixtures for backend tests.

Provides shared fixtures for:
- Test database sessions (in-memory SQLite with the regexp_replace hook)
- A recording roster notifier
- Sample data factories (events, attendees, upload files)
- A FastAPI test client bound to the test session
"""

import csv
import io
import os
from datetime import datetime
from unittest.mock import Mock

import pytest
from openpyxl import Workbook
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app modules
os.environ['EKKLESIA_DB_URL'] = 'sqlite:///:memory:'
os.environ['EKKLESIA_ENV'] = 'test'
os.environ['EKKLESIA_AUTO_CREATE_SCHEMA'] = 'false'

# Importing the database module registers the SQLite connect hook
# (foreign keys + regexp_replace) on every Engine
from backend.src.db.database import get_db
from backend.src.models import Attendee, AttendeeSource, Base, Event
from backend.src.services.roster_notifier import RosterNotifier
from backend.src.utils.crypto import hash_secret


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture(scope='function')
def test_db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope='function')
def test_db_session(test_db_engine):
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_db_engine
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# ============================================================================
# Utility Fixtures
# ============================================================================

@pytest.fixture(scope='function')
def recording_notifier():
    """RosterNotifier stand-in that records notify() calls."""
    return Mock(spec=RosterNotifier)


# ============================================================================
# Sample Data Factories
# ============================================================================

@pytest.fixture
def sample_event(test_db_session):
    """Factory for creating sample Event models in the database."""
    def _create(name='Youth Camp 2026', secret=None, is_finished=False, **kwargs):
        event = Event(
            name=name,
            secret_hash=hash_secret(secret) if secret else None,
            is_finished=is_finished,
            finished_at=datetime.utcnow() if is_finished else None,
            **kwargs
        )
        test_db_session.add(event)
        test_db_session.commit()
        test_db_session.refresh(event)
        return event
    return _create


@pytest.fixture
def sample_attendee(test_db_session):
    """Factory for creating sample Attendee models in the database."""
    def _create(
        event,
        name='Jane Doe',
        phone_number=None,
        affiliation=None,
        checked_in=False,
        source=AttendeeSource.MANUAL.value,
    ):
        attendee = Attendee(
            event_id=event.id,
            name=name,
            phone_number=phone_number,
            affiliation=affiliation,
            checked_in=checked_in,
            checked_in_at=datetime.utcnow() if checked_in else None,
            source=source,
        )
        test_db_session.add(attendee)
        test_db_session.commit()
        test_db_session.refresh(attendee)
        return attendee
    return _create


@pytest.fixture
def xlsx_file():
    """Factory building .xlsx bytes from a list of rows (first row = header)."""
    def _create(rows):
        wb = Workbook()
        ws = wb.active
        for row in rows:
            ws.append(list(row))
        stream = io.BytesIO()
        wb.save(stream)
        return stream.getvalue()
    return _create


@pytest.fixture
def csv_file():
    """Factory building UTF-8 CSV bytes from a list of rows."""
    def _create(rows, delimiter=','):
        stream = io.StringIO()
        writer = csv.writer(stream, delimiter=delimiter)
        for row in rows:
            writer.writerow(row)
        return stream.getvalue().encode('utf-8')
    return _create


# ============================================================================
# FastAPI Test Client Fixture
# ============================================================================

@pytest.fixture
def test_client(test_db_session):
    """Create a test client for FastAPI application."""
    from fastapi.testclient import TestClient
    from backend.src.main import app

    def get_test_db():
        try:
            yield test_db_session
        finally:
            pass

    app.dependency_overrides[get_db] = get_test_db

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
