"""
Unit tests for the finished-event guard.
"""

import pytest

from backend.src.services.exceptions import EventFinishedError
from backend.src.services.lifecycle_gate import assert_mutable


class TestAssertMutable:

    def test_active_event_passes(self, sample_event):
        assert_mutable(sample_event(), "add attendees")

    def test_finished_event_is_rejected(self, sample_event):
        event = sample_event(is_finished=True)

        with pytest.raises(EventFinishedError) as exc_info:
            assert_mutable(event, "check in attendees")

        assert exc_info.value.event_guid == event.guid
        assert "check in attendees" in exc_info.value.message
        assert "Restart the event" in exc_info.value.message

    def test_restarted_event_passes_again(self, sample_event):
        event = sample_event(is_finished=True)
        event.restart()

        assert_mutable(event, "import attendees")
