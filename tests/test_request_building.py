"""
Test suite for building event-creation requests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from graph_batcher.core.request import CalendarEvent, PendingRequest, build_requests
from tests.conftest import FIXED_NOW


class TestBuildRequests:
    """Tests for build_requests."""

    @pytest.mark.parametrize("count", [0, 1, 20, 45])
    def test_tags_are_gap_free(self, count):
        """Test that tags run from "0" to "count-1" in order."""
        requests = build_requests(count, now=FIXED_NOW)

        assert len(requests) == count
        assert [r.tag for r in requests] == [str(i) for i in range(count)]

    def test_zero_count(self):
        """Test that zero requests are allowed."""
        assert build_requests(0) == []

    def test_negative_count_rejected(self):
        """Test that a negative count is rejected."""
        with pytest.raises(ValueError):
            build_requests(-1)

    def test_subject_and_body_derived_from_index(self):
        """Test the text fields of each payload."""
        requests = build_requests(3, now=FIXED_NOW)

        assert requests[2].payload.subject == "Subject2"
        assert requests[2].payload.body_content == "Content2"
        assert requests[2].payload.body_content_type == "html"
        assert requests[2].payload.location == "Dummy location"

    def test_start_offset_by_index_hours(self):
        """Test that request i starts i hours after now and lasts 30 minutes."""
        requests = build_requests(4, now=FIXED_NOW)

        for i, request in enumerate(requests):
            assert request.payload.start == FIXED_NOW + timedelta(hours=i)
            assert request.payload.end - request.payload.start == timedelta(minutes=30)

    def test_naive_now_treated_as_utc(self):
        """Test that a naive reference time is taken as UTC."""
        requests = build_requests(1, now=datetime(2026, 1, 15, 9, 0, 0))

        assert requests[0].payload.start == FIXED_NOW

    def test_default_now_is_current_utc(self):
        """Test that the default reference time is the current UTC time."""
        before = datetime.now(timezone.utc)
        requests = build_requests(1)
        after = datetime.now(timezone.utc)

        assert before <= requests[0].payload.start <= after


class TestCalendarEventSerialization:
    """Tests for the Graph event JSON shape."""

    def test_event_to_dict(self):
        """Test the full Graph event schema."""
        event = build_requests(2, now=FIXED_NOW)[1].payload

        assert event.to_dict() == {
            "subject": "Subject1",
            "body": {"contentType": "html", "content": "Content1"},
            "start": {"dateTime": "2026-01-15T10:00:00", "timeZone": "UTC"},
            "end": {"dateTime": "2026-01-15T10:30:00", "timeZone": "UTC"},
            "location": {"displayName": "Dummy location"},
        }

    def test_non_utc_times_converted(self):
        """Test that aware non-UTC times are written in UTC."""
        plus_two = timezone(timedelta(hours=2))
        event = CalendarEvent(
            subject="s",
            body_content="c",
            start=datetime(2026, 1, 15, 11, 0, tzinfo=plus_two),
            end=datetime(2026, 1, 15, 11, 30, tzinfo=plus_two),
        )

        data = event.to_dict()

        assert data["start"]["dateTime"] == "2026-01-15T09:00:00"
        assert data["end"]["dateTime"] == "2026-01-15T09:30:00"

    def test_pending_request_to_dict(self):
        """Test request serialization keeps the tag."""
        request = build_requests(1, now=FIXED_NOW)[0]

        data = request.to_dict()

        assert isinstance(request, PendingRequest)
        assert data["tag"] == "0"
        assert data["payload"]["subject"] == "Subject0"
