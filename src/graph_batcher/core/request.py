"""
Pending request model.

Represents a single calendar event-creation request waiting to be batched.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional

GRAPH_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"

DEFAULT_LOCATION = "Dummy location"
EVENT_DURATION = timedelta(minutes=30)


@dataclass(frozen=True)
class CalendarEvent:
    """
    Calendar event payload in the shape the Graph events endpoint accepts.

    Attributes:
        subject: Event title
        body_content: Event body
        start: Start time (UTC)
        end: End time (UTC)
        location: Location display name
        body_content_type: "html" or "text"
    """

    subject: str
    body_content: str
    start: datetime
    end: datetime
    location: str = DEFAULT_LOCATION
    body_content_type: str = "html"

    def to_dict(self) -> dict:
        """Convert to the Graph event JSON schema."""
        return {
            "subject": self.subject,
            "body": {
                "contentType": self.body_content_type,
                "content": self.body_content,
            },
            "start": {
                "dateTime": _format_utc(self.start),
                "timeZone": "UTC",
            },
            "end": {
                "dateTime": _format_utc(self.end),
                "timeZone": "UTC",
            },
            "location": {
                "displayName": self.location,
            },
        }


@dataclass(frozen=True)
class PendingRequest:
    """
    A tagged event-creation request.

    The tag correlates the request with its sub-response inside one batch.
    It is unique within a batch, not necessarily across batches.
    """

    tag: str
    payload: CalendarEvent

    def to_dict(self) -> dict:
        """Convert to dictionary for logging and inspection."""
        return {"tag": self.tag, "payload": self.payload.to_dict()}


def _format_utc(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(GRAPH_DATETIME_FORMAT)


def build_requests(count: int, now: Optional[datetime] = None) -> List[PendingRequest]:
    """
    Build ``count`` event-creation requests.

    Request ``i`` starts ``i`` hours after ``now`` and lasts 30 minutes.

    Args:
        count: Number of requests to build
        now: Reference time; defaults to the current UTC time

    Returns:
        Requests tagged "0".."count-1", in order

    Raises:
        ValueError: If count is negative
    """
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")

    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    requests = []
    for i in range(count):
        start = now + timedelta(hours=i)
        event = CalendarEvent(
            subject=f"Subject{i}",
            body_content=f"Content{i}",
            start=start,
            end=start + EVENT_DURATION,
        )
        requests.append(PendingRequest(tag=str(i), payload=event))

    return requests
