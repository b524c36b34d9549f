"""
Batch model.

Represents a group of requests submitted in a single Graph JSON batch call.
"""

import uuid
from dataclasses import dataclass, field
from typing import List, Tuple

from graph_batcher.core.request import PendingRequest


@dataclass(frozen=True)
class Batch:
    """
    An immutable, ordered group of requests.

    Attributes:
        requests: Requests in submission order
        index: Zero-based position of this batch in the run
        batch_id: Unique identifier for logging
    """

    requests: Tuple[PendingRequest, ...]
    index: int = 0
    batch_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        """Validate that the batch is non-empty with unique tags."""
        # Accept any sequence but store a tuple
        if not isinstance(self.requests, tuple):
            object.__setattr__(self, "requests", tuple(self.requests))

        if not self.requests:
            raise ValueError("A batch must contain at least one request")

        tags = [r.tag for r in self.requests]
        if len(set(tags)) != len(tags):
            raise ValueError(f"Duplicate tags in batch: {tags}")

    @property
    def size(self) -> int:
        """Get the number of requests in this batch."""
        return len(self.requests)

    @property
    def tags(self) -> List[str]:
        """Get all request tags in this batch."""
        return [r.tag for r in self.requests]

    def to_payload(self, events_path: str) -> dict:
        """
        Build the JSON batch request body.

        Args:
            events_path: Relative Graph path each sub-request posts to

        Returns:
            Body for ``POST /$batch``
        """
        return {
            "requests": [
                {
                    "id": request.tag,
                    "method": "POST",
                    "url": events_path,
                    "headers": {"Content-Type": "application/json"},
                    "body": request.payload.to_dict(),
                }
                for request in self.requests
            ]
        }

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "batch_id": self.batch_id,
            "index": self.index,
            "size": self.size,
            "tags": self.tags,
        }

    def __repr__(self) -> str:
        return f"Batch(id={self.batch_id[:8]}..., index={self.index}, size={self.size})"
