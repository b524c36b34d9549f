"""
Abstract interface for the remote calendar API.

Defines the contract that the batch workflow relies on: submitting a batch
of event-creation requests and deleting single events.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from graph_batcher.core.batch import Batch


@dataclass(frozen=True)
class ItemOutcome:
    """Sub-response for one tagged request inside a batch."""
    status_code: int
    body: Any = None       # Decoded JSON object, raw text, or None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


# Outcome of one submitted batch, keyed by request tag
BatchOutcome = Dict[str, ItemOutcome]


class GraphInterface(ABC):
    """
    Abstract interface for calendar API access.

    Implementations attach the bearer credential to every call.
    """

    @abstractmethod
    async def connect(self) -> None:
        """
        Prepare the underlying connection.

        Raises:
            TransportError: If the connection cannot be prepared
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the underlying connection."""
        pass

    @abstractmethod
    async def submit_batch(self, batch: Batch) -> BatchOutcome:
        """
        Submit a batch as one network call.

        Args:
            batch: Batch to submit

        Returns:
            Per-tag outcomes; keys are a subset of the batch's tags

        Raises:
            TransportError: If the call fails before per-item responses exist
        """
        pass

    @abstractmethod
    async def delete_event(self, event_id: str) -> None:
        """
        Delete a single event.

        Args:
            event_id: Identifier of the event to delete

        Raises:
            TransportError: If the deletion fails
        """
        pass


class TransportError(Exception):
    """Raised when a call to the remote API fails at the network or protocol level."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
