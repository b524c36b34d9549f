"""
Pytest configuration and shared fixtures for the test suite.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

import pytest

from graph_batcher.config import ENV_PREFIX, GraphBatcherConfig
from graph_batcher.core.batch import Batch
from graph_batcher.core.request import PendingRequest, build_requests
from graph_batcher.graph.interface import (
    BatchOutcome,
    GraphInterface,
    ItemOutcome,
    TransportError,
)


FIXED_NOW = datetime(2026, 1, 15, 9, 0, 0, tzinfo=timezone.utc)


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> GraphBatcherConfig:
    """Create a test configuration."""
    return GraphBatcherConfig(
        client_id="test-client-id",
        client_secret="test-client-secret",
        tenant_id="test-tenant",
        authority="https://login.microsoftonline.com/",
        scope="https://graph.microsoft.com/.default",
        calendar_email="calendar@example.com",
        event_count=45,
        batch_size_max=20,
        log_level="DEBUG",
    )


@pytest.fixture
def fixed_now() -> datetime:
    """A fixed reference time for request building."""
    return FIXED_NOW


# ============================================================================
# Test Data Generators
# ============================================================================

def clear_config_env(monkeypatch) -> None:
    """Remove every environment variable the configuration reads."""
    for name, field in GraphBatcherConfig.model_fields.items():
        names = [f"{ENV_PREFIX}{name.upper()}"]
        if field.validation_alias is not None:
            names.extend(field.validation_alias.choices)
        for env_name in names:
            monkeypatch.delenv(env_name, raising=False)
            monkeypatch.delenv(env_name.upper(), raising=False)


def generate_event_id(tag: str) -> str:
    """Generate a deterministic Graph-like event id for a tag."""
    return f"AAMkAD-event-{tag}"


def make_requests(count: int) -> List[PendingRequest]:
    """Build requests at the fixed reference time."""
    return build_requests(count, now=FIXED_NOW)


@pytest.fixture
def sample_requests() -> List[PendingRequest]:
    """Create five sample requests."""
    return make_requests(5)


@pytest.fixture
def sample_batch(sample_requests) -> Batch:
    """Create a sample batch with requests."""
    return Batch(requests=tuple(sample_requests[:3]))


# ============================================================================
# Mock Graph Interface
# ============================================================================

class MockGraphInterface(GraphInterface):
    """
    In-memory calendar API for testing.

    Every sub-request succeeds with status 201 unless its tag is listed in
    ``item_statuses``; batches listed in ``failing_batches`` raise
    TransportError; deletions of ids in ``failing_deletions`` raise
    TransportError.
    """

    def __init__(self):
        self.submitted_batches: List[Batch] = []
        self.deleted_ids: List[str] = []
        self.delete_attempts: List[str] = []
        self.item_statuses: Dict[str, int] = {}
        self.failing_batches: Set[int] = set()
        self.failing_deletions: Set[str] = set()
        self.connected = False
        self.connect_calls = 0
        self.disconnect_calls = 0

    async def connect(self) -> None:
        self.connected = True
        self.connect_calls += 1

    async def disconnect(self) -> None:
        self.connected = False
        self.disconnect_calls += 1

    async def submit_batch(self, batch: Batch) -> BatchOutcome:
        self.submitted_batches.append(batch)
        if batch.index in self.failing_batches:
            raise TransportError(f"simulated failure for batch {batch.index}", status_code=503)

        outcome: BatchOutcome = {}
        for request in batch.requests:
            status = self.item_statuses.get(request.tag, 201)
            if 200 <= status < 300:
                body = {"id": generate_event_id(request.tag), "subject": request.payload.subject}
            else:
                body = {"error": {"code": "ErrorItemNotFound", "message": "simulated"}}
            outcome[request.tag] = ItemOutcome(status_code=status, body=body)
        return outcome

    async def delete_event(self, event_id: str) -> None:
        self.delete_attempts.append(event_id)
        if event_id in self.failing_deletions:
            raise TransportError(f"simulated failure deleting {event_id}", status_code=500)
        self.deleted_ids.append(event_id)


@pytest.fixture
def mock_graph() -> MockGraphInterface:
    """Create a mock calendar API."""
    return MockGraphInterface()


async def fake_token_provider(config: GraphBatcherConfig) -> str:
    """Token provider that always succeeds."""
    return "test-access-token"
