"""
Microsoft Graph adapter.

Implements batch submission through the Graph JSON batching endpoint
(``POST /$batch``) and single-event deletion.
"""

from typing import Optional
from urllib.parse import quote

import httpx
import structlog

from graph_batcher.config import GRAPH_MAX_BATCH_SIZE, GraphBatcherConfig
from graph_batcher.core.batch import Batch
from graph_batcher.graph.interface import (
    BatchOutcome,
    GraphInterface,
    ItemOutcome,
    TransportError,
)

logger = structlog.get_logger(__name__)


class GraphClient(GraphInterface):
    """
    Microsoft Graph API adapter.

    Implements the GraphInterface over Graph's REST API using a bearer token
    obtained once per run.
    """

    def __init__(
        self,
        config: GraphBatcherConfig,
        access_token: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the Graph adapter.

        Args:
            config: Batcher configuration
            access_token: Bearer token attached to every call
            transport: Custom httpx transport (used by tests)
        """
        self.base_url = config.graph_url
        self.events_path = config.events_path
        self.timeout = config.request_timeout_seconds
        self._access_token = access_token
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def headers(self) -> dict:
        """Get request headers with the bearer token."""
        return {
            "Authorization": f"Bearer {self._access_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def connect(self) -> None:
        """Create the HTTP client."""
        if self._client is not None:
            return

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            transport=self._transport,
        )
        logger.info("graph_connected", base_url=self.base_url)

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("graph_disconnected")

    async def _request(
        self,
        method: str,
        path: str,
        **kwargs,
    ) -> httpx.Response:
        """Make an API request."""
        if not self._client:
            await self.connect()

        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.error("graph_request_error", method=method, path=path, error=str(e))
            raise TransportError(f"Graph request failed: {e}")

    async def submit_batch(self, batch: Batch) -> BatchOutcome:
        """Submit one batch and demultiplex the grouped response by tag."""
        if batch.size > GRAPH_MAX_BATCH_SIZE:
            raise ValueError(
                f"Graph accepts at most {GRAPH_MAX_BATCH_SIZE} requests per batch, got {batch.size}"
            )

        response = await self._request(
            "POST",
            "/$batch",
            json=batch.to_payload(self.events_path),
        )

        if response.status_code != 200:
            logger.error(
                "batch_request_failed",
                batch_index=batch.index,
                status=response.status_code,
                error=response.text[:255],
            )
            raise TransportError(
                f"Batch request failed with status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(f"Batch response is not valid JSON: {e}")

        items = data.get("responses") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise TransportError("Batch response has no 'responses' array")

        return self._demultiplex(batch, items)

    def _demultiplex(self, batch: Batch, items: list) -> BatchOutcome:
        """Map sub-responses back to the batch's tags."""
        tags = set(batch.tags)
        outcome: BatchOutcome = {}

        for item in items:
            if not isinstance(item, dict):
                logger.warning("malformed_sub_response", batch_index=batch.index)
                continue

            tag = str(item.get("id"))
            if tag not in tags:
                logger.warning("unknown_sub_response", batch_index=batch.index, tag=tag)
                continue

            try:
                status_code = int(item.get("status", 0))
            except (TypeError, ValueError):
                status_code = 0

            outcome[tag] = ItemOutcome(status_code=status_code, body=item.get("body"))

        missing = [t for t in batch.tags if t not in outcome]
        if missing:
            logger.warning("sub_responses_missing", batch_index=batch.index, tags=missing)

        return outcome

    async def delete_event(self, event_id: str) -> None:
        """Delete one event from the target calendar."""
        response = await self._request("DELETE", f"{self.events_path}/{quote(event_id, safe='')}")

        if not 200 <= response.status_code < 300:
            logger.error(
                "event_delete_failed",
                event_id=event_id,
                status=response.status_code,
                error=response.text[:255],
            )
            raise TransportError(
                f"Deleting event {event_id} failed with status {response.status_code}",
                status_code=response.status_code,
            )
