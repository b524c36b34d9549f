"""
Main workflow orchestrator.

Acquires a token, creates events in batches, waits for confirmation and
deletes the created events again.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, List, Optional

import structlog

from graph_batcher.auth.token import AuthenticationError, acquire_token
from graph_batcher.config import GraphBatcherConfig
from graph_batcher.core.batch import Batch
from graph_batcher.core.request import build_requests
from graph_batcher.engine.cleanup import DeletionResult, cleanup
from graph_batcher.engine.collector import CreatedResource, collect
from graph_batcher.engine.partitioner import partition
from graph_batcher.graph.client import GraphClient
from graph_batcher.graph.interface import GraphInterface, TransportError

logger = structlog.get_logger(__name__)

TokenProvider = Callable[[GraphBatcherConfig], Awaitable[str]]
GraphFactory = Callable[[GraphBatcherConfig, str], GraphInterface]
Confirmation = Callable[[], Awaitable[None]]


class WorkflowState(str, Enum):
    """State of a workflow run."""
    IDLE = "idle"
    TOKEN_ACQUIRED = "token_acquired"
    REQUESTS_BUILT = "requests_built"
    BATCHING = "batching"
    SUBMITTING = "submitting"
    ALL_BATCHES_DONE = "all_batches_done"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    DELETING = "deleting"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class CreationResult:
    """Result of the creation phase."""
    resources: List[CreatedResource] = field(default_factory=list)
    batches_submitted: int = 0
    batches_failed: int = 0


@dataclass
class RunReport:
    """Summary of one workflow run."""
    requested: int = 0
    batches_submitted: int = 0
    batches_failed: int = 0
    created: int = 0
    deletions_attempted: int = 0
    deletions_failed: int = 0
    state: WorkflowState = WorkflowState.IDLE

    @property
    def removed(self) -> int:
        """Number of resources successfully deleted."""
        return self.deletions_attempted - self.deletions_failed

    @property
    def completed(self) -> bool:
        return self.state == WorkflowState.DONE

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "requested": self.requested,
            "batches_submitted": self.batches_submitted,
            "batches_failed": self.batches_failed,
            "created": self.created,
            "deletions_attempted": self.deletions_attempted,
            "deletions_failed": self.deletions_failed,
            "removed": self.removed,
            "state": self.state.value,
        }


def _default_graph_factory(config: GraphBatcherConfig, access_token: str) -> GraphInterface:
    return GraphClient(config, access_token)


class Workflow:
    """
    Create-then-delete workflow over the Graph batch API.

    Batches are submitted one after another and deletions run one at a time.
    Created resource ids flow from the creation phase to the cleanup phase
    as return values.

    Usage:
        ```python
        workflow = Workflow(config, confirm=wait_for_enter)
        report = await workflow.run()
        ```
    """

    def __init__(
        self,
        config: GraphBatcherConfig,
        token_provider: Optional[TokenProvider] = None,
        graph_factory: Optional[GraphFactory] = None,
        confirm: Optional[Confirmation] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the workflow.

        Args:
            config: Batcher configuration
            token_provider: Coroutine returning a bearer token (MSAL by default)
            graph_factory: Builds the API client from config and token
            confirm: Awaited before cleanup starts; no pause if omitted
            now: Clock used for event start times (UTC now by default)
        """
        self.config = config
        self._token_provider = token_provider or acquire_token
        self._graph_factory = graph_factory or _default_graph_factory
        self._confirm = confirm
        self._now = now

        self._state = WorkflowState.IDLE
        self._stop_requested = False

        # Callbacks
        self._on_batch_submitted: Optional[Callable[[Batch, List[CreatedResource]], None]] = None
        self._on_batch_failed: Optional[Callable[[Batch, Exception], None]] = None
        self._on_resource_deleted: Optional[Callable[[DeletionResult], None]] = None

    @property
    def state(self) -> WorkflowState:
        return self._state

    def _set_state(self, state: WorkflowState) -> None:
        logger.debug("workflow_state", previous=self._state.value, state=state.value)
        self._state = state

    def _should_continue(self) -> bool:
        return not self._stop_requested

    def stop(self) -> None:
        """
        Request the run to stop.

        No new batch or deletion is started afterwards; a call already in
        flight completes or fails on its own.
        """
        self._stop_requested = True
        logger.info("workflow_stopping", state=self._state.value)

    async def run(self) -> RunReport:
        """
        Run the full workflow once.

        Returns:
            Summary of the run

        Raises:
            AuthenticationError: If no token could be acquired
        """
        report = RunReport(requested=self.config.event_count)

        try:
            access_token = await self._token_provider(self.config)
        except AuthenticationError as e:
            self._set_state(WorkflowState.ABORTED)
            logger.error("workflow_aborted", reason="authentication", error=str(e))
            raise
        self._set_state(WorkflowState.TOKEN_ACQUIRED)

        graph = self._graph_factory(self.config, access_token)
        await graph.connect()

        try:
            created = await self.create_events(graph)
            report.batches_submitted = created.batches_submitted
            report.batches_failed = created.batches_failed
            report.created = len(created.resources)

            if self._stop_requested:
                return self._abort(report)
            self._set_state(WorkflowState.ALL_BATCHES_DONE)

            self._set_state(WorkflowState.AWAITING_CONFIRMATION)
            if self._confirm is not None:
                await self._confirm()

            if self._stop_requested:
                return self._abort(report)

            results = await self.remove_events(graph, created.resources)
            report.deletions_attempted = len(results)
            report.deletions_failed = sum(1 for r in results if not r.success)

            if self._stop_requested and len(results) < len(created.resources):
                return self._abort(report)
            self._set_state(WorkflowState.DONE)
        finally:
            await graph.disconnect()

        report.state = self._state
        logger.info("workflow_done", **report.to_dict())
        return report

    def _abort(self, report: RunReport) -> RunReport:
        self._set_state(WorkflowState.ABORTED)
        report.state = self._state
        logger.warning("workflow_aborted", reason="stopped", **report.to_dict())
        return report

    async def create_events(self, graph: GraphInterface) -> CreationResult:
        """
        Build, partition and submit all event-creation requests.

        A batch whose submission fails contributes no resources; the
        remaining batches are still submitted.

        Args:
            graph: Connected API client

        Returns:
            Created resources in batch submission order, plus batch counts
        """
        now = self._now() if self._now else None
        requests = build_requests(self.config.event_count, now=now)
        self._set_state(WorkflowState.REQUESTS_BUILT)

        batches = partition(requests, self.config.batch_size_max)
        self._set_state(WorkflowState.BATCHING)
        logger.info("creating_events", requests=len(requests), batches=len(batches))

        result = CreationResult()

        for batch in batches:
            if self._stop_requested:
                logger.warning("batching_stopped", remaining=len(batches) - batch.index)
                break

            self._set_state(WorkflowState.SUBMITTING)
            try:
                outcome = await graph.submit_batch(batch)
            except TransportError as e:
                result.batches_failed += 1
                logger.error(
                    "batch_submit_failed",
                    batch_index=batch.index,
                    size=batch.size,
                    error=str(e),
                )
                if self._on_batch_failed:
                    self._on_batch_failed(batch, e)
                continue

            result.batches_submitted += 1
            created = collect(outcome)
            result.resources.extend(created)

            logger.info(
                "batch_submitted",
                batch_index=batch.index,
                size=batch.size,
                created=len(created),
            )
            if self._on_batch_submitted:
                self._on_batch_submitted(batch, created)

        return result

    async def remove_events(
        self,
        graph: GraphInterface,
        resources: List[CreatedResource],
    ) -> List[DeletionResult]:
        """
        Delete the given resources one by one.

        Args:
            graph: Connected API client
            resources: Resources returned by create_events

        Returns:
            One result per attempted deletion
        """
        self._set_state(WorkflowState.DELETING)
        logger.info("removing_events", count=len(resources))

        return await cleanup(
            resources,
            graph,
            should_continue=self._should_continue,
            on_result=self._on_resource_deleted,
        )

    # Callback registration

    def on_batch_submitted(self, callback: Callable[[Batch, List[CreatedResource]], None]) -> None:
        """Register callback for successfully submitted batches."""
        self._on_batch_submitted = callback

    def on_batch_failed(self, callback: Callable[[Batch, Exception], None]) -> None:
        """Register callback for batches whose submission failed."""
        self._on_batch_failed = callback

    def on_resource_deleted(self, callback: Callable[[DeletionResult], None]) -> None:
        """Register callback for deletion results."""
        self._on_resource_deleted = callback
