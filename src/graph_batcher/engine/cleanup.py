"""
Cleanup Driver - deletes created resources one at a time.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import structlog

from graph_batcher.engine.collector import CreatedResource
from graph_batcher.graph.interface import GraphInterface, TransportError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DeletionResult:
    """Result of deleting one resource."""
    resource_id: str
    success: bool
    error: Optional[str] = None


async def cleanup(
    resources: Sequence[CreatedResource],
    graph: GraphInterface,
    should_continue: Optional[Callable[[], bool]] = None,
    on_result: Optional[Callable[[DeletionResult], None]] = None,
) -> List[DeletionResult]:
    """
    Delete resources sequentially, in the given order.

    A failed deletion is recorded and the remaining deletions still run.

    Args:
        resources: Resources to delete
        graph: API used for the deletions
        should_continue: Checked before each deletion; a false result stops
            before the next deletion is started
        on_result: Called with each result as soon as it is known

    Returns:
        One result per attempted deletion, in order
    """
    results = []

    for position, resource in enumerate(resources, start=1):
        if should_continue is not None and not should_continue():
            logger.warning(
                "cleanup_stopped",
                attempted=len(results),
                remaining=len(resources) - len(results),
            )
            break

        try:
            await graph.delete_event(resource.id)
        except TransportError as e:
            logger.error("event_delete_error", event_id=resource.id, error=str(e))
            result = DeletionResult(resource.id, success=False, error=str(e))
        else:
            logger.info("event_deleted", event_id=resource.id, position=position, total=len(resources))
            result = DeletionResult(resource.id, success=True)

        results.append(result)
        if on_result is not None:
            on_result(result)

    return results
