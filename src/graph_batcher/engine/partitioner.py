"""
Request Partitioner - groups requests into batches.

Splits an ordered request sequence into consecutive batches bounded by a
maximum size, preserving order within and across batches.
"""

from typing import List, Sequence

import structlog

from graph_batcher.core.batch import Batch
from graph_batcher.core.request import PendingRequest

logger = structlog.get_logger(__name__)


def partition(requests: Sequence[PendingRequest], max_size: int) -> List[Batch]:
    """
    Partition requests into batches of at most ``max_size``.

    A batch is closed as soon as it has accumulated ``max_size`` requests;
    the remainder forms a final, smaller batch.

    Args:
        requests: Requests in submission order
        max_size: Maximum number of requests per batch

    Returns:
        Batches in order; empty if there are no requests

    Raises:
        ValueError: If max_size is smaller than 1
    """
    if max_size < 1:
        raise ValueError(f"max_size must be >= 1, got {max_size}")

    batches: List[Batch] = []
    group: List[PendingRequest] = []

    for request in requests:
        group.append(request)
        if len(group) == max_size:
            batches.append(Batch(requests=tuple(group), index=len(batches)))
            group = []

    if group:
        batches.append(Batch(requests=tuple(group), index=len(batches)))

    logger.debug(
        "requests_partitioned",
        requests=len(requests),
        batches=len(batches),
        sizes=[b.size for b in batches],
    )
    return batches
