"""
Batching Engine.

Partitions requests into batches, collects per-item outcomes and drives cleanup.
"""

from graph_batcher.engine.partitioner import partition
from graph_batcher.engine.collector import CreatedResource, ItemError, collect
from graph_batcher.engine.cleanup import DeletionResult, cleanup

__all__ = [
    "partition",
    "CreatedResource",
    "ItemError",
    "collect",
    "DeletionResult",
    "cleanup",
]
