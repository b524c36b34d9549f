"""
Graph Batcher

Creates calendar events through the Microsoft Graph JSON batching endpoint,
correlates each batched sub-response with its request, and removes the
created events again once confirmed.
"""

__version__ = "0.1.0"

from graph_batcher.core.workflow import RunReport, Workflow, WorkflowState
from graph_batcher.core.request import CalendarEvent, PendingRequest, build_requests
from graph_batcher.core.batch import Batch

__all__ = [
    "Workflow",
    "WorkflowState",
    "RunReport",
    "CalendarEvent",
    "PendingRequest",
    "build_requests",
    "Batch",
]
