"""
Core workflow components.

This module contains the request and batch models. The orchestrator lives in
graph_batcher.core.workflow.
"""

from graph_batcher.core.request import CalendarEvent, PendingRequest, build_requests
from graph_batcher.core.batch import Batch

__all__ = [
    "CalendarEvent",
    "PendingRequest",
    "build_requests",
    "Batch",
]
