"""
Calendar API Layer.

Provides batch submission and event deletion against Microsoft Graph.
"""

from graph_batcher.graph.interface import BatchOutcome, GraphInterface, ItemOutcome, TransportError
from graph_batcher.graph.client import GraphClient

__all__ = [
    "BatchOutcome",
    "GraphInterface",
    "ItemOutcome",
    "TransportError",
    "GraphClient",
]
