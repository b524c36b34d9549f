"""
Outcome Collector - turns per-item batch outcomes into created resources.

Items that did not succeed, or whose body carries no identifier, are logged
and skipped; they never fail the run.
"""

import json
from dataclasses import dataclass
from typing import List, Tuple

import structlog

from graph_batcher.graph.interface import BatchOutcome, ItemOutcome

logger = structlog.get_logger(__name__)

BODY_PREVIEW_LENGTH = 255


@dataclass(frozen=True)
class CreatedResource:
    """An event created by a batch sub-request."""
    id: str
    tag: str


class ItemError(Exception):
    """Raised for a batch item whose outcome does not describe a created resource."""

    def __init__(self, tag: str, status_code: int, reason: str):
        super().__init__(f"Item {tag} (status {status_code}): {reason}")
        self.tag = tag
        self.status_code = status_code
        self.reason = reason


def _tag_sort_key(tag: str) -> Tuple[int, int, str]:
    """Numeric tags first in numeric order, then the rest lexicographically."""
    if tag.isdecimal():
        return (0, int(tag), "")
    return (1, 0, tag)


def _body_preview(body) -> str:
    if body is None:
        return ""
    text = body if isinstance(body, str) else json.dumps(body)
    return text[:BODY_PREVIEW_LENGTH]


def _extract_resource(tag: str, item: ItemOutcome) -> CreatedResource:
    """
    Extract the created resource from one item outcome.

    Raises:
        ItemError: If the item failed or has no usable identifier
    """
    if not item.is_success:
        raise ItemError(tag, item.status_code, "non-success status")

    body = item.body
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except ValueError:
            raise ItemError(tag, item.status_code, "body is not JSON")

    if not isinstance(body, dict):
        raise ItemError(tag, item.status_code, "body is not an object")

    resource_id = body.get("id")
    if not isinstance(resource_id, str) or not resource_id:
        raise ItemError(tag, item.status_code, "body has no id")

    return CreatedResource(id=resource_id, tag=tag)


def collect(outcome: BatchOutcome) -> List[CreatedResource]:
    """
    Collect created resources from one batch outcome.

    Args:
        outcome: Per-tag outcomes of a submitted batch

    Returns:
        Created resources ordered by tag
    """
    resources = []

    for tag in sorted(outcome, key=_tag_sort_key):
        item = outcome[tag]
        logger.info(
            "item_response",
            tag=tag,
            status=item.status_code,
            body=_body_preview(item.body),
        )

        try:
            resources.append(_extract_resource(tag, item))
        except ItemError as e:
            logger.warning(
                "item_failed",
                tag=e.tag,
                status=e.status_code,
                reason=e.reason,
            )

    return resources
