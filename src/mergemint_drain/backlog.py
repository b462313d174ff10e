"""Backlog resolution: pick the next unprocessed work item from a page.

The backlog is never stored. Each invocation derives it as the set
difference between a bounded page of merged pull requests and the ids that
already have an evaluation, then takes the oldest merge first so new
arrivals cannot starve old ones.

Only items inside the page are visible. If more than a page worth of work
exists and the page happens to be fully evaluated, older unprocessed items
outside it are not seen until the window moves.
"""

from collections.abc import Iterable, Sequence
from enum import Enum

from pydantic import BaseModel

from .schemas import WorkItem


class EmptyReason(str, Enum):
    no_items = "no_items"  # the page itself was empty
    all_processed = "all_processed"  # every item in the page has a marker


class BacklogResolution(BaseModel):
    """Outcome of resolving one page: either an item or an empty reason."""

    item: WorkItem | None = None
    empty_reason: EmptyReason | None = None
    unprocessed_count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.item is None

    @property
    def remaining_estimate(self) -> int:
        """Unprocessed items left in the page once the chosen one is done."""
        return max(0, self.unprocessed_count - 1)


def _ordering_key(item: WorkItem):
    return (item.merged_at, item.id)


def resolve_backlog(page: Sequence[WorkItem], processed_ids: Iterable[str]) -> BacklogResolution:
    """Return the oldest unprocessed item in ``page``.

    The result depends only on the arguments, so the same page and marker
    set always resolve to the same item. Ties on merge time fall back to the
    item id.

    Args:
        page: Bounded page of merged work items, in any order
        processed_ids: Ids of items that already have a result marker

    Returns:
        BacklogResolution carrying the chosen item, or the reason it is empty
    """
    if not page:
        return BacklogResolution(empty_reason=EmptyReason.no_items)

    done = set(processed_ids)
    unprocessed = [item for item in page if item.id not in done]

    if not unprocessed:
        return BacklogResolution(empty_reason=EmptyReason.all_processed)

    return BacklogResolution(
        item=min(unprocessed, key=_ordering_key),
        unprocessed_count=len(unprocessed),
    )
