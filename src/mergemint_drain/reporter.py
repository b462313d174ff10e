"""Outcome reporter: map resolution and dispatch results to drain outcomes.

Every invocation ends in exactly one outcome. The five drain outcomes are
no_backlog, queue_drained, processed, dispatch_failed and dispatch_timeout;
infrastructure_error and unauthorized happen before resolution.
"""

from .backlog import BacklogResolution, EmptyReason
from .schemas import DispatchResult, DispatchStatus, DrainOutcome, OutcomeKind, WorkItem

MAX_ERROR_LENGTH = 200


def truncate_error(text: str | None, limit: int = MAX_ERROR_LENGTH) -> str:
    return (text or "")[:limit]


def _pr_ref(item: WorkItem) -> dict:
    return {"number": item.number, "repo": item.repo_full_name}


def report_empty(resolution: BacklogResolution) -> DrainOutcome:
    """Outcome for a resolution that produced no item.

    Raises:
        ValueError: If the resolution actually carries an item
    """
    if resolution.empty_reason is EmptyReason.no_items:
        return DrainOutcome(
            kind=OutcomeKind.no_backlog,
            body={"message": "No merged PRs found", "processed": 0},
        )
    if resolution.empty_reason is EmptyReason.all_processed:
        return DrainOutcome(
            kind=OutcomeKind.queue_drained,
            body={"message": "All PRs are processed", "processed": 0, "queueEmpty": True},
        )
    raise ValueError("Resolution is not empty")


def report_dispatch(
    item: WorkItem,
    result: DispatchResult,
    *,
    remaining_estimate: int = 0,
    timeout_seconds: float = 28,
) -> DrainOutcome:
    """Outcome for a dispatched item."""
    if result.status is DispatchStatus.success:
        return DrainOutcome(
            kind=OutcomeKind.processed,
            item_id=item.id,
            body={
                "message": "PR processed successfully",
                "processed": 1,
                "pr": {**_pr_ref(item), "score": result.score},
                "remainingEstimate": max(0, remaining_estimate),
            },
        )

    if result.status is DispatchStatus.timeout:
        return DrainOutcome(
            kind=OutcomeKind.dispatch_timeout,
            status_code=504,
            item_id=item.id,
            body={
                "message": "PR processing timeout",
                "processed": 0,
                "error": f"Request timed out after {timeout_seconds:g}s",
                "pr": _pr_ref(item),
            },
        )

    # failed (non-2xx) and error (transport) share the outcome; the message
    # tells a rejected request apart from one that never got an answer
    message = "PR processing failed" if result.status is DispatchStatus.failed else "PR processing error"
    return DrainOutcome(
        kind=OutcomeKind.dispatch_failed,
        status_code=500,
        item_id=item.id,
        body={
            "message": message,
            "processed": 0,
            "error": truncate_error(result.error),
            "pr": _pr_ref(item),
        },
    )


def report_infrastructure_error(error: BaseException) -> DrainOutcome:
    return DrainOutcome(
        kind=OutcomeKind.infrastructure_error,
        status_code=500,
        body={"error": str(error) or type(error).__name__},
    )


def report_unauthorized() -> DrainOutcome:
    return DrainOutcome(
        kind=OutcomeKind.unauthorized,
        status_code=401,
        body={"error": "Unauthorized"},
    )
