"""Batch drain: evaluate many unprocessed pull requests of one organization.

Unlike the cron trigger this walks a whole list in one call. Pull requests are
taken newest merge first and sent one after another to the process-pr endpoint
with comments disabled, pausing between calls so the evaluator is not flooded.
A failure on one pull request is recorded and the walk continues.
"""

import asyncio
import logging
from typing import Protocol

from .config import Config
from .drain import Dispatcher, create_drain_trigger
from .reporter import truncate_error
from .schemas import BatchItemResult, BatchReport, DispatchResult, DispatchStatus, WorkItem

logger = logging.getLogger(__name__)


class UnprocessedSource(Protocol):
    def fetch_unprocessed(
        self, org_id: str, *, repo_id: str | None = None, limit: int = 50
    ) -> list[WorkItem]: ...


class BatchDrain:
    """Dispatches up to ``limit`` unprocessed pull requests of an organization.

    Example:
        batch = create_batch_drain()
        report = await batch.run("org-1", limit=10)
        print(report.to_response())
    """

    def __init__(
        self,
        repository: UnprocessedSource,
        dispatcher: Dispatcher,
        *,
        delay_seconds: float = 0.3,
    ):
        if delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")

        self.repository: UnprocessedSource = repository
        self.dispatcher: Dispatcher = dispatcher
        self.delay_seconds: float = delay_seconds

    async def run(self, org_id: str, *, repo_id: str | None = None, limit: int = 50) -> BatchReport:
        """Process the organization's unprocessed pull requests.

        Args:
            org_id: Organization to drain
            repo_id: Optional repository filter
            limit: Maximum number of pull requests dispatched

        Returns:
            BatchReport with one detail line per pull request

        Raises:
            ValueError: If limit is not positive
        """
        if limit < 1:
            raise ValueError("limit must be at least 1")

        items = await asyncio.to_thread(
            self.repository.fetch_unprocessed, org_id, repo_id=repo_id, limit=limit
        )
        report = BatchReport(total=len(items))
        if not items:
            logger.info(f"No unprocessed PRs for org {org_id}")
            return report

        logger.info(f"Processing {len(items)} unprocessed PRs for org {org_id}")

        for index, item in enumerate(items):
            if index:
                await asyncio.sleep(self.delay_seconds)

            detail = await self._process(item)
            report.details.append(detail)
            if detail.status == "processed":
                report.processed += 1
            else:
                report.errors += 1

        logger.info(
            f"Batch for org {org_id} done: {report.processed} processed, {report.errors} errors"
        )
        return report

    async def _process(self, item: WorkItem) -> BatchItemResult:
        if not item.repo_full_name:
            logger.warning(f"Skipping PR {item.id}: repository name is unknown")
            return BatchItemResult(pr_number=item.number, status="error", error="Missing repo name")

        result = await self.dispatcher.dispatch(item, post_comment=False)
        if result.status is DispatchStatus.success:
            return BatchItemResult(pr_number=item.number, status="processed")

        error = self._error_message(result)
        logger.warning(f"PR {item.label} failed in batch: {error}")
        return BatchItemResult(pr_number=item.number, status="error", error=error)

    def _error_message(self, result: DispatchResult) -> str:
        if result.status is DispatchStatus.timeout:
            return f"Request timed out after {self.dispatcher.timeout_seconds:g}s"
        return truncate_error(result.error) or "Unknown error"


def create_batch_drain() -> BatchDrain:
    """Build a BatchDrain sharing the store and dispatcher of the cron trigger."""
    trigger = create_drain_trigger()
    return BatchDrain(
        trigger.repository,
        trigger.dispatcher,
        delay_seconds=Config.BATCH_DELAY_SECONDS,
    )
