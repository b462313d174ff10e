"""Drain trigger: process at most one unevaluated pull request per call.

Each call is independent. It reads a fresh page of merged pull requests and
their evaluation markers, picks the oldest unprocessed one, dispatches it
once under a deadline and reports a single outcome. Nothing is kept between
calls, so a failed or timed-out item is simply picked again by the next
timer tick because no marker was written for it.

Concurrent calls are not serialized. Two overlapping calls can resolve the
same item and both dispatch it; the store keeps the first evaluation.
"""

import asyncio
import logging
import time
from collections.abc import Collection
from typing import Protocol

from .backlog import resolve_backlog
from .config import Config
from .database import create_db_engine, create_session_factory
from .dispatcher import WorkDispatcher
from .mqtt import OutcomePublisher, open_outcome_publisher
from .reporter import report_dispatch, report_empty, report_infrastructure_error
from .repository import WINDOWS, BacklogRepository
from .schemas import DispatchResult, DispatchStatus, DrainOutcome, WorkItem

logger = logging.getLogger(__name__)


class BacklogFetchError(Exception):
    """Reading the backlog page or its markers failed."""


class BacklogSource(Protocol):
    def fetch_page(self, limit: int, *, window: str = "oldest") -> list[WorkItem]: ...

    def fetch_processed_ids(self, item_ids: Collection[str]) -> set[str]: ...


class Dispatcher(Protocol):
    timeout_seconds: float

    async def dispatch(
        self,
        item: WorkItem,
        *,
        post_comment: bool = True,
        timeout_seconds: float | None = None,
    ) -> DispatchResult: ...


class DrainTrigger:
    """Composes backlog resolution, dispatch and outcome reporting.

    Example:
        trigger = create_drain_trigger()
        outcome = await trigger.run(post_comment=False)
        print(outcome.status_code, outcome.body)
    """

    def __init__(
        self,
        repository: BacklogSource,
        dispatcher: Dispatcher,
        publisher: OutcomePublisher | None = None,
        *,
        page_size: int = 100,
        window: str = "oldest",
        fetch_timeout_seconds: float = 10.0,
        trigger_budget_seconds: float = 30.0,
        budget_margin_seconds: float = 0.5,
    ):
        """
        Args:
            repository: Source of work item pages and evaluation markers
            dispatcher: Deadline-bounded evaluation caller
            publisher: Optional sink that publishes each outcome as an event
            page_size: Number of merged pull requests considered per call
            window: "oldest" or "newest" merges form the visible page
            fetch_timeout_seconds: Bound on the store reads
            trigger_budget_seconds: Time the host allows a whole invocation
            budget_margin_seconds: Part of the budget kept back for reporting
                after the dispatch returns

        The fetch and the dispatch share the budget: the dispatch gets
        whatever the fetch left over, capped at the dispatcher's own
        deadline.

        Raises:
            ValueError: If the dispatch deadline does not fit in the budget
        """
        if dispatcher.timeout_seconds >= trigger_budget_seconds:
            raise ValueError(
                f"Dispatch timeout ({dispatcher.timeout_seconds:g}s) must be shorter than "
                f"the trigger budget ({trigger_budget_seconds:g}s)"
            )
        if not 0 <= budget_margin_seconds < trigger_budget_seconds:
            raise ValueError("budget_margin_seconds must be in [0, trigger_budget_seconds)")
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        if window not in WINDOWS:
            raise ValueError(f"Unknown backlog window: {window!r}")

        self.repository: BacklogSource = repository
        self.dispatcher: Dispatcher = dispatcher
        self.publisher: OutcomePublisher | None = publisher
        self.page_size: int = page_size
        self.window: str = window
        self.fetch_timeout_seconds: float = fetch_timeout_seconds
        self.trigger_budget_seconds: float = trigger_budget_seconds
        self.budget_margin_seconds: float = budget_margin_seconds

    @property
    def usable_budget_seconds(self) -> float:
        return self.trigger_budget_seconds - self.budget_margin_seconds

    def _read_backlog(self) -> tuple[list[WorkItem], set[str]]:
        page = self.repository.fetch_page(self.page_size, window=self.window)
        if not page:
            return page, set()
        return page, self.repository.fetch_processed_ids([item.id for item in page])

    async def _fetch(self) -> tuple[list[WorkItem], set[str]]:
        """Read the page and its markers in a worker thread.

        Raises:
            BacklogFetchError: On any store failure or when the reads exceed
                fetch_timeout_seconds (or the usable budget, if smaller)
        """
        fetch_timeout = min(self.fetch_timeout_seconds, self.usable_budget_seconds)
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._read_backlog),
                timeout=fetch_timeout,
            )
        except asyncio.TimeoutError as e:
            raise BacklogFetchError(f"Backlog fetch timed out after {fetch_timeout:g}s") from e
        except Exception as e:
            raise BacklogFetchError(str(e) or type(e).__name__) from e

    async def run(self, *, post_comment: bool = True) -> DrainOutcome:
        """Perform one drain invocation.

        Args:
            post_comment: Forwarded to the evaluation endpoint

        Returns:
            The single outcome of this invocation
        """
        started = time.monotonic()
        logger.info("Looking for unprocessed PRs...")

        try:
            page, processed_ids = await self._fetch()
        except BacklogFetchError as e:
            logger.exception(f"Failed to fetch PRs: {e}")
            return self._finish(report_infrastructure_error(e))

        resolution = resolve_backlog(page, processed_ids)
        if resolution.item is None:
            return self._finish(report_empty(resolution))

        item = resolution.item
        logger.info(f"Processing PR {item.label} ({resolution.unprocessed_count} unprocessed in page)")

        remaining = self.usable_budget_seconds - (time.monotonic() - started)
        deadline = round(min(self.dispatcher.timeout_seconds, remaining), 3)
        if deadline <= 0:
            logger.warning(f"No budget left to dispatch {item.label}")
            result = DispatchResult(status=DispatchStatus.timeout)
            deadline = 0
        else:
            if deadline < self.dispatcher.timeout_seconds:
                logger.info(f"Dispatch deadline shortened to {deadline:g}s by the trigger budget")
            result = await self.dispatcher.dispatch(
                item, post_comment=post_comment, timeout_seconds=deadline
            )

        outcome = report_dispatch(
            item,
            result,
            remaining_estimate=resolution.remaining_estimate,
            timeout_seconds=deadline,
        )
        return self._finish(outcome)

    def _finish(self, outcome: DrainOutcome) -> DrainOutcome:
        message = outcome.body.get("message") or outcome.body.get("error")
        if outcome.ok:
            logger.info(f"{outcome.kind.value}: {message}")
        else:
            logger.warning(f"{outcome.kind.value} ({outcome.status_code}): {message}")

        if self.publisher:
            try:
                _ = self.publisher.publish_outcome(outcome)
            except Exception as e:
                logger.warning(f"Failed to publish drain outcome: {e}")

        return outcome


def create_drain_trigger() -> DrainTrigger:
    """Build a DrainTrigger wired from Config."""
    engine = create_db_engine(Config.DATABASE_URL)
    repository = BacklogRepository(create_session_factory(engine))
    dispatcher = WorkDispatcher(Config.SITE_URL, timeout_seconds=Config.DISPATCH_TIMEOUT_SECONDS)
    publisher = open_outcome_publisher(
        broadcast_type=Config.BROADCAST_TYPE,
        broker=Config.MQTT_BROKER,
        port=Config.MQTT_PORT,
        topic=Config.MQTT_TOPIC,
    )
    return DrainTrigger(
        repository,
        dispatcher,
        publisher,
        page_size=Config.BACKLOG_PAGE_SIZE,
        window=Config.BACKLOG_WINDOW,
        fetch_timeout_seconds=Config.FETCH_TIMEOUT_SECONDS,
        trigger_budget_seconds=Config.TRIGGER_BUDGET_SECONDS,
        budget_margin_seconds=Config.BUDGET_MARGIN_SECONDS,
    )
