"""SQLAlchemy access to the pull request backlog.

This module bridges the drain with the hosted store. It handles:
- Reading a bounded page of merged pull requests as WorkItems
- Looking up which of those already carry an evaluation (result marker)
- Appending evaluations with first-write-wins semantics
- Per-organization coverage counts for the status endpoint
- Listing an organization's unevaluated pull requests for the batch drain
"""

import logging
import time
from collections.abc import Collection
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from .models import PrEvaluation, PullRequest
from .schemas import BacklogStatus, WorkItem
from .translator import db_pull_request_to_work_item, work_item_to_listing

logger = logging.getLogger(__name__)

WINDOWS = ("oldest", "newest")


class BacklogRepository:
    """Backlog store backed by the pull_requests and pr_evaluations tables.

    Example:
        session_factory = create_session_factory(engine)
        repository = BacklogRepository(session_factory)

        page = repository.fetch_page(100)
        processed = repository.fetch_processed_ids([item.id for item in page])
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        """Initialize repository with a session factory.

        Args:
            session_factory: SQLAlchemy session factory (sessionmaker)
        """
        self.session_factory: sessionmaker[Session] = session_factory

    def fetch_page(
        self,
        limit: int,
        *,
        window: str = "oldest",
    ) -> list[WorkItem]:
        """Fetch a bounded page of merged pull requests.

        Args:
            limit: Maximum number of rows in the page
            window: "oldest" takes the earliest merges, "newest" the latest

        Returns:
            WorkItems ordered by merge time in the direction of the window

        Raises:
            ValueError: If window is not one of "oldest" or "newest"
        """
        if window not in WINDOWS:
            raise ValueError(f"Unknown backlog window: {window!r}")

        merged_at = PullRequest.merged_at_gh
        order = merged_at.asc() if window == "oldest" else merged_at.desc()

        stmt = (
            select(PullRequest)
            .where(merged_at.is_not(None))
            .order_by(order, PullRequest.id)
            .limit(limit)
        )

        with self.session_factory() as session:
            rows = session.execute(stmt).unique().scalars().all()
            return [db_pull_request_to_work_item(row) for row in rows]

    def fetch_processed_ids(self, item_ids: Collection[str]) -> set[str]:
        """Return the subset of ``item_ids`` that already have an evaluation."""
        if not item_ids:
            return set()

        with self.session_factory() as session:
            stmt = select(PrEvaluation.pr_id).where(PrEvaluation.pr_id.in_(list(item_ids)))
            return set(session.execute(stmt).scalars().all())

    def record_evaluation(
        self,
        pr_id: str,
        org_id: str,
        final_score: float | None,
        result: dict[str, Any] | None = None,
    ) -> bool:
        """Append the evaluation marker for a pull request.

        The first write wins: if an evaluation already exists for ``pr_id``
        the stored row is left untouched.

        Args:
            pr_id: Pull request row identifier
            org_id: Owning organization
            final_score: Score produced by the evaluation
            result: Full evaluation payload

        Returns:
            True if the marker was written, False if one already existed
        """
        with self.session_factory() as session:
            session.add(
                PrEvaluation(
                    pr_id=pr_id,
                    org_id=org_id,
                    final_score=final_score,
                    result=result,
                    created_at=int(time.time() * 1000),
                )
            )
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                logger.info(f"Evaluation for {pr_id} already recorded, keeping the first one")
                return False
            return True

    def fetch_unprocessed(
        self,
        org_id: str,
        *,
        repo_id: str | None = None,
        limit: int = 50,
    ) -> list[WorkItem]:
        """Fetch an organization's unevaluated merged pull requests, newest merge first.

        Args:
            org_id: Owning organization
            repo_id: Optional repository filter
            limit: Maximum number of pull requests returned

        Returns:
            Up to ``limit`` WorkItems without an evaluation
        """
        evaluated = select(PrEvaluation.id).where(PrEvaluation.pr_id == PullRequest.id)
        stmt = _merged_in(org_id, repo_id).where(~evaluated.exists()).limit(limit)

        with self.session_factory() as session:
            rows = session.execute(stmt).unique().scalars().all()
            return [db_pull_request_to_work_item(row) for row in rows]

    def backlog_status(
        self,
        org_id: str,
        *,
        repo_id: str | None = None,
        include_list: bool = False,
    ) -> BacklogStatus:
        """Count merged, evaluated and unprocessed pull requests for an org.

        Unlike the drain page this scans every merged pull request of the
        organization, newest merge first. Without a repository filter the
        evaluated count covers every evaluation of the organization; with one
        it covers only that repository's merged pull requests.
        """
        with self.session_factory() as session:
            rows = session.execute(_merged_in(org_id, repo_id)).unique().scalars().all()

            evaluated_ids = set(
                session.execute(
                    select(PrEvaluation.pr_id).where(PrEvaluation.org_id == org_id)
                ).scalars().all()
            )

            unprocessed = [
                db_pull_request_to_work_item(row) for row in rows if row.id not in evaluated_ids
            ]

        if repo_id is None:
            evaluated_prs = len(evaluated_ids)
        else:
            evaluated_prs = len(rows) - len(unprocessed)

        return BacklogStatus(
            total_prs=len(rows),
            evaluated_prs=evaluated_prs,
            unprocessed_prs=len(unprocessed),
            items=[work_item_to_listing(item) for item in unprocessed] if include_list else None,
        )


def _merged_in(org_id: str, repo_id: str | None) -> Select[tuple[PullRequest]]:
    stmt = select(PullRequest).where(
        PullRequest.org_id == org_id,
        PullRequest.merged_at_gh.is_not(None),
    )
    if repo_id is not None:
        stmt = stmt.where(PullRequest.repo_id == repo_id)
    return stmt.order_by(PullRequest.merged_at_gh.desc(), PullRequest.id)
