"""Shared test fixtures for mergemint_drain tests."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Collection
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from mergemint_drain import BacklogRepository, DispatchResult, DispatchStatus, DrainOutcome, WorkItem
from mergemint_drain.models import Base, GithubIdentity, PullRequest, Repository

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

    from sqlalchemy.engine import Engine


BASE_TIME = datetime(2025, 1, 1, 12, 0, 0)


# ============================================================================
# Helpers
# ============================================================================


def make_item(number: int, minutes: int = 0, *, item_id: str | None = None, **overrides) -> WorkItem:
    """Build a WorkItem merged ``minutes`` after BASE_TIME."""
    fields = {
        "id": item_id or f"pr-{number}",
        "org_id": "org-1",
        "repo_id": "repo-1",
        "merged_at": BASE_TIME + timedelta(minutes=minutes),
        "number": number,
        "github_pr_id": 1000 + number,
        "repo_full_name": "acme/api",
        "title": f"PR {number}",
    }
    fields.update(overrides)
    return WorkItem(**fields)


class FakeBacklog:
    """In-memory backlog source.

    ``processed`` is mutable so tests can play the evaluation side.
    """

    def __init__(self, items: list[WorkItem], processed: Collection[str] = (), delay: float = 0.0):
        self.items = list(items)
        self.processed = set(processed)
        self.delay = delay
        self.page_calls = 0

    def fetch_page(self, limit: int, *, window: str = "oldest") -> list[WorkItem]:
        self.page_calls += 1
        if self.delay:
            time.sleep(self.delay)
        ordered = sorted(self.items, key=lambda i: i.merged_at, reverse=window == "newest")
        return ordered[:limit]

    def fetch_processed_ids(self, item_ids: Collection[str]) -> set[str]:
        return {item_id for item_id in item_ids if item_id in self.processed}


class BrokenBacklog(FakeBacklog):
    def __init__(self, message: str = "connection to store refused"):
        super().__init__([])
        self.message = message

    def fetch_page(self, limit: int, *, window: str = "oldest") -> list[WorkItem]:
        raise RuntimeError(self.message)


class FakeDispatcher:
    """Records dispatch calls and returns a canned result."""

    def __init__(
        self,
        result: DispatchResult | None = None,
        *,
        delay: float = 0.0,
        timeout_seconds: float = 28.0,
        on_dispatch: Callable[[WorkItem], None] | None = None,
    ):
        self.result = result or DispatchResult(status=DispatchStatus.success, score=42)
        self.delay = delay
        self.timeout_seconds = timeout_seconds
        self.on_dispatch = on_dispatch
        self.calls: list[tuple[str, bool]] = []
        self.deadlines: list[float] = []

    async def dispatch(
        self,
        item: WorkItem,
        *,
        post_comment: bool = True,
        timeout_seconds: float | None = None,
    ) -> DispatchResult:
        deadline = self.timeout_seconds if timeout_seconds is None else timeout_seconds
        self.calls.append((item.id, post_comment))
        self.deadlines.append(deadline)
        if self.delay > deadline:
            await asyncio.sleep(deadline)
            return DispatchResult(status=DispatchStatus.timeout)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.on_dispatch:
            self.on_dispatch(item)
        return self.result


class RecordingPublisher:
    def __init__(self):
        self.outcomes: list[DrainOutcome] = []

    def publish_outcome(self, outcome: DrainOutcome) -> bool:
        self.outcomes.append(outcome)
        return True


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def in_memory_engine() -> Generator[Engine, None, None]:
    """Create SQLite in-memory engine with all tables created.

    StaticPool keeps a single connection so reads from worker threads see
    the same database.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(in_memory_engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(autocommit=False, autoflush=False, bind=in_memory_engine)


@pytest.fixture
def backlog_repository(session_factory: sessionmaker[Session]) -> BacklogRepository:
    return BacklogRepository(session_factory)


@pytest.fixture
def seed_pr(session_factory: sessionmaker[Session]) -> Callable[..., str]:
    """Insert a pull request row (and its repository/author) and return its id."""

    def _seed(
        number: int,
        minutes: int | None = 0,
        *,
        org_id: str = "org-1",
        repo_id: str = "repo-1",
        repo_name: str = "acme/api",
        author: str | None = "octocat",
    ) -> str:
        pr_id = f"{repo_id}-pr-{number}"
        with session_factory() as session:
            if session.get(Repository, repo_id) is None:
                session.add(Repository(id=repo_id, org_id=org_id, full_name=repo_name))
            author_id = None
            if author is not None:
                author_id = f"gh-{author}"
                if session.get(GithubIdentity, author_id) is None:
                    session.add(
                        GithubIdentity(
                            id=author_id,
                            github_user_id=583231,
                            github_login=author,
                            avatar_url=f"https://avatars.example/{author}.png",
                        )
                    )
            session.add(
                PullRequest(
                    id=pr_id,
                    org_id=org_id,
                    repo_id=repo_id,
                    github_pr_id=9000 + number,
                    number=number,
                    title=f"Fix bug {number}",
                    body="Details",
                    github_author_id=author_id,
                    merged_at_gh=None if minutes is None else BASE_TIME + timedelta(minutes=minutes),
                    created_at_gh=BASE_TIME - timedelta(days=1),
                    additions=10,
                    deletions=2,
                    changed_files_count=3,
                    head_sha="a" * 40,
                    base_sha="b" * 40,
                    url=f"https://github.com/{repo_name}/pull/{number}",
                )
            )
            session.commit()
        return pr_id

    return _seed
