"""Pull request models written by the GitHub ingestion side.

The drain only reads these tables; rows are created by webhook and backfill
ingestion and are never mutated or deleted here.
"""

from datetime import datetime
from typing_extensions import override

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class Repository(Base):
    """GitHub repository connected to an organization."""

    __tablename__ = "repositories"  # pyright: ignore[reportUnannotatedClassAttribute]

    id: Mapped[str] = mapped_column(String, primary_key=True)
    org_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String, nullable=False)

    @override
    def __repr__(self) -> str:
        return f"<Repository(full_name={self.full_name}, org_id={self.org_id})>"


class GithubIdentity(Base):
    """GitHub account that authored pull requests."""

    __tablename__ = "github_identities"  # pyright: ignore[reportUnannotatedClassAttribute]

    id: Mapped[str] = mapped_column(String, primary_key=True)
    github_user_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    github_login: Mapped[str] = mapped_column(String, nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(String, nullable=True)

    @override
    def __repr__(self) -> str:
        return f"<GithubIdentity(github_login={self.github_login})>"


class PullRequest(Base):
    """Pull request row. Merged rows (merged_at_gh set) form the work items.

    merged_at_gh is the ordering key for the drain: oldest merge first.
    """

    __tablename__ = "pull_requests"  # pyright: ignore[reportUnannotatedClassAttribute]

    id: Mapped[str] = mapped_column(String, primary_key=True)
    org_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    repo_id: Mapped[str] = mapped_column(ForeignKey("repositories.id"), nullable=False, index=True)
    github_pr_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    number: Mapped[int] = mapped_column(Integer, nullable=False)

    title: Mapped[str] = mapped_column(String, nullable=False, default="")
    body: Mapped[str | None] = mapped_column(Text, nullable=True)

    github_author_id: Mapped[str | None] = mapped_column(
        ForeignKey("github_identities.id"), nullable=True
    )

    merged_at_gh: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    created_at_gh: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    additions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    deletions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    changed_files_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    head_sha: Mapped[str | None] = mapped_column(String, nullable=True)
    base_sha: Mapped[str | None] = mapped_column(String, nullable=True)
    url: Mapped[str | None] = mapped_column(String, nullable=True)

    repository: Mapped[Repository | None] = relationship(lazy="joined")
    author: Mapped[GithubIdentity | None] = relationship(lazy="joined")

    @override
    def __repr__(self) -> str:
        return f"<PullRequest(id={self.id}, number={self.number}, merged_at_gh={self.merged_at_gh})>"
