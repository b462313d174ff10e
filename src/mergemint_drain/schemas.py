"""
Pydantic schemas shared by the backlog store, dispatcher and HTTP surface.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WorkItem(BaseModel):
    """A merged pull request awaiting evaluation (immutable)."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Pull request row identifier")
    org_id: str = Field(..., description="Owning organization")
    repo_id: str
    merged_at: datetime = Field(..., description="Merge time, the FIFO ordering key")

    number: int
    github_pr_id: int
    repo_full_name: str | None = None
    title: str = ""
    body: str | None = None
    author_login: str | None = None
    author_id: int | None = None
    author_avatar_url: str | None = None
    created_at: datetime | None = None
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0
    head_sha: str | None = None
    base_sha: str | None = None
    url: str | None = None

    @property
    def label(self) -> str:
        return f"{self.repo_full_name}#{self.number}"


class DispatchPayload(BaseModel):
    """JSON body accepted by the process-pr evaluation endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    org_id: str = Field(..., alias="orgId")
    repo_id: str = Field(..., alias="repoId")
    repo_full_name: str | None = Field(None, alias="repoFullName")
    pr_number: int = Field(..., alias="prNumber")
    pr_id: int = Field(..., alias="prId")
    pr_title: str = Field("", alias="prTitle")
    pr_body: str | None = Field(None, alias="prBody")
    pr_author: str | None = Field(None, alias="prAuthor")
    pr_author_id: int | None = Field(None, alias="prAuthorId")
    pr_author_avatar: str | None = Field(None, alias="prAuthorAvatar")
    pr_url: str | None = Field(None, alias="prUrl")
    merged_at: datetime | None = Field(None, alias="mergedAt")
    created_at: datetime | None = Field(None, alias="createdAt")
    additions: int = 0
    deletions: int = 0
    changed_files: int = Field(0, alias="changedFiles")
    head_sha: str | None = Field(None, alias="headSha")
    base_sha: str | None = Field(None, alias="baseSha")
    post_comment: bool = Field(True, alias="postComment")


class DispatchStatus(str, Enum):
    success = "success"
    failed = "failed"  # processor answered with a non-2xx status
    error = "error"  # transport error or unreadable response
    timeout = "timeout"


class DispatchResult(BaseModel):
    """What a single dispatch attempt produced."""

    status: DispatchStatus
    score: float | None = None
    status_code: int | None = None
    error: str | None = None


class OutcomeKind(str, Enum):
    no_backlog = "no_backlog"
    queue_drained = "queue_drained"
    processed = "processed"
    dispatch_failed = "dispatch_failed"
    dispatch_timeout = "dispatch_timeout"
    # Outside the drain taxonomy: raised before or instead of resolution
    infrastructure_error = "infrastructure_error"
    unauthorized = "unauthorized"


class DrainOutcome(BaseModel):
    """Result of one drain invocation, ready to be rendered as a response."""

    kind: OutcomeKind
    status_code: int = 200
    body: dict[str, Any] = Field(default_factory=dict)
    item_id: str | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class UnprocessedPullRequest(BaseModel):
    """Listing entry for an unevaluated pull request."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    repo_id: str = Field(..., alias="repoId")
    repo_full_name: str | None = Field(None, alias="repoFullName")
    pr_number: int = Field(..., alias="prNumber")
    pr_id: int = Field(..., alias="prId")
    pr_title: str = Field("", alias="prTitle")
    pr_body: str | None = Field(None, alias="prBody")
    pr_author: str | None = Field(None, alias="prAuthor")
    pr_author_id: int | None = Field(None, alias="prAuthorId")
    pr_author_avatar: str | None = Field(None, alias="prAuthorAvatar")
    pr_url: str | None = Field(None, alias="prUrl")
    merged_at: datetime | None = Field(None, alias="mergedAt")
    created_at: datetime | None = Field(None, alias="createdAt")
    additions: int = 0
    deletions: int = 0
    changed_files: int = Field(0, alias="changedFiles")
    head_sha: str | None = Field(None, alias="headSha")
    base_sha: str | None = Field(None, alias="baseSha")


class BacklogStatus(BaseModel):
    """Per-organization evaluation coverage."""

    model_config = ConfigDict(populate_by_name=True)

    total_prs: int = Field(..., alias="totalPRs")
    evaluated_prs: int = Field(..., alias="evaluatedPRs")
    unprocessed_prs: int = Field(..., alias="unprocessedPRs")
    items: list[UnprocessedPullRequest] | None = Field(None, alias="list")

    def to_response(self) -> dict[str, Any]:
        """camelCase JSON body; "list" only appears when it was requested."""
        content = self.model_dump(mode="json", by_alias=True)
        if content.get("list") is None:
            content.pop("list", None)
        return content


class BatchItemResult(BaseModel):
    """Per pull request line of a batch drain report."""

    model_config = ConfigDict(populate_by_name=True)

    pr_number: int = Field(..., alias="prNumber")
    status: str = Field(..., description="processed or error")
    error: str | None = None


class BatchReport(BaseModel):
    """Summary of a batch drain over an organization's unprocessed PRs."""

    model_config = ConfigDict(populate_by_name=True)

    total: int = 0
    processed: int = 0
    errors: int = 0
    details: list[BatchItemResult] = Field(default_factory=list)

    def to_response(self) -> dict[str, Any]:
        if self.total == 0:
            return {
                "message": "No unprocessed PRs found",
                "results": {"total": 0, "processed": 0, "errors": 0},
            }
        return {
            "message": "Processing completed",
            "results": self.model_dump(mode="json", by_alias=True, exclude_none=True),
        }
