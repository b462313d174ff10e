"""Conversions between store rows and drain schemas."""

from .models import PullRequest
from .schemas import DispatchPayload, UnprocessedPullRequest, WorkItem


def db_pull_request_to_work_item(db_pr: PullRequest) -> WorkItem:
    """Convert a merged SQLAlchemy PullRequest to a WorkItem.

    Raises:
        ValueError: If the pull request has not been merged
    """
    if db_pr.merged_at_gh is None:
        raise ValueError(f"Pull request {db_pr.id} is not merged")

    repo = db_pr.repository
    author = db_pr.author

    return WorkItem(
        id=db_pr.id,
        org_id=db_pr.org_id,
        repo_id=db_pr.repo_id,
        merged_at=db_pr.merged_at_gh,
        number=db_pr.number,
        github_pr_id=db_pr.github_pr_id,
        repo_full_name=repo.full_name if repo else None,
        title=db_pr.title,
        body=db_pr.body,
        author_login=author.github_login if author else None,
        author_id=author.github_user_id if author else None,
        author_avatar_url=author.avatar_url if author else None,
        created_at=db_pr.created_at_gh,
        additions=db_pr.additions,
        deletions=db_pr.deletions,
        changed_files=db_pr.changed_files_count,
        head_sha=db_pr.head_sha,
        base_sha=db_pr.base_sha,
        url=db_pr.url,
    )


def work_item_to_payload(item: WorkItem, *, post_comment: bool = True) -> DispatchPayload:
    return DispatchPayload(
        org_id=item.org_id,
        repo_id=item.repo_id,
        repo_full_name=item.repo_full_name,
        pr_number=item.number,
        pr_id=item.github_pr_id,
        pr_title=item.title,
        pr_body=item.body,
        pr_author=item.author_login,
        pr_author_id=item.author_id,
        pr_author_avatar=item.author_avatar_url,
        pr_url=item.url,
        merged_at=item.merged_at,
        created_at=item.created_at,
        additions=item.additions,
        deletions=item.deletions,
        changed_files=item.changed_files,
        head_sha=item.head_sha,
        base_sha=item.base_sha,
        post_comment=post_comment,
    )


def work_item_to_listing(item: WorkItem) -> UnprocessedPullRequest:
    return UnprocessedPullRequest(
        id=item.id,
        repo_id=item.repo_id,
        repo_full_name=item.repo_full_name,
        pr_number=item.number,
        pr_id=item.github_pr_id,
        pr_title=item.title,
        pr_body=item.body,
        pr_author=item.author_login,
        pr_author_id=item.author_id,
        pr_author_avatar=item.author_avatar_url,
        pr_url=item.url,
        merged_at=item.merged_at,
        created_at=item.created_at,
        additions=item.additions,
        deletions=item.deletions,
        changed_files=item.changed_files,
        head_sha=item.head_sha,
        base_sha=item.base_sha,
    )
