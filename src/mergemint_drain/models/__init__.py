"""Backlog store models."""

from .base import Base
from .evaluation import PrEvaluation
from .pull_request import GithubIdentity, PullRequest, Repository

__all__ = ["Base", "GithubIdentity", "PrEvaluation", "PullRequest", "Repository"]
