"""Command line entry point for the drain service.

Usage:
    mergemint-drain once [--no-comment]
    mergemint-drain status --org-id ORG [--repo-id REPO] [--list]
    mergemint-drain batch --org-id ORG [--repo-id REPO] [--limit N]
    mergemint-drain init-db
"""

import argparse
import asyncio
import json
import logging
import sys

from .batch import create_batch_drain
from .config import Config
from .database import create_db_engine, create_session_factory, init_db
from .drain import create_drain_trigger
from .mqtt import close_outcome_publisher
from .repository import BacklogRepository

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mergemint-drain", description="MergeMint PR drain")
    sub = parser.add_subparsers(dest="command", required=True)

    once = sub.add_parser("once", help="Process at most one unevaluated PR")
    once.add_argument("--no-comment", action="store_true", help="Don't post a PR comment")

    status = sub.add_parser("status", help="Show evaluation coverage for an organization")
    status.add_argument("--org-id", required=True, help="Organization id")
    status.add_argument("--repo-id", help="Restrict to one repository")
    status.add_argument("--list", action="store_true", help="Include unprocessed PRs")

    batch = sub.add_parser("batch", help="Evaluate many unprocessed PRs of an organization")
    batch.add_argument("--org-id", required=True, help="Organization id")
    batch.add_argument("--repo-id", help="Restrict to one repository")
    batch.add_argument("--limit", type=int, default=Config.BATCH_LIMIT, help="Maximum PRs to process")

    sub.add_parser("init-db", help="Create the store tables")
    return parser


def _run_once(no_comment: bool) -> int:
    trigger = create_drain_trigger()
    try:
        outcome = asyncio.run(trigger.run(post_comment=not no_comment))
    finally:
        close_outcome_publisher()
    print(json.dumps(outcome.body, default=str))
    return 0 if outcome.ok else 1


def _batch(org_id: str, repo_id: str | None, limit: int) -> int:
    batch = create_batch_drain()
    try:
        report = asyncio.run(batch.run(org_id, repo_id=repo_id, limit=limit))
    finally:
        close_outcome_publisher()
    print(json.dumps(report.to_response()))
    return 0 if report.errors == 0 else 1


def _status(org_id: str, repo_id: str | None, include_list: bool) -> int:
    engine = create_db_engine(Config.DATABASE_URL)
    repository = BacklogRepository(create_session_factory(engine))
    status = repository.backlog_status(org_id, repo_id=repo_id, include_list=include_list)
    print(json.dumps(status.to_response()))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=Config.LOG_LEVEL)

    if args.command == "once":
        return _run_once(args.no_comment)
    if args.command == "status":
        return _status(args.org_id, args.repo_id, args.list)
    if args.command == "batch":
        if args.limit < 1:
            logger.error("--limit must be at least 1")
            return 2
        return _batch(args.org_id, args.repo_id, args.limit)

    init_db(create_db_engine(Config.DATABASE_URL))
    logger.info(f"Tables created at {Config.DATABASE_URL}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
