"""Cron and backlog routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from .auth import check_cron_secret
from .config import Config
from .reporter import report_infrastructure_error, report_unauthorized

logger = logging.getLogger(__name__)

router = APIRouter()


def _unauthorized() -> JSONResponse:
    outcome = report_unauthorized()
    return JSONResponse(status_code=outcome.status_code, content=outcome.body)


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": message})


@router.api_route("/api/cron/process-prs", methods=["GET", "POST"])
async def process_prs(
    request: Request,
    post_comment: str | None = Query(None, alias="postComment"),
):
    if not check_cron_secret(request, request.app.state.cron_secret):
        return _unauthorized()

    try:
        outcome = await request.app.state.trigger.run(post_comment=post_comment != "false")
    except Exception as e:
        logger.exception(f"Cron job failed: {e}")
        outcome = report_infrastructure_error(e)
    return JSONResponse(status_code=outcome.status_code, content=outcome.body)


@router.get("/api/github/process-unprocessed")
def unprocessed_status(
    request: Request,
    org_id: str | None = Query(None, alias="orgId"),
    repo_id: str | None = Query(None, alias="repoId"),
    include_list: str | None = Query(None, alias="list"),
):
    if not check_cron_secret(request, request.app.state.cron_secret):
        return _unauthorized()
    if not org_id:
        return _bad_request("orgId is required")

    status = request.app.state.repository.backlog_status(
        org_id, repo_id=repo_id, include_list=include_list == "true"
    )
    return status.to_response()


@router.post("/api/github/process-unprocessed")
async def process_unprocessed(request: Request):
    if not check_cron_secret(request, request.app.state.cron_secret):
        return _unauthorized()

    try:
        payload = await request.json()
    except ValueError:
        return _bad_request("Malformed JSON payload")
    if not isinstance(payload, dict):
        return _bad_request("Malformed JSON payload")

    org_id = payload.get("orgId")
    if not org_id:
        return _bad_request("orgId is required")
    limit = payload.get("limit", Config.BATCH_LIMIT)
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        return _bad_request("limit must be a positive integer")

    try:
        report = await request.app.state.batch.run(
            org_id, repo_id=payload.get("repoId") or None, limit=limit
        )
    except Exception as e:
        logger.exception(f"Batch processing failed: {e}")
        outcome = report_infrastructure_error(e)
        return JSONResponse(status_code=outcome.status_code, content=outcome.body)
    return report.to_response()
