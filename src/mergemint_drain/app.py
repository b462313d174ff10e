"""FastAPI application for the drain service.

Run with uvicorn's factory mode:

    uvicorn mergemint_drain.app:get_app --factory
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from . import routes
from .batch import BatchDrain
from .config import Config
from .drain import DrainTrigger, create_drain_trigger
from .repository import BacklogRepository

logger = logging.getLogger(__name__)

_UNSET = object()


def get_app(
    trigger: DrainTrigger | None = None,
    repository: BacklogRepository | None = None,
    batch: BatchDrain | None = None,
    cron_secret: str | None | object = _UNSET,
) -> FastAPI:
    """Create the application.

    Args:
        trigger: Drain trigger to run; built from Config when omitted
        repository: Store used by the status route; defaults to the trigger's
        batch: Batch drain for the process-unprocessed POST; defaults to one
            sharing the repository and the trigger's dispatcher
        cron_secret: Shared secret; defaults to Config.CRON_SECRET, None opens
            the endpoints
    """
    logging.basicConfig(level=Config.LOG_LEVEL)

    if trigger is None:
        trigger = create_drain_trigger()
    if repository is None:
        repository = trigger.repository
    if batch is None:
        batch = BatchDrain(
            repository, trigger.dispatcher, delay_seconds=Config.BATCH_DELAY_SECONDS
        )
    if cron_secret is _UNSET:
        cron_secret = Config.CRON_SECRET

    if not cron_secret:
        logger.warning("CRON_SECRET is not set; cron endpoints are open to any caller")

    app = FastAPI(title="MergeMint drain")
    app.state.trigger = trigger
    app.state.repository = repository
    app.state.batch = batch
    app.state.cron_secret = cron_secret
    app.include_router(routes.router)
    return app
