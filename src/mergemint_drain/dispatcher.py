"""Work dispatcher: one deadline-bounded call to the evaluation endpoint.

The dispatcher makes exactly one attempt per call and never retries. It does
not write anything; the evaluation endpoint persists the result marker
atomically on its side, so a timeout here cannot leave a partial result.
"""

import asyncio
import logging

import httpx

from .schemas import DispatchResult, DispatchStatus, WorkItem
from .translator import work_item_to_payload

logger = logging.getLogger(__name__)

PROCESS_PR_PATH = "/api/github/process-pr"


class WorkDispatcher:
    """Posts a work item to the process-pr endpoint under a hard deadline.

    Example:
        dispatcher = WorkDispatcher("https://app.mergemint.dev", timeout_seconds=28)
        result = await dispatcher.dispatch(item, post_comment=False)
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 28.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            base_url: Site URL hosting the process-pr endpoint
            timeout_seconds: Wall-clock deadline for the whole request
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")

        self.base_url: str = base_url.rstrip("/")
        self.timeout_seconds: float = timeout_seconds
        self.transport: httpx.AsyncBaseTransport | None = transport

    async def dispatch(
        self,
        item: WorkItem,
        *,
        post_comment: bool = True,
        timeout_seconds: float | None = None,
    ) -> DispatchResult:
        """Send ``item`` for evaluation.

        asyncio.wait_for bounds the whole exchange (connect, upload, wait,
        read); on expiry the in-flight request is cancelled. The httpx timeout
        is set to the same value as a per-phase backstop.

        Args:
            item: Work item to evaluate
            post_comment: Forwarded to the evaluation endpoint
            timeout_seconds: Deadline for this call only; defaults to the
                configured timeout_seconds

        Returns:
            DispatchResult with status success, failed, error or timeout
        """
        deadline = self.timeout_seconds if timeout_seconds is None else timeout_seconds
        payload = work_item_to_payload(item, post_comment=post_comment)
        body = payload.model_dump(mode="json", by_alias=True)

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(deadline),
                transport=self.transport,
            ) as client:
                response = await asyncio.wait_for(
                    client.post(PROCESS_PR_PATH, json=body),
                    timeout=deadline,
                )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning(f"Dispatch of {item.label} timed out after {deadline:g}s")
            return DispatchResult(status=DispatchStatus.timeout)
        except httpx.HTTPError as e:
            logger.error(f"Dispatch of {item.label} failed: {e}")
            return DispatchResult(status=DispatchStatus.error, error=str(e) or type(e).__name__)

        if not response.is_success:
            logger.error(f"Dispatch of {item.label} rejected with {response.status_code}: {response.text}")
            return DispatchResult(
                status=DispatchStatus.failed,
                status_code=response.status_code,
                error=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Dispatch of {item.label} returned an unreadable body: {e}")
            return DispatchResult(
                status=DispatchStatus.error,
                status_code=response.status_code,
                error=f"Invalid JSON response: {e}",
            )

        return DispatchResult(
            status=DispatchStatus.success,
            status_code=response.status_code,
            score=_final_score(data),
        )


def _final_score(data) -> float | None:
    if not isinstance(data, dict):
        return None
    evaluation = data.get("evaluation")
    if not isinstance(evaluation, dict):
        return None
    score = evaluation.get("final_score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        return None
    return score
