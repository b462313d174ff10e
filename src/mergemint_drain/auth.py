"""Shared-secret check for the cron endpoints."""

from __future__ import annotations

import hmac

from fastapi import Request


def _bearer_token(request: Request) -> str | None:
    """Authorization header with a leading "Bearer " removed (exact case)."""
    auth = request.headers.get("authorization")
    if auth is None:
        return None
    return auth.removeprefix("Bearer ")


def check_cron_secret(request: Request, secret: str | None) -> bool:
    """Return True if the request may run cron work.

    With no secret configured every caller is allowed.
    """
    if not secret:
        return True
    token = _bearer_token(request)
    if token is None:
        return False
    return hmac.compare_digest(token.encode(), secret.encode())
