"""
Request logging middleware.

Logs each API call with its status and duration. Routes that act on
repositories leave a summary on ``request.state`` through ``annotate``
(the repositories cleaned, the counts, the item an event was about) and
the summary is logged with the completed request.
"""

import logging
import time
from typing import Any, Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

SUMMARY_ATTR = "retention_summary"


def annotate(request: Request, **fields: Any) -> None:
    """Attach retention details to the request log line."""
    summary = getattr(request.state, SUMMARY_ATTR, None)
    if summary is None:
        summary = {}
        setattr(request.state, SUMMARY_ATTR, summary)
    summary.update(fields)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs requests with their retention summary and sets ``X-Process-Time``."""

    def __init__(self, app: ASGIApp, *, skip_paths: set[str] | None = None) -> None:
        super().__init__(app)
        self._skip_paths = skip_paths if skip_paths is not None else {"/health"}

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.url.path in self._skip_paths:
            return await call_next(request)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.exception(f"{request.method} {request.url.path} failed after {duration_ms:.2f} ms")
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        summary = getattr(request.state, SUMMARY_ATTR, None) or {}
        line = f"{request.method} {request.url.path} -> {response.status_code} in {duration_ms:.2f} ms"
        if summary:
            line += " (" + ", ".join(f"{key}={value}" for key, value in summary.items()) + ")"
        logger.info(line, extra={"retention": summary})
        response.headers["X-Process-Time"] = f"{duration_ms:.2f}"
        return response
