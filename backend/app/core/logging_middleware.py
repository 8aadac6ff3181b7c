"""Request logging middleware for the API and sync endpoints."""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("polispectrum.requests")

# Longest response body echoed into a log line
MAX_LOGGED_BODY = 500

# Multi-Status: a sync run that finished with some work done and some errors
PARTIAL_SUCCESS = 207


async def _read_body(response: Response) -> bytes:
    body = b""
    async for chunk in response.body_iterator:  # type: ignore[attr-defined]
        body += chunk.encode("utf-8") if isinstance(chunk, str) else chunk
    return body


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with method, path, status, and duration.

    Error responses (4xx/5xx) and partial sync results (207) also log the
    response body, so the "detail" field or the sync error list shows up in
    the log. The body is read once and handed back to the client unchanged.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000

        status = response.status_code
        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"

        needs_body = status >= 400 or status == PARTIAL_SUCCESS
        if not needs_body or not hasattr(response, "body_iterator"):
            logger.info("%s %s -> %d (%.0fms)", request.method, path, status, duration_ms)
            return response

        body = await _read_body(response)
        detail = body.decode("utf-8", errors="replace")
        if len(detail) > MAX_LOGGED_BODY:
            detail = detail[:MAX_LOGGED_BODY] + "..."

        log = logger.error if status >= 500 else logger.warning
        log("%s %s -> %d (%.0fms): %s", request.method, path, status, duration_ms, detail)

        return Response(
            content=body,
            status_code=status,
            headers=dict(response.headers),
            media_type=response.media_type,
        )
