"""
userhub - Request Context Middleware

Request/response middleware for:
- Request ID injection for tracing (reused from X-Request-ID when sent)
- Binding the request ID into the structured log context
- Access logging with timing
- Security headers

The request ID is the correlation id written into issued session tokens.
"""

import re
import time
import uuid
from typing import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from userhub.logging_config import get_logger


log = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:/+=-]{1,128}$")

# Activation tokens travel in the path; keep them out of access logs
_TOKEN_PATH_RE = re.compile(r"(/activate/)[^/]+")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Per-request context for all incoming requests.

    Responsibilities:
    1. Reuse or generate the X-Request-ID correlation id
    2. Bind it to structlog contextvars for every log line of the request
    3. Log method, path, status and duration
    4. Add security headers to response
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process each request through the context pipeline."""
        request_id = request.headers.get(REQUEST_ID_HEADER, "")
        if not _REQUEST_ID_RE.match(request_id):
            request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        log.info(
            "request",
            method=request.method,
            path=_TOKEN_PATH_RE.sub(r"\1{token}", request.url.path),
            status=response.status_code,
            duration_ms=round(duration_ms, 2),
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Cache-Control"] = "no-store"

        return response
