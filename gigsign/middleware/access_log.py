"""Access log middleware — one line per request, with link tokens redacted."""


import logging
import re
import time
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("gigsign.access")

# /contracts/review/<token> and /contracts/sign/<token>
_TOKEN_PATH = re.compile(r"(/contracts/(?:review|sign)/)[^/]+")


def redact_path(path: str) -> str:
    return _TOKEN_PATH.sub(r"\1***", path)


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration.

    A bearer token in a public link is a credential, so the path segment that
    carries it is replaced before logging. Headers are never logged.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000)

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s %s → %d (%dms)",
            request.method, redact_path(request.url.path), response.status_code, duration_ms,
        )
        return response
