"""Request logging middleware.

Logs every HTTP request with method, path, status code, latency, client IP
and a short request ID. The request_id is injected into request.state so
router handlers can put it in ApiResponse, and echoed as X-Request-ID.

Log format:
    INFO [GET] /api/v1/hodl/accounts/0xab.../ratio → 200 (4ms) 10.0.0.7 req_a1b2c3d4e5f6
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.hd_common.response import new_request_id

logger = logging.getLogger("hodl.request")


def client_ip(request: Request) -> str:
    """Real client IP behind a reverse proxy: first X-Forwarded-For hop."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.request_id = new_request_id()

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers["X-Request-ID"] = request.state.request_id
        logger.info(
            "[%s] %s → %d (%.0fms) %s %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            client_ip(request),
            request.state.request_id,
        )
        return response
