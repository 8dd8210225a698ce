"""Rate limiting middleware — Redis fixed-window counter per client IP.

Only the public query endpoints (GET) are limited; ingestion comes from the
indexer and is serialized by the service anyway.

    count = INCR ratelimit:{ip}:{window}
    EXPIRE on the first hit of the window
    count > limit → 429 with Retry-After
"""

import logging
import time
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from src.hd_common.errors import RateLimitError
from src.hd_common.redis_client import incr_window
from src.hd_common.response import error_response
from src.hd_gateway.middleware.request_log import client_ip

logger = logging.getLogger(__name__)

_WINDOW_SECONDS = 60


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        limit_per_minute: int,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]],
    ) -> None:
        super().__init__(app)
        self._limit = limit_per_minute
        self._redis_factory = redis_factory

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method != "GET" or request.url.path == "/health":
            return await call_next(request)

        window = int(time.time()) // _WINDOW_SECONDS
        key = f"ratelimit:{client_ip(request)}:{window}"
        count = await incr_window(await self._redis_factory(), key, _WINDOW_SECONDS)

        if count > self._limit:
            err = RateLimitError()
            logger.warning("Rate limit exceeded: key=%s count=%d", key, count)
            retry_after = _WINDOW_SECONDS - int(time.time()) % _WINDOW_SECONDS
            return JSONResponse(
                status_code=err.http_status,
                content=error_response(
                    err.code, err.message, getattr(request.state, "request_id", None)
                ).model_dump(),
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
