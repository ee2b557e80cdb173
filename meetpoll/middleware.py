import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

TIMING_HEADER = "X-Response-Time-Ms"


class HTTPLogMiddleware(BaseHTTPMiddleware):
    """Debug request log; also reports handler time in ``X-Response-Time-Ms``."""

    def __init__(self, app, logger_name: str = "meetpoll.http"):
        super().__init__(app)
        self._logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        method, path = request.method, request.url.path
        self._logger.debug("request start %s %s", method, path)
        try:
            response = await call_next(request)
        except Exception:
            self._logger.warning(
                "request failed %s %s after %.1fms",
                method, path, (time.perf_counter() - start) * 1000,
            )
            raise
        elapsed_ms = (time.perf_counter() - start) * 1000
        response.headers[TIMING_HEADER] = f"{elapsed_ms:.1f}"
        self._logger.debug(
            "request end %s %s status=%d %.1fms",
            method, path, response.status_code, elapsed_ms,
        )
        return response
