import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class HTTPLogMiddleware(BaseHTTPMiddleware):
    """Debug logging of every request with the acting user and its duration."""

    def __init__(self, app, logger_name: str = "booking_api.http"):
        super().__init__(app)
        self._logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        method = request.method
        path = request.url.path
        actor = request.headers.get("x-user-id", "-")
        self._logger.debug("http.request start method=%s path=%s user=%s", method, path, actor)
        try:
            response: Response = await call_next(request)
        except Exception as e:
            dur_ms = int((time.perf_counter() - start) * 1000)
            self._logger.warning(
                "http.request error method=%s path=%s user=%s dur_ms=%s err=%r",
                method, path, actor, dur_ms, e,
            )
            raise
        dur_ms = int((time.perf_counter() - start) * 1000)
        response.headers["X-Response-Time-Ms"] = str(dur_ms)
        self._logger.debug(
            "http.request end method=%s path=%s user=%s status=%s dur_ms=%s",
            method, path, actor, response.status_code, dur_ms,
        )
        return response
