from __future__ import annotations

import logging
import re
import time
from contextvars import ContextVar
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
logger = logging.getLogger("duka.request")

# Caller-supplied ids end up in log lines and response headers.
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id, time it, and log one line when it finishes.

    A well-formed ``X-Request-ID`` from the caller is reused; anything else is
    replaced with a fresh UUID. Requests under ``quiet_prefixes`` (static
    assets, the metrics scrape) are served without a log line.
    """

    def __init__(
        self,
        app,
        header_name: str = "X-Request-ID",
        quiet_prefixes: tuple[str, ...] = ("/static", "/metrics"),
    ) -> None:  # type: ignore[override]
        super().__init__(app)
        self.header_name = header_name
        self.quiet_prefixes = quiet_prefixes

    def _incoming_id(self, request: Request) -> str:
        candidate = request.headers.get(self.header_name, "")
        return candidate if _VALID_REQUEST_ID.match(candidate) else uuid4().hex

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = self._incoming_id(request)
        request.state.request_id = request_id
        token = request_id_ctx_var.set(request_id)
        started = time.perf_counter()
        fields = {"method": request.method, "path": request.url.path}
        try:
            try:
                response = await call_next(request)
            except Exception:
                fields["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
                logger.exception("request.failed", extra={"extra_data": fields})
                raise

            elapsed_ms = (time.perf_counter() - started) * 1000
            response.headers[self.header_name] = request_id
            response.headers.setdefault("X-Response-Time", f"{elapsed_ms:.2f}ms")
            if not request.url.path.startswith(self.quiet_prefixes):
                fields.update(status=response.status_code, duration_ms=round(elapsed_ms, 2))
                level = logging.WARNING if response.status_code >= 500 else logging.INFO
                logger.log(level, "request.completed", extra={"extra_data": fields})
            return response
        finally:
            request_id_ctx_var.reset(token)
