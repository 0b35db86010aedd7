from __future__ import annotations

import logging
import time
from contextvars import ContextVar
from uuid import uuid4

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-Id"

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)
access_logger = logging.getLogger("alfama.api.access")

REQUEST_COUNT = Counter(
    "alfama_http_requests_total",
    "Total number of HTTP requests",
    ["method", "route", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "alfama_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "route"],
)


def current_request_id() -> str | None:
    return _request_id.get()


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        token = _request_id.set(request_id)
        try:
            response = await call_next(request)
        finally:
            _request_id.reset(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        method = request.method
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        except Exception:
            access_logger.exception(
                "request_error",
                extra={"method": method, "path": request.url.path},
            )
            raise
        finally:
            elapsed = time.perf_counter() - started
            route = _route_template(request)
            REQUEST_COUNT.labels(method=method, route=route, status_code=str(status_code)).inc()
            REQUEST_LATENCY.labels(method=method, route=route).observe(elapsed)
            access_logger.info(
                "request_complete",
                extra={
                    "method": method,
                    "path": request.url.path,
                    "status_code": status_code,
                    "duration_ms": round(elapsed * 1000, 2),
                },
            )
