from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from alfama.api.dependencies import InvalidStatusFilterError
from alfama.api.middleware.observability import current_request_id
from alfama.application.stores.order_store import (
    InvalidOrderTransitionError,
    NoActiveOrderError,
    OrderNotFoundError,
    ValidationError,
)
from alfama.application.stores.reservation_store import ReservationNotFoundError

logger = logging.getLogger(__name__)

ERROR_CODES: dict[type[Exception], tuple[int, str]] = {
    ValidationError: (400, "VALIDATION_ERROR"),
    InvalidStatusFilterError: (400, "INVALID_STATUS_FILTER"),
    NoActiveOrderError: (409, "NO_ACTIVE_ORDER"),
    OrderNotFoundError: (404, "ORDER_NOT_FOUND"),
    ReservationNotFoundError: (404, "RESERVATION_NOT_FOUND"),
    InvalidOrderTransitionError: (409, "INVALID_ORDER_TRANSITION"),
}


def error_body(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "error": {"code": code, "message": message, "details": details or {}},
        "requestId": current_request_id(),
    }


async def _store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code, code = next(
        ERROR_CODES[cls] for cls in type(exc).__mro__ if cls in ERROR_CODES
    )
    logger.info(
        "request_rejected",
        extra={"code": code, "path": request.url.path, "reason": str(exc)},
    )
    return JSONResponse(status_code=status_code, content=error_body(code, str(exc)))


async def _http_error_handler(_: Request, raw_exc: Exception) -> JSONResponse:
    exc = cast(StarletteHTTPException, raw_exc)
    try:
        code = HTTPStatus(exc.status_code).name
    except ValueError:
        code = "HTTP_ERROR"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(code, str(exc.detail or "request failed")),
        headers=exc.headers,
    )


async def _request_validation_handler(_: Request, raw_exc: Exception) -> JSONResponse:
    exc = cast(RequestValidationError, raw_exc)
    return JSONResponse(
        status_code=400,
        content=error_body(
            "INVALID_REQUEST",
            "request validation failed",
            {"errors": jsonable_encoder(exc.errors())},
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    for exc_cls in ERROR_CODES:
        app.add_exception_handler(exc_cls, _store_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
