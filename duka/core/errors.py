from __future__ import annotations

import logging
import math
from http import HTTPStatus
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("duka.errors")


class DukaError(Exception):
    """Base class for failures the API reports with a specific status code."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidInputError(DukaError, ValueError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class NotFoundError(DukaError, LookupError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConflictError(DukaError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class InsufficientStockError(DukaError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "insufficient_stock"

    def __init__(self, available: int, requested: int) -> None:
        super().__init__(
            "Insufficient stock",
            details={"available": available, "requested": requested},
        )
        self.available = available
        self.requested = requested


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"code": code, "message": message}
        if details is not None:
            payload["details"] = details
        super().__init__(jsonable_encoder(payload), status_code=status_code, headers=headers)


async def duka_error_handler(request: Request, exc: DukaError):
    return ErrorEnvelope(
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=exc.details,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if isinstance(detail, str):
        message = detail
    else:
        message = HTTPStatus(exc.status_code).phrase
    details = detail if isinstance(detail, dict) else None
    return ErrorEnvelope(
        status_code=exc.status_code,
        code="http_error",
        message=message,
        details=details,
        headers=getattr(exc, "headers", None),
    )


def _json_safe(value: Any) -> Any:
    """Echoed inputs may hold inf/nan, which the JSON response refuses to render."""

    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    return value


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return ErrorEnvelope(
        status_code=status.HTTP_400_BAD_REQUEST,
        code="validation_error",
        message="Validation failed",
        details={"errors": _json_safe(jsonable_encoder(exc.errors()))},
    )


async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(
        "storage.error",
        exc_info=exc,
        extra={"extra_data": {"path": request.url.path}},
    )
    return ErrorEnvelope(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code="storage_error",
        message=str(getattr(exc, "orig", None) or exc),
    )
