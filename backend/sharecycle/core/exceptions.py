"""RFC 7807 Problem Details error handling."""

import logging

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sharecycle.core.results import ErrorCode, ServiceError, ServiceResult

logger = logging.getLogger(__name__)

_STATUS_BY_CODE: dict[ErrorCode, tuple[int, str]] = {
    ErrorCode.NOT_FOUND: (404, "Not Found"),
    ErrorCode.FORBIDDEN: (403, "Forbidden"),
    ErrorCode.CONFLICT: (409, "Conflict"),
    ErrorCode.VALIDATION: (422, "Validation Error"),
}


class ProblemDetailError(Exception):
    """Raise for RFC 7807 problem+json responses."""

    def __init__(
        self,
        status: int,
        title: str,
        detail: str,
        error_type: str | None = None,
    ):
        self.status = status
        self.title = title
        self.detail = detail
        self.error_type = error_type or "about:blank"

    @classmethod
    def from_service_error(cls, error: ServiceError) -> "ProblemDetailError":
        status, title = _STATUS_BY_CODE[error.code]
        return cls(
            status=status,
            title=title,
            detail=error.message,
            error_type=f"urn:sharecycle:error:{error.code}",
        )


def unwrap(result: ServiceResult):
    """Return the result value, or raise the matching problem response."""
    if result.error is not None:
        raise ProblemDetailError.from_service_error(result.error)
    return result.value


async def problem_detail_handler(request: Request, exc: ProblemDetailError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status,
        content={
            "type": exc.error_type,
            "title": exc.title,
            "status": exc.status,
            "detail": exc.detail,
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "type": "about:blank",
            "title": exc.detail if isinstance(exc.detail, str) else "Error",
            "status": exc.status_code,
            "detail": exc.detail,
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "type": "urn:sharecycle:error:validation",
            "title": "Validation Error",
            "status": 422,
            "detail": jsonable_encoder(exc.errors()),
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "type": "about:blank",
            "title": "Internal Server Error",
            "status": 500,
            "detail": "An unexpected error occurred",
            "instance": str(request.url.path),
        },
        media_type="application/problem+json",
    )
