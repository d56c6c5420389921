"""Map domain exceptions to structured HTTP errors"""

import logging
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from lendada_gateway.domain.exceptions import (
    AuthorizationError,
    DomainException,
    JobTimeoutError,
    NotFoundError,
    PreconditionError,
    UpstreamError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_CODES = [
    (ValidationError, 422),
    (PreconditionError, 409),
    (NotFoundError, 404),
    (AuthorizationError, 403),
    (UpstreamError, 502),
    (JobTimeoutError, 504),
]


def status_code_for(exc: DomainException) -> int:
    for exc_type, status_code in STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code
    return 500


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    status_code = status_code_for(exc)
    request_id = getattr(request.state, "request_id", "unknown")
    if status_code >= 500:
        logger.error(f"{exc.kind}: {exc}", extra={"request_id": request_id})
    else:
        logger.warning(f"{exc.kind}: {exc}", extra={"request_id": request_id})
    return JSONResponse(
        status_code=status_code,
        content={"error": {"kind": exc.kind, "message": str(exc)}},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """FastAPI's 422 body without the echoed input, which may hold NaN or Infinity"""
    errors = [{key: value for key, value in error.items() if key != "input"} for error in exc.errors()]
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})
