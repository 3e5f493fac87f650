"""Exception handlers — every error leaves as {statusCode, message}.

Learn: Three handlers cover everything that can escape a route:
- AppError: rendered from its kind. Operational errors log at info,
  internal ones at error with the traceback.
- RequestValidationError (FastAPI body/path/query parsing): becomes a
  400 ValidationError instead of FastAPI's default 422.
- Anything else: a bug or an infrastructure fault. Logged in full,
  rendered as a generic 500 with no internal detail.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from spacehub.errors import (
    AppError,
    ErrorKind,
    InternalError,
    ValidationError,
    describe_validation_errors,
)

logger = structlog.get_logger()


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    log = logger.bind(
        kind=exc.kind.value,
        status_code=exc.status_code,
        method=request.method,
        path=request.url.path,
    )
    if exc.is_operational:
        log.info("request.rejected", message=exc.message)
    else:
        log.error("request.failed", message=exc.message, exc_info=exc)

    headers = None
    if exc.kind is ErrorKind.AUTHENTICATION:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code, content=exc.to_dict(), headers=headers
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    error = ValidationError(describe_validation_errors(exc.errors()))
    return await app_error_handler(request, error)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "request.unhandled_error",
        method=request.method,
        path=request.url.path,
        error=repr(exc),
        exc_info=exc,
    )
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
