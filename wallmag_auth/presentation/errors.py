import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from wallmag_auth.domain.errors import (
    DependencyUnavailable,
    DomainError,
    Internal,
    Locked,
    RateLimited,
)
from wallmag_auth.presentation.cookies import clear_cookies

logger = logging.getLogger(__name__)


def _error_response(exc: DomainError) -> JSONResponse:
    body: dict = {"message": exc.message}
    headers: dict[str, str] = {}
    if isinstance(exc, Locked):
        body["locked_until"] = exc.remaining_seconds
        headers["Retry-After"] = str(exc.remaining_seconds)
    elif isinstance(exc, RateLimited) and exc.retry_after:
        headers["Retry-After"] = str(exc.retry_after)

    response = JSONResponse(status_code=exc.status_code, content=body, headers=headers)
    clear_cookies(response, exc.clear_cookies)
    return response


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "request failed",
            extra={"path": request.url.path, "error": type(exc).__name__},
            exc_info=exc.__cause__ is not None,
        )
    else:
        logger.info(
            "request rejected",
            extra={
                "path": request.url.path,
                "error": type(exc).__name__,
                "status": exc.status_code,
            },
        )
    return _error_response(exc)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.info("request validation failed", extra={"path": request.url.path})
    return JSONResponse(status_code=400, content={"message": "Invalid request"})


async def redis_error_handler(request: Request, exc: RedisError) -> JSONResponse:
    logger.error(
        "cache unavailable", extra={"path": request.url.path, "error": type(exc).__name__}
    )
    return _error_response(DependencyUnavailable())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error", extra={"path": request.url.path})
    return _error_response(Internal())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(RedisError, redis_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
