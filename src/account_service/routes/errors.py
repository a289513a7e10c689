"""
Exception handlers mapping the service exception taxonomy to HTTP responses.

| Exception | Status |
|-----------|--------|
| `ValidationException` | 400 |
| `RequestValidationError` (FastAPI) | 400 |
| `NotFoundException` | 404 |
| `ConflictException` | 409 |
| anything else | 500 |

Every error body has the shape `{"code", "message", "description"}`.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from account_service.exceptions import (
    AccountServiceException,
    ConflictException,
    NotFoundException,
    ValidationException,
)
from account_service.managers.logging_manager import get_logger
from account_service.utils.strings import Strings
from account_service.validators.common import validation_exception

logger = get_logger(prefix="[ERRORS]")

STATUS_CODES = {
    ValidationException: 400,
    NotFoundException: 404,
    ConflictException: 409,
}


def error_body(code: int, message: str, description=None) -> dict:
    body = {"code": code, "message": message}
    if description:
        body["description"] = description
    return body


async def account_service_exception_handler(request: Request, exc: AccountServiceException) -> JSONResponse:
    code = STATUS_CODES.get(type(exc), 500)
    if code == 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
    return JSONResponse(status_code=code, content=error_body(code, exc.message, exc.description))


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """FastAPI parameter errors use the same 400 body as service validation errors."""
    return await account_service_exception_handler(request, validation_exception(list(exc.errors())))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unexpected error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(
        status_code=500, content=error_body(500, Strings.ERROR_MESSAGE.INTERNAL_SERVER_ERROR)
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AccountServiceException, account_service_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
