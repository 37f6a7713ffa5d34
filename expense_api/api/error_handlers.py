"""Global exception handlers.

ExpenseApiError -> its own code and status. Request validation -> field-level
VALIDATION_ERROR. Anything else -> INTERNAL_ERROR, with the detail hidden in
production.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from expense_api.errors import ExpenseApiError, ValidationFailedError

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "Internal server error"


def register_error_handlers(app: FastAPI, expose_internal_errors: bool) -> None:
    """Register all global error handlers on the FastAPI app."""

    @app.exception_handler(ExpenseApiError)
    async def expense_api_error_handler(request: Request, exc: ExpenseApiError):
        extra = {"error_code": exc.code, "path": request.url.path}
        if exc.is_internal:
            logger.error(f"{type(exc).__name__}: {exc.message}", extra=extra, exc_info=exc)
        else:
            logger.info(f"{exc.code} on {request.url.path}: {exc.message}", extra=extra)

        body = exc.to_response()
        if exc.is_internal and not expose_internal_errors:
            body["error"]["message"] = GENERIC_MESSAGE
        return JSONResponse(status_code=exc.http_status, content=body, headers=exc.headers())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info(f"Validation error on {request.url.path}: {exc.errors()}")
        error = ValidationFailedError.from_errors(list(exc.errors()))
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error.to_response())

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=exc)
        message = str(exc) if expose_internal_errors else GENERIC_MESSAGE
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": {"code": "INTERNAL_ERROR", "message": message or GENERIC_MESSAGE}},
        )
