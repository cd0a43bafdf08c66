"""API error handling and response helpers."""

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.services.errors import DataNotReadyError, LedgerError, NotFoundError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error."""

    def __init__(self, message: str, code: str, http_status: int = 400):
        """Initialize error."""
        self.message = message
        self.code = code
        self.http_status = http_status
        super().__init__(message)


def to_app_error(error: Exception) -> AppError:
    """Map a service exception onto an API error with its HTTP status."""
    if isinstance(error, DataNotReadyError):
        return AppError(str(error), "data_not_ready", status.HTTP_503_SERVICE_UNAVAILABLE)
    if isinstance(error, NotFoundError):
        return AppError(str(error), "not_found", status.HTTP_404_NOT_FOUND)
    if isinstance(error, (LedgerError, ValueError)):
        return AppError(str(error), "invalid_request", status.HTTP_400_BAD_REQUEST)
    return AppError("Server error", "server_error", status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_response(error: AppError) -> Dict[str, Any]:
    """Create a standardized error response."""
    return {
        "success": False,
        "error": error.message,
        "code": error.code,
    }


def success_response(**payload: Any) -> Dict[str, Any]:
    """Create a standardized success response."""
    return {"success": True, **payload}


def register_error_handlers(app: FastAPI) -> None:
    """Install handlers that render errors in the response envelope."""

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
        error = to_app_error(exc)
        logger.warning(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=error.http_status, content=error_response(error))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        error = to_app_error(exc)
        logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
        return JSONResponse(status_code=error.http_status, content=error_response(error))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        error = to_app_error(exc)
        logger.error(f"{request.method} {request.url.path} failed unexpectedly: {exc}", exc_info=exc)
        return JSONResponse(status_code=error.http_status, content=error_response(error))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        error = AppError("Invalid request body", "invalid_request", status.HTTP_400_BAD_REQUEST)
        logger.warning(f"{request.method} {request.url.path} invalid body: {exc.errors()}")
        return JSONResponse(status_code=error.http_status, content=error_response(error))
