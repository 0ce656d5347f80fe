# Path: otpgate/shared/errors/exception_handlers.py
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR
from otpgate.shared.logging.service import LoggingService
from otpgate.shared.logging.config import LogConfig
from otpgate.shared.i18n.messages import get_message
from otpgate.shared.errors.base import BaseError
from otpgate.shared.errors.router import ErrorRouter
from otpgate.shared.utilities.language import extract_language
from otpgate.shared.utilities.constants import DomainErrorCode

logger = LoggingService(LogConfig())
error_router = ErrorRouter(logger)


def _render(error: BaseError, log_context: Optional[Dict[str, Any]] = None) -> JSONResponse:
    response = error_router.route(error, log_context)
    return JSONResponse(
        status_code=error.status_code,
        content=response.model_dump()
    )


def register_exception_handlers(app: FastAPI):
    """
    Register exception handlers for FastAPI application.

    Every error is rendered as an ErrorResponse with the error's own HTTP status.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle validation errors."""
        language = extract_language(request)
        details = []
        failed_fields = []
        for err in exc.errors():
            loc = err.get("loc", [])
            msg = err.get("msg", "Invalid input.")
            field = loc[-1] if loc else "field"
            details.append(f"{field}: {msg}")
            failed_fields.append(f"{field}:{err.get('type', 'invalid')}")

        error_message = "; ".join(details)
        # Messages can echo submitted values such as phone numbers; only field names are logged
        logger.warning("Validation error", context={
            "path": request.url.path,
            "method": request.method,
            "fields": failed_fields,
            "language": language
        })
        return _render(BaseError(
            error_code=DomainErrorCode.VALIDATION_ERROR.value,
            message=get_message("validation.error", language=language),
            status_code=HTTP_400_BAD_REQUEST,
            trace_id=logger.tracer.get_trace_id(),
            details={"errors": error_message},
            language=language
        ), {"fields": failed_fields})

    @app.exception_handler(BaseError)
    async def base_error_handler(request: Request, exc: BaseError):
        """Handle custom BaseError exceptions."""
        logger.info("BaseError caught", context={
            "path": request.url.path,
            "method": request.method,
            "status_code": exc.status_code,
            "error_code": exc.error_code,
            "language": exc.language or extract_language(request)
        })
        return _render(exc)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions."""
        language = extract_language(request)
        logger.error("Unhandled exception", context={
            "path": request.url.path,
            "method": request.method,
            "error": str(exc),
            "language": language
        })
        return _render(BaseError(
            error_code="INTERNAL_SERVER_ERROR",
            message=get_message("server.error", language=language),
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            trace_id=logger.tracer.get_trace_id(),
            details={},
            language=language
        ))
