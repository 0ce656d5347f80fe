# Path: otpgate/infrastructure/setup/middleware_setup.py
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from otpgate.shared.config.settings import settings
from otpgate.shared.logging.service import LoggingService
from otpgate.shared.logging.config import LogConfig

logger = LoggingService(LogConfig())


async def log_requests_middleware(request: Request, call_next):
    """
    Middleware to log HTTP requests. Bodies carry OTPs and PINs and are never logged.

    Args:
        request: The incoming HTTP request.
        call_next: The next middleware or endpoint to process the request.

    Returns:
        Response: The HTTP response.
    """
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "Request handled",
        context={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        },
    )
    return response


def setup_middlewares(app: FastAPI):
    """
    Configure FastAPI middlewares (CORS, request logging).

    Args:
        app: The FastAPI application instance.
    """
    app.middleware("http")(log_requests_middleware)

    origins = [origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Credentials cannot be combined with a wildcard origin
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info("Middlewares configured", context={"cors_origins": settings.CORS_ORIGINS})
