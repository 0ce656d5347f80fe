# Path: main.py
from contextlib import asynccontextmanager
from fastapi import FastAPI

from otpgate.infrastructure.di.container import container
from otpgate.infrastructure.setup.database_setup import database_lifespan
from otpgate.infrastructure.setup.middleware_setup import setup_middlewares
from otpgate.infrastructure.setup.router_setup import setup_routers
from otpgate.infrastructure.setup.sentry_setup import initialize_sentry
from otpgate.shared.config.settings import settings
from otpgate.shared.errors.exception_handlers import register_exception_handlers
from otpgate.shared.logging.service import LoggingService
from otpgate.shared.logging.config import LogConfig

logger = LoggingService(LogConfig())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage the lifecycle of the FastAPI application.

    The SMS provider is built eagerly so a misconfigured provider fails startup.

    Args:
        app: The FastAPI application instance.
    """
    initialize_sentry()
    sms_provider = container.sms_provider()
    async with database_lifespan():
        logger.info("otpgate API started", context={
            "version": app.version,
            "environment": settings.ENVIRONMENT,
            "sms_provider": sms_provider.name
        })
        yield
        await sms_provider.close()
        logger.info("otpgate API stopped", context={})


app = FastAPI(
    title="otpgate API",
    version=settings.APP_VERSION,
    description="Phone OTP authentication, pre-approval gating, transaction PINs and card sharing.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

setup_middlewares(app)
register_exception_handlers(app)
setup_routers(app)
