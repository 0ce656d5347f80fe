# Path: otpgate/infrastructure/setup/sentry_setup.py
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from otpgate.shared.config.settings import settings
from otpgate.shared.logging.service import LoggingService
from otpgate.shared.logging.config import LogConfig

logger = LoggingService(LogConfig())


def initialize_sentry() -> bool:
    """
    Initialize Sentry for error tracking when SENTRY_DSN is configured.

    Returns:
        bool: Whether Sentry was initialized.
    """
    if not settings.SENTRY_DSN:
        logger.info("Sentry disabled, no DSN configured", context={})
        return False

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        integrations=[FastApiIntegration()],
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        environment=settings.ENVIRONMENT,
        release=f"{settings.APP_NAME}@{settings.APP_VERSION}",
        send_default_pii=settings.SENTRY_SEND_PII,
    )
    logger.info("Sentry initialized", context={"environment": settings.ENVIRONMENT})
    return True
