# Path: otpgate/shared/config/settings.py
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    APP_NAME: str = "otpgate"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = "development"
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent.parent
    DEFAULT_LANGUAGE: str = "en"
    SUPPORTED_LANGUAGES: str = "en"
    CORS_ORIGINS: str = "*"
    AUTH_TAG: str = "Authentication"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/app.log"

    # MongoDB
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "otpgate"
    MONGO_TIMEOUT: int = 20000

    # Redis
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str | None = None
    REDIS_USE_SSL: bool = False
    REDIS_SSL_CA_CERTS: str | None = None
    REDIS_SSL_CERT: str | None = None
    REDIS_SSL_KEY: str | None = None

    # Sentry
    SENTRY_DSN: str | None = None
    SENTRY_TRACES_SAMPLE_RATE: float = 0.0
    SENTRY_SEND_PII: bool = False

    # Tokens and sessions
    ACCESS_SECRET: str = "change-me-access-secret"
    REFRESH_SECRET: str = "change-me-refresh-secret"
    ALGORITHM: str = "HS256"
    TOKEN_ISSUER: str = "otpgate-auth"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 14
    SESSION_EXPIRY: int = 14 * 86400

    # SMS provider
    SMS_PROVIDER: Literal["twilio", "dev"] = "twilio"
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_VERIFY_SERVICE_SID: str = ""
    TWILIO_PHONE_NUMBER: str = ""
    OTP_DEV_CODE: str = "123456"
    DEFAULT_COUNTRY_CODE: str = "+91"

    # OTP issuance and verification
    OTP_EXPIRY: int = 600
    OTP_RESEND_INTERVAL: int = 60
    OTP_LIMIT_PER_MINUTE: int = 3
    OTP_LIMIT_PER_10MIN: int = 5
    OTP_LIMIT_PER_HOUR: int = 10
    OTP_ATTEMPT_EXPIRY: int = 3600
    MAX_OTP_ATTEMPTS: int = 5
    BLOCK_DURATION: int = 3600
    BLOCK_DURATION_OTP: int = 900
    OTP_SALT: str = "change-me-otp-salt"

    # Pre-approval
    ADMIN_REQUIRES_PREAPPROVAL: bool = True
    ADMIN_PHONE_NUMBERS: str = ""

    # Transaction PIN
    PIN_MIN_LENGTH: int = 4
    PIN_MAX_LENGTH: int = 6
    PIN_HASH_ROUNDS: int = 10
    MAX_PIN_ATTEMPTS: int = 5
    PIN_ATTEMPT_EXPIRY: int = 3600
    BLOCK_DURATION_PIN: int = 900

    # Card sharing
    SHARE_OTP_EXPIRY: int = 600
    MAX_SHARE_OTP_ATTEMPTS: int = 5

    # Location lookups for session metadata
    IPINFO_TOKEN: str | None = None

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @property
    def admin_phone_numbers(self) -> list[str]:
        return [p.strip() for p in self.ADMIN_PHONE_NUMBERS.split(",") if p.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
