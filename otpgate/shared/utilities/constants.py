# Path: otpgate/shared/utilities/constants.py
from enum import Enum


class HttpStatus(Enum):
    """HTTP status codes used across the API."""
    OK = 200
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    TOO_MANY_REQUESTS = 429
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class DomainErrorCode(Enum):
    """Error codes raised by domain services."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED_ACCESS = "UNAUTHORIZED_ACCESS"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    OTP_RATE_LIMIT = "OTP_RATE_LIMIT"
    OTP_ALREADY_SENT = "OTP_ALREADY_SENT"
    OTP_INVALID = "OTP_INVALID"
    OTP_EXPIRED = "OTP_EXPIRED"
    NOT_PRE_APPROVED = "NOT_PRE_APPROVED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_REVOKED = "TOKEN_REVOKED"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    PIN_NOT_SET = "PIN_NOT_SET"
    PIN_INVALID = "PIN_INVALID"
    PIN_RATE_LIMIT = "PIN_RATE_LIMIT"
    CARD_SHARE_PENDING = "CARD_SHARE_PENDING"
    CARD_SHARE_NOT_FOUND = "CARD_SHARE_NOT_FOUND"
    CARD_SHARE_EXPIRED = "CARD_SHARE_EXPIRED"
    CARD_SHARE_OTP_INVALID = "CARD_SHARE_OTP_INVALID"
    CARD_SHARE_RATE_LIMIT = "CARD_SHARE_RATE_LIMIT"


class InfraErrorCode(Enum):
    """Error codes raised by infrastructure adapters."""
    DATABASE_CONNECTION = "DATABASE_CONNECTION"
    MONGO_ERROR = "MONGO_ERROR"
    CACHE_ERROR = "CACHE_ERROR"
    SMS_SERVICE = "SMS_SERVICE_ERROR"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


# Role -> Mongo collection holding that role's allow-list rows
ROLE_COLLECTIONS = {
    UserRole.USER.value: "users",
    UserRole.ADMIN.value: "admins",
}
