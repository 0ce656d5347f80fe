# Path: otpgate/shared/utilities/password.py
from passlib.context import CryptContext

from otpgate.shared.config.settings import settings
from otpgate.shared.logging.service import LoggingService
from otpgate.shared.logging.config import LogConfig

# Transaction PIN hashing context (bcrypt salts every hash)
pin_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.PIN_HASH_ROUNDS
)

logger = LoggingService(LogConfig())


def hash_pin(pin: str) -> str:
    """
    Hash a transaction PIN for storage.

    Raises:
        ValueError: If the PIN is empty or not a string.
    """
    if not pin or not isinstance(pin, str):
        logger.error("Invalid PIN input", context={"input_type": str(type(pin))})
        raise ValueError("PIN must be a non-empty string")
    return pin_context.hash(pin)


def verify_pin(plain_pin: str, hashed_pin: str) -> bool:
    """
    Check a plain PIN against its stored hash.

    Raises:
        ValueError: If either input is empty or not a string.
    """
    if not plain_pin or not isinstance(plain_pin, str):
        logger.error("Invalid plain PIN input", context={"input_type": str(type(plain_pin))})
        raise ValueError("PIN must be a non-empty string")
    if not hashed_pin or not isinstance(hashed_pin, str):
        logger.error("Invalid hashed PIN input", context={"input_type": str(type(hashed_pin))})
        raise ValueError("Hashed PIN must be a non-empty string")
    try:
        return pin_context.verify(plain_pin, hashed_pin)
    except ValueError as e:
        # Malformed hash in storage; treat as a non-match
        logger.error("PIN hash could not be parsed", context={"error": str(e)})
        return False
