# Path: otpgate/shared/utilities/text.py
import hashlib
import hmac
import secrets

from otpgate.shared.config.settings import settings


def generate_otp_code(length: int = 6) -> str:
    """Generate a numeric OTP using a CSPRNG."""
    return f"{secrets.randbelow(10 ** length):0{length}d}"


def hash_otp(otp: str) -> str:
    """Hash OTP with salt for secure storage."""
    salted = f"{settings.OTP_SALT}:{otp}"
    return hashlib.sha256(salted.encode()).hexdigest()


def otp_matches(otp: str, stored_hash: str) -> bool:
    return hmac.compare_digest(hash_otp(otp), stored_hash)
