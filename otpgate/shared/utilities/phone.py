# Path: otpgate/shared/utilities/phone.py
import re

from otpgate.shared.config.settings import settings

E164_PATTERN = re.compile(r"^\+[1-9]\d{7,14}$")


def normalize_phone_e164(phone: str, default_country_code: str | None = None) -> str:
    """Normalize a phone number to E.164.

    Bare national numbers get the default country code; "00" prefixes become "+"
    and a leading trunk "0" is dropped.
    """
    if not phone:
        return ""
    country_code = default_country_code or settings.DEFAULT_COUNTRY_CODE
    raw = re.sub(r"[^\d+]", "", phone)
    if raw.startswith("+"):
        return raw
    if raw.startswith("00"):
        return "+" + raw[2:]
    if raw.startswith("0"):
        raw = raw.lstrip("0")
    return country_code + raw


def validate_and_format_phone(phone: str) -> str:
    """Normalize and validate; raises ValueError for anything that is not E.164."""
    normalized = normalize_phone_e164(phone)
    if not E164_PATTERN.match(normalized):
        raise ValueError(f"Invalid phone number: {phone!r}")
    return normalized
