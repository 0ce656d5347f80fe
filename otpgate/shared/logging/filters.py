# Path: otpgate/shared/logging/filters.py
import logging

from otpgate.shared.utilities.helpers import sanitize_data


class SensitiveDataFilter(logging.Filter):
    """Filter to mask sensitive data in logs."""

    SENSITIVE_FIELDS = {
        "pin",
        "otp",
        "code",
        "token",
        "access_token",
        "refresh_token",
        "transaction_pin",
        "phone",
        "phone_number",
        "auth_token"
    }

    def filter(self, record: logging.LogRecord) -> bool:
        """Mask sensitive fields in log record."""
        context = getattr(record, "extra_context", None)
        if isinstance(context, dict):
            record.extra_context = {
                key: sanitize_data(value) if key.lower() in self.SENSITIVE_FIELDS and isinstance(value, str) else value
                for key, value in context.items()
            }
        return True
