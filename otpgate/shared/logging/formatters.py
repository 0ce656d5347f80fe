# Path: otpgate/shared/logging/formatters.py
import json
import logging
from datetime import datetime
from typing import Any, Dict
from uuid import UUID

from colorama import Fore, Style, init

from ..config.settings import settings
from ..utilities.time import utc_now

# Initialize colorama for Windows compatibility
init()


def serialize_context(context: Dict[str, Any]) -> Dict[str, Any]:
    """Convert UUIDs, datetimes and other objects in a log context to JSON-safe values."""
    serialized = {}
    for key, value in context.items():
        if isinstance(value, (UUID, datetime)):
            serialized[key] = value.isoformat() if isinstance(value, datetime) else str(value)
        elif isinstance(value, (dict, list, str, int, float, bool, type(None))):
            serialized[key] = value
        else:
            serialized[key] = str(value)
    return serialized


class JsonFormatter(logging.Formatter):
    """One JSON object per line, tagged with service and environment."""

    def format(self, record: logging.LogRecord) -> str:
        trace_id = getattr(record, "extra_trace_id", None)
        span_id = getattr(record, "extra_span_id", None)
        log_data = {
            "timestamp": utc_now().isoformat(),
            "service": settings.APP_NAME,
            "environment": settings.ENVIRONMENT,
            "level": record.levelname,
            "message": record.getMessage(),
            "trace_id": str(trace_id) if trace_id else None,
            "span_id": span_id,
            "context": serialize_context(getattr(record, "extra_context", {})),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored single-line output for local development."""

    LEVEL_COLORS = {
        "DEBUG": Fore.CYAN,
        "INFO": Fore.WHITE,
        "WARNING": Fore.YELLOW,
        "ERROR": Fore.RED,
        "CRITICAL": Fore.MAGENTA + Style.BRIGHT
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname, Fore.WHITE)
        context = getattr(record, "extra_context", {})
        context_str = f" | {serialize_context(context)}" if context else ""
        trace_id = getattr(record, "extra_trace_id", None) or "-"
        return (
            f"{color}{utc_now():%H:%M:%S} {record.levelname:<8} {record.module} | "
            f"{record.getMessage()} | trace_id={trace_id}{context_str}{Style.RESET_ALL}"
        )
