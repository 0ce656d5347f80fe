# Path: otpgate/shared/logging/service.py
import logging
from typing import Optional, Dict, Any
from .config import LogConfig
from .handlers import LogHandlerFactory
from .tracers import Tracer
from ..utilities.types import TraceId
from ..utilities.constants import LogLevel

LOGGER_NAME = "otpgate"


class LoggingService:
    """Structured logging with a context dict and per-instance trace ids.

    All instances write through the one `otpgate` logger, whose handlers are
    attached by the first instance created.
    """

    def __init__(self, config: LogConfig, tracer: Tracer = None):
        self.logger = logging.getLogger(LOGGER_NAME)
        self.logger.setLevel(getattr(logging, config.level))
        self.tracer = tracer or Tracer()

        if not self.logger.handlers:
            for handler in LogHandlerFactory.get_handlers(config):
                self.logger.addHandler(handler)
        self.logger.propagate = False

    def log(
            self,
            level: str,
            message: str,
            context: Optional[Dict[str, Any]] = None,
            trace_id: Optional[TraceId] = None
    ) -> None:
        extra = {
            "extra_context": context or {},
            "extra_trace_id": trace_id or self.tracer.get_trace_id(),
            "extra_span_id": self.tracer.get_span_id()
        }
        self.logger.log(getattr(logging, level), message, extra=extra)

    def debug(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self.log(LogLevel.DEBUG.value, message, context)

    def info(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self.log(LogLevel.INFO.value, message, context)

    def warning(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self.log(LogLevel.WARNING.value, message, context)

    def error(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self.log(LogLevel.ERROR.value, message, context)

    def critical(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self.log(LogLevel.CRITICAL.value, message, context)
