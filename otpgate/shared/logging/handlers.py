# Path: otpgate/shared/logging/handlers.py
import logging
import logging.handlers
import sys
from pathlib import Path

from .config import LogConfig
from .filters import SensitiveDataFilter
from .formatters import ConsoleFormatter, JsonFormatter


class LogHandlerFactory:
    """Factory for creating log handlers. Every handler masks sensitive context."""

    @staticmethod
    def _finish(handler: logging.Handler, config: LogConfig, formatter: logging.Formatter) -> logging.Handler:
        handler.setLevel(config.level)
        handler.setFormatter(formatter)
        handler.addFilter(SensitiveDataFilter())
        return handler

    @classmethod
    def create_console_handler(cls, config: LogConfig) -> logging.Handler:
        """Stdout handler; JSON lines when `json_console` is set, colored text otherwise."""
        formatter = JsonFormatter() if config.json_console else ConsoleFormatter()
        return cls._finish(logging.StreamHandler(stream=sys.stdout), config, formatter)

    @classmethod
    def create_file_handler(cls, config: LogConfig) -> logging.Handler:
        """Rotating JSON file handler."""
        Path(config.file_path).parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            filename=config.file_path,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
            encoding="utf-8"
        )
        return cls._finish(handler, config, JsonFormatter())

    @classmethod
    def get_handlers(cls, config: LogConfig) -> list[logging.Handler]:
        handlers = []
        if config.enable_console:
            handlers.append(cls.create_console_handler(config))
        if config.enable_file:
            handlers.append(cls.create_file_handler(config))
        return handlers
