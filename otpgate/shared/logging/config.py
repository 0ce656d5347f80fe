# Path: otpgate/shared/logging/config.py
from pydantic import BaseModel, ConfigDict
from ..config.settings import settings
from ..utilities.constants import LogLevel


class LogConfig(BaseModel):
    """Configuration for logging service."""

    level: LogLevel = settings.LOG_LEVEL.upper()
    enable_console: bool = True
    # Container log collectors expect JSON lines
    json_console: bool = settings.ENVIRONMENT == "production"
    enable_file: bool = settings.LOG_TO_FILE
    file_path: str = settings.LOG_FILE_PATH
    max_file_size: int = 10 * 1024 * 1024  # 10 MB
    backup_count: int = 5

    model_config = ConfigDict(use_enum_values=True, validate_default=True)
