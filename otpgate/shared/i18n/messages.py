import json
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from otpgate.shared.config.settings import settings
from otpgate.shared.utilities.types import LanguageCode
from otpgate.shared.logging.service import LoggingService
from otpgate.shared.logging.config import LogConfig

logger = LoggingService(LogConfig())


@lru_cache()
def load_messages(language: LanguageCode) -> Dict[str, str]:
    file_path = Path(__file__).parent / f"{language}.json"
    try:
        with file_path.open(encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        logger.error("i18n file not found", context={"file_path": str(file_path), "language": language})
        return {}
    except json.JSONDecodeError as e:
        logger.error("Error loading i18n file", context={"file_path": str(file_path), "error": str(e)})
        return {}


def get_message(key: str, language: LanguageCode = "en", variables: Optional[Dict[str, object]] = None) -> str:
    """Get localized message for key, formatted with variables."""
    messages = load_messages(language) or load_messages(settings.DEFAULT_LANGUAGE)
    message = messages.get(key, "")
    if not message:
        logger.warning("Message not found for key", context={"key": key, "language": language})
        return key
    if variables:
        try:
            return message.format(**variables)
        except KeyError as e:
            logger.warning("Missing message variable", context={"key": key, "missing": str(e)})
    return message
