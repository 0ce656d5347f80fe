# path: otpgate/shared/utilities/language.py
from fastapi import Request
from otpgate.shared.config.settings import settings


def extract_language(request: Request) -> str:
    lang = request.query_params.get("response_language")
    if not lang:
        header_lang = request.headers.get("accept-language")
        if header_lang:
            lang = header_lang.split(",")[0].split("-")[0].strip()

    supported = settings.SUPPORTED_LANGUAGES.split(",")
    return lang if lang in supported else settings.DEFAULT_LANGUAGE
