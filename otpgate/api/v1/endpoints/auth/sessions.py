# Path: otpgate/api/v1/endpoints/auth/sessions.py
from fastapi import APIRouter, Depends, Request, status

from otpgate.api.v1.dependencies.permissions import require_scope
from otpgate.domain.authentication.models.session import CurrentSession
from otpgate.infrastructure.di.container import container
from otpgate.shared.config.settings import settings
from otpgate.shared.i18n.messages import get_message
from otpgate.shared.models.responses.base import StandardResponse
from otpgate.shared.utilities.language import extract_language

router = APIRouter(prefix="/api/v1", tags=[settings.AUTH_TAG])


@router.get("/sessions", status_code=status.HTTP_200_OK, response_model=StandardResponse, summary="List active sessions")
async def get_sessions_endpoint(
        request: Request,
        current: CurrentSession = Depends(require_scope("read", "sessions")),
) -> StandardResponse:
    language = extract_language(request)
    result = await container.session_service().get_sessions(current, language)
    return StandardResponse.success(data=result, message=get_message("session.list", language))
