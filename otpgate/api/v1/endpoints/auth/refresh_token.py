# Path: otpgate/api/v1/endpoints/auth/refresh_token.py
from fastapi import APIRouter, Request, status

from otpgate.domain.authentication.models.session import RefreshTokenInput
from otpgate.infrastructure.di.container import container
from otpgate.shared.config.settings import settings
from otpgate.shared.i18n.messages import get_message
from otpgate.shared.models.responses.base import StandardResponse, ErrorResponse
from otpgate.shared.utilities.language import extract_language

router = APIRouter(prefix="/api/v1", tags=[settings.AUTH_TAG])


@router.post(
    "/refresh-token",
    status_code=status.HTTP_200_OK,
    response_model=StandardResponse,
    summary="Rotate a refresh token",
    responses={401: {"model": ErrorResponse, "description": "Invalid, expired or reused refresh token"}},
)
async def refresh_token_endpoint(data: RefreshTokenInput, request: Request) -> StandardResponse:
    language = extract_language(request)
    result = await container.session_service().refresh(data.refresh_token, language)
    return StandardResponse.success(data=result, message=get_message("token.refreshed", language))
