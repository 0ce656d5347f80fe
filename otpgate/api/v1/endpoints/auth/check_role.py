# Path: otpgate/api/v1/endpoints/auth/check_role.py
from fastapi import APIRouter, Request, status

from otpgate.domain.authentication.models.otp import CheckRoleInput
from otpgate.infrastructure.di.container import container
from otpgate.shared.config.settings import settings
from otpgate.shared.i18n.messages import get_message
from otpgate.shared.models.responses.base import StandardResponse, ErrorResponse
from otpgate.shared.utilities.language import extract_language

router = APIRouter(prefix="/api/v1", tags=[settings.AUTH_TAG])


@router.post(
    "/check-role",
    status_code=status.HTTP_200_OK,
    response_model=StandardResponse,
    summary="Check whether a phone number is pre-approved for a role",
    responses={403: {"model": ErrorResponse, "description": "Phone number not pre-approved"}},
)
async def check_role_endpoint(data: CheckRoleInput, request: Request) -> StandardResponse:
    language = extract_language(request)
    result = await container.preapproval_service().check_role(data.phone, data.role, language)
    return StandardResponse.success(data=result, message=get_message("role.can_proceed", language))
