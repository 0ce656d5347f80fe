# Path: otpgate/api/v1/endpoints/auth/send_otp.py
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from otpgate.domain.authentication.models.otp import RequestOTPInput
from otpgate.infrastructure.di.container import container
from otpgate.shared.config.settings import settings
from otpgate.shared.i18n.messages import get_message
from otpgate.shared.logging.config import LogConfig
from otpgate.shared.logging.service import LoggingService
from otpgate.shared.models.responses.base import StandardResponse, ErrorResponse
from otpgate.shared.utilities.language import extract_language
from otpgate.shared.utilities.network import extract_client_ip

router = APIRouter(prefix="/api/v1", tags=[settings.AUTH_TAG])

logger = LoggingService(LogConfig())


@router.post(
    "/send-otp",
    status_code=status.HTTP_200_OK,
    response_model=StandardResponse,
    summary="Send an OTP to a pre-approved phone number",
    responses={
        200: {
            "description": "Verification started",
            "content": {
                "application/json": {
                    "example": {
                        "data": {
                            "sid": "VE0123456789abcdef0123456789abcdef",
                            "status": "pending",
                            "expires_in": 600,
                            "resend_after": 60
                        },
                        "meta": {"message": "OTP sent successfully.", "status": "success", "code": 200}
                    }
                }
            }
        },
        403: {"model": ErrorResponse, "description": "Phone number not pre-approved"},
        429: {"model": ErrorResponse, "description": "Rate limited, blocked or an OTP is already in flight"},
        503: {"model": ErrorResponse, "description": "SMS provider unavailable"},
    },
)
async def send_otp_endpoint(
        data: RequestOTPInput,
        request: Request,
        client_ip: Annotated[str, Depends(extract_client_ip)],
) -> StandardResponse:
    """
    Start a phone verification.

    Args:
        data: Phone number and role.
        request: FastAPI request object.
        client_ip: Client IP address.

    Returns:
        StandardResponse with the verification sid and timing hints.
    """
    language = extract_language(request)
    result = await container.otp_service().send_otp(data, client_ip=client_ip, language=language)
    logger.info("OTP request successful", context={"phone": data.phone, "role": data.role, "ip": client_ip})
    return StandardResponse.success(data=result, message=get_message("otp.sent", language))
