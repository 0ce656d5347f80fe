# Path: otpgate/api/v1/endpoints/auth/verify_otp.py
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from otpgate.domain.authentication.models.otp import VerifyOTPInput
from otpgate.infrastructure.di.container import container
from otpgate.shared.config.settings import settings
from otpgate.shared.i18n.messages import get_message
from otpgate.shared.models.responses.base import StandardResponse, ErrorResponse
from otpgate.shared.utilities.language import extract_language
from otpgate.shared.utilities.network import extract_client_ip

router = APIRouter(prefix="/api/v1", tags=[settings.AUTH_TAG])


@router.post(
    "/verify-otp",
    status_code=status.HTTP_200_OK,
    response_model=StandardResponse,
    summary="Verify an OTP and open a session",
    responses={
        200: {
            "description": "OTP verified, session issued",
            "content": {
                "application/json": {
                    "example": {
                        "data": {
                            "session": {
                                "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                                "refresh_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                                "token_type": "bearer",
                                "expires_in": 3600,
                                "session_id": "5f0c2a4e-8d1b-4c3e-9a57-2b1f3d6e7c80"
                            },
                            "user": {
                                "id": "0b7f5e1c-2a3d-4e6f-8a9b-1c2d3e4f5a6b",
                                "phone_number": "+919876543210",
                                "role": "user"
                            },
                            "is_new_user": False
                        },
                        "meta": {"message": "OTP verified successfully.", "status": "success", "code": 200}
                    }
                }
            }
        },
        400: {"model": ErrorResponse, "description": "Invalid or expired OTP"},
        403: {"model": ErrorResponse, "description": "Phone number not pre-approved"},
        429: {"model": ErrorResponse, "description": "Too many invalid attempts"},
    },
)
async def verify_otp_endpoint(
        data: VerifyOTPInput,
        request: Request,
        client_ip: Annotated[str, Depends(extract_client_ip)],
) -> StandardResponse:
    language = extract_language(request)
    result = await container.otp_service().verify_otp(
        data,
        client_ip=client_ip,
        user_agent=request.headers.get("User-Agent", ""),
        language=language
    )
    return StandardResponse.success(data=result, message=get_message("otp.verified", language))
