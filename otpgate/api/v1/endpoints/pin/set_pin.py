# Path: otpgate/api/v1/endpoints/pin/set_pin.py
from fastapi import APIRouter, Depends, Request, status

from otpgate.api.v1.dependencies.permissions import ensure_session_matches, require_scope
from otpgate.domain.authentication.models.session import CurrentSession
from otpgate.domain.pin.models.pin import SetPinInput
from otpgate.infrastructure.di.container import container
from otpgate.shared.i18n.messages import get_message
from otpgate.shared.models.responses.base import StandardResponse, ErrorResponse
from otpgate.shared.utilities.language import extract_language

router = APIRouter(prefix="/api/v1", tags=["Transaction PIN"])


@router.post(
    "/set-pin",
    status_code=status.HTTP_200_OK,
    response_model=StandardResponse,
    summary="Set or replace the transaction PIN",
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
)
async def set_pin_endpoint(
        data: SetPinInput,
        request: Request,
        current: CurrentSession = Depends(require_scope("write", "pin")),
) -> StandardResponse:
    language = extract_language(request)
    ensure_session_matches(current, data.phone_number, data.role, language)
    result = await container.pin_service().set_pin(data, language)
    return StandardResponse.success(data=result, message=get_message("pin.set", language))
