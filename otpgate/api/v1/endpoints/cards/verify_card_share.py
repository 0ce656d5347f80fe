# Path: otpgate/api/v1/endpoints/cards/verify_card_share.py
from fastapi import APIRouter, Depends, Request, status

from otpgate.api.v1.dependencies.permissions import require_scope
from otpgate.domain.authentication.models.session import CurrentSession
from otpgate.domain.card_sharing.models.card_share import VerifyCardShareInput
from otpgate.infrastructure.di.container import container
from otpgate.shared.i18n.messages import get_message
from otpgate.shared.models.responses.base import StandardResponse, ErrorResponse
from otpgate.shared.utilities.language import extract_language

router = APIRouter(prefix="/api/v1", tags=["Card sharing"])


@router.post(
    "/share-card/verify",
    status_code=status.HTTP_200_OK,
    response_model=StandardResponse,
    summary="Confirm a card share with the OTP the recipient received",
    responses={
        400: {"model": ErrorResponse, "description": "Wrong or expired OTP"},
        404: {"model": ErrorResponse, "description": "No pending share"},
    },
)
async def verify_card_share_endpoint(
        data: VerifyCardShareInput,
        request: Request,
        current: CurrentSession = Depends(require_scope("read", "card_share")),
) -> StandardResponse:
    language = extract_language(request)
    result = await container.card_share_service().verify_share(data, current, language)
    return StandardResponse.success(data=result, message=get_message("card.share_verified", language))
