# Path: otpgate/api/v1/endpoints/cards/share_card.py
from fastapi import APIRouter, Depends, Request, status

from otpgate.api.v1.dependencies.permissions import require_scope
from otpgate.domain.authentication.models.session import CurrentSession
from otpgate.domain.card_sharing.models.card_share import ShareCardInput
from otpgate.infrastructure.di.container import container
from otpgate.shared.i18n.messages import get_message
from otpgate.shared.models.responses.base import StandardResponse, ErrorResponse
from otpgate.shared.utilities.language import extract_language

router = APIRouter(prefix="/api/v1", tags=["Card sharing"])


@router.post(
    "/share-card",
    status_code=status.HTTP_200_OK,
    response_model=StandardResponse,
    summary="Share a card and text the recipient an access OTP",
    responses={
        403: {"model": ErrorResponse, "description": "Not an admin, or sharing on behalf of another admin"},
        409: {"model": ErrorResponse, "description": "A share is already pending verification"},
        503: {"model": ErrorResponse, "description": "SMS provider unavailable"},
    },
)
async def share_card_endpoint(
        data: ShareCardInput,
        request: Request,
        current: CurrentSession = Depends(require_scope("write", "card_share")),
) -> StandardResponse:
    language = extract_language(request)
    result = await container.card_share_service().share_card(data, current, language)
    return StandardResponse.success(data=result, message=get_message("card.shared", language))
