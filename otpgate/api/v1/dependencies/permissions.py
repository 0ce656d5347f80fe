# Path: otpgate/api/v1/dependencies/permissions.py
from fastapi import Depends, Request

from otpgate.domain.authentication.models.session import CurrentSession
from otpgate.infrastructure.di.container import container
from otpgate.shared.errors.domain.security import UnauthorizedAccessError
from otpgate.shared.i18n.messages import get_message
from otpgate.shared.security.permissions_loader import check_permissions
from otpgate.shared.security.token import get_token_from_header
from otpgate.shared.utilities.constants import DomainErrorCode, HttpStatus
from otpgate.shared.utilities.language import extract_language


async def get_current_session(request: Request) -> CurrentSession:
    """Authenticate the bearer access token against its live session."""
    language = extract_language(request)
    token = get_token_from_header(request, language)
    return await container.session_service().authenticate(token, language)


def require_scope(action: str, resource: str):
    """Dependency factory: authenticated session holding `{action}:{resource}`."""
    async def dependency(request: Request, current: CurrentSession = Depends(get_current_session)) -> CurrentSession:
        check_permissions(current.role, action, resource, extract_language(request))
        return current

    return dependency


def ensure_session_matches(current: CurrentSession, phone: str, role: str, language: str = "en") -> None:
    """A session may only act on its own phone number and role."""
    if current.phone != phone or current.role != role:
        raise UnauthorizedAccessError(
            resource="session",
            error_code=DomainErrorCode.PERMISSION_DENIED.value,
            message=get_message("auth.forbidden", language),
            status_code=HttpStatus.FORBIDDEN.value,
            details={"role": role},
            language=language
        )
