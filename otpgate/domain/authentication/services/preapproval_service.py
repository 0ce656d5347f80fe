# Path: otpgate/domain/authentication/services/preapproval_service.py
from otpgate.infrastructure.storage.nosql.repositories.role_member_repository import RoleMemberRepository
from otpgate.shared.base_service.base_service import BaseService
from otpgate.shared.config.settings import settings
from otpgate.shared.errors.domain.security import NotPreApprovedError
from otpgate.shared.i18n.messages import get_message
from otpgate.shared.utilities.constants import UserRole
from otpgate.shared.utilities.types import LanguageCode


class PreApprovalService(BaseService):
    """Allow-list gate deciding whether a phone may authenticate under a role."""

    def __init__(self, members: RoleMemberRepository):
        super().__init__()
        self.members = members

    def requires_preapproval(self, role: str) -> bool:
        if role == UserRole.ADMIN.value:
            return settings.ADMIN_REQUIRES_PREAPPROVAL
        return True

    async def ensure_pre_approved(self, phone: str, role: str, language: LanguageCode = "en") -> None:
        """Raise NotPreApprovedError unless `phone` is on the allow-list for `role`."""
        if not self.requires_preapproval(role):
            return
        if not await self.members.exists(role, phone):
            self.logger.warning("Phone not pre-approved", context={"phone": phone, "role": role})
            raise NotPreApprovedError(
                role=role,
                message=get_message("role.not_pre_approved", language, {"role": role.capitalize()}),
                language=language
            )

    async def check_role(self, phone: str, role: str, language: LanguageCode = "en") -> dict:
        async def operation():
            await self.ensure_pre_approved(phone, role, language)
            self.logger.info("Role check passed", context={"phone": phone, "role": role})
            return {"can_proceed": True, "role": role}

        return await self.execute(operation, {"phone": phone, "role": role, "action": "check_role"}, language)
