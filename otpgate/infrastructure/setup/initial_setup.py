# Path: otpgate/infrastructure/setup/initial_setup.py
from otpgate.infrastructure.storage.nosql.repositories.role_member_repository import RoleMemberRepository
from otpgate.shared.config.settings import settings
from otpgate.shared.logging.service import LoggingService
from otpgate.shared.logging.config import LogConfig
from otpgate.shared.utilities.constants import UserRole
from otpgate.shared.utilities.phone import validate_and_format_phone

logger = LoggingService(LogConfig())


async def seed_admin_allow_list(members: RoleMemberRepository) -> int:
    """
    Make sure every phone in ADMIN_PHONE_NUMBERS has a row in `admins`.

    Invalid entries are skipped with an error log.

    Returns:
        int: Number of admin rows created.
    """
    created = 0
    for raw_phone in settings.admin_phone_numbers:
        try:
            phone = validate_and_format_phone(raw_phone)
        except ValueError:
            logger.error("Skipping invalid admin phone number", context={"phone": raw_phone})
            continue
        if await members.ensure_member(UserRole.ADMIN.value, phone):
            created += 1
            logger.info("Admin allow-list entry created", context={"phone": phone})
    return created
