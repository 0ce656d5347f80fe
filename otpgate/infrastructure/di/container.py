from dependency_injector import containers, providers

from otpgate.shared.config.settings import settings

from otpgate.infrastructure.sms.dev_provider import DevSmsProvider
from otpgate.infrastructure.sms.twilio_provider import TwilioSmsProvider
from otpgate.infrastructure.storage.cache.repositories.cache_repository import CacheRepository
from otpgate.infrastructure.storage.nosql.client import MongoDBConnection
from otpgate.infrastructure.storage.nosql.repositories.account_repository import AccountRepository
from otpgate.infrastructure.storage.nosql.repositories.audit_log_repository import AuditLogRepository
from otpgate.infrastructure.storage.nosql.repositories.card_share_repository import CardShareRepository
from otpgate.infrastructure.storage.nosql.repositories.role_member_repository import RoleMemberRepository

from otpgate.domain.authentication.services.otp_service import OTPService
from otpgate.domain.authentication.services.preapproval_service import PreApprovalService
from otpgate.domain.authentication.services.session_service import SessionService
from otpgate.domain.card_sharing.services.card_share_service import CardShareService
from otpgate.domain.pin.services.pin_service import PinService


class Container(containers.DeclarativeContainer):
    """Dependency Injection container for managing application dependencies."""

    # MongoDB database, connected during application startup
    mongo_db = providers.Callable(MongoDBConnection.get_db)

    # Repositories
    cache_repo = providers.Singleton(CacheRepository)
    account_repo = providers.Factory(AccountRepository, db=mongo_db)
    member_repo = providers.Factory(RoleMemberRepository, db=mongo_db)
    card_share_repo = providers.Factory(CardShareRepository, db=mongo_db)
    audit_repo = providers.Factory(AuditLogRepository, db=mongo_db)

    # SMS provider chosen by SMS_PROVIDER
    sms_provider = providers.Selector(
        lambda: settings.SMS_PROVIDER,
        twilio=providers.Singleton(TwilioSmsProvider),
        dev=providers.Singleton(DevSmsProvider),
    )

    # Services
    session_service = providers.Factory(SessionService, cache=cache_repo)
    preapproval_service = providers.Factory(PreApprovalService, members=member_repo)

    otp_service = providers.Factory(
        OTPService,
        cache=cache_repo,
        sms_provider=sms_provider,
        preapproval=preapproval_service,
        accounts=account_repo,
        members=member_repo,
        sessions=session_service,
        audit=audit_repo
    )

    pin_service = providers.Factory(PinService, members=member_repo, cache=cache_repo, audit=audit_repo)

    card_share_service = providers.Factory(
        CardShareService,
        shares=card_share_repo,
        sms_provider=sms_provider,
        audit=audit_repo
    )


# Create the container instance
container = Container()
