# Path: otpgate/infrastructure/setup/database_setup.py
from contextlib import asynccontextmanager

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, IndexModel
from tenacity import retry, stop_after_attempt, wait_fixed, retry_if_exception_type

from otpgate.infrastructure.setup.initial_setup import seed_admin_allow_list
from otpgate.infrastructure.storage.cache.client import init_cache_pool, close_cache_pool
from otpgate.infrastructure.storage.nosql.client import MongoDBConnection
from otpgate.infrastructure.storage.nosql.repositories.role_member_repository import RoleMemberRepository
from otpgate.shared.config.settings import settings
from otpgate.shared.errors.infrastructure.database import CacheError, DatabaseConnectionError
from otpgate.shared.logging.service import LoggingService
from otpgate.shared.logging.config import LogConfig

logger = LoggingService(LogConfig())

INDEXES = {
    "accounts": [IndexModel([("phone", ASCENDING)], unique=True, name="uniq_phone")],
    "users": [IndexModel([("phone_number", ASCENDING)], unique=True, name="uniq_phone_number")],
    "admins": [IndexModel([("phone_number", ASCENDING)], unique=True, name="uniq_phone_number")],
    "shared_cards": [
        IndexModel(
            [("card_id", ASCENDING), ("shared_with_user", ASCENDING)],
            unique=True,
            partialFilterExpression={"is_verified": False},
            name="uniq_pending_share",
        ),
    ],
    "audit_logs": [IndexModel([("timestamp", ASCENDING)], name="timestamp")],
}


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create the unique indexes the repositories rely on for atomicity."""
    for collection, indexes in INDEXES.items():
        await db[collection].create_indexes(indexes)
    logger.info("MongoDB indexes ensured", context={"collections": list(INDEXES)})


def _log_attempt(name: str):
    return lambda retry_state: logger.error(
        f"{name} connection attempt {retry_state.attempt_number} failed",
        context={"error": str(retry_state.outcome.exception())},
    )


@retry(
    stop=stop_after_attempt(3),
    wait=wait_fixed(2),
    retry=retry_if_exception_type(DatabaseConnectionError),
    after=_log_attempt("MongoDB"),
    reraise=True,
)
async def connect_mongo():
    await MongoDBConnection.connect()


@retry(
    stop=stop_after_attempt(3),
    wait=wait_fixed(2),
    retry=retry_if_exception_type(CacheError),
    after=_log_attempt("Redis"),
    reraise=True,
)
async def connect_redis():
    await init_cache_pool()


@asynccontextmanager
async def database_lifespan():
    """
    Manage the lifecycle of MongoDB and Redis connections with retries.

    Yields:
        None: After connections, indexes and the admin allow-list are in place.
    """
    try:
        await connect_mongo()
        db = MongoDBConnection.get_db()
        await connect_redis()

        await ensure_indexes(db)
        seeded = await seed_admin_allow_list(RoleMemberRepository(db))
        logger.info("Initial setup completed", context={"admins_seeded": seeded, "db": settings.MONGO_DB})

        yield
    finally:
        await MongoDBConnection.disconnect()
        await close_cache_pool()
        logger.info("MongoDB and Redis connections closed", context={})
