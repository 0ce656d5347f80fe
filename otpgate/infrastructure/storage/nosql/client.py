# Path: otpgate/infrastructure/storage/nosql/client.py
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError
from otpgate.shared.config.settings import settings
from otpgate.shared.logging.service import LoggingService
from otpgate.shared.logging.config import LogConfig
from otpgate.shared.errors.infrastructure.database import DatabaseConnectionError

logger = LoggingService(LogConfig())


class MongoDBConnection:
    _client: AsyncIOMotorClient = None
    _db: AsyncIOMotorDatabase = None

    @classmethod
    async def connect(cls):
        """Connect to MongoDB."""
        if cls._client is None:
            try:
                logger.info("Attempting MongoDB connection", context={"db": settings.MONGO_DB, "timeout": settings.MONGO_TIMEOUT})

                cls._client = AsyncIOMotorClient(
                    settings.MONGO_URI,
                    serverSelectionTimeoutMS=settings.MONGO_TIMEOUT,
                    tz_aware=True
                )
                cls._db = cls._client[settings.MONGO_DB]
                await cls._client.admin.command("ping")

                logger.info("MongoDB connection established", context={"db": settings.MONGO_DB})

            except PyMongoError as e:
                logger.error("MongoDB connection failed", context={
                    "timeout": settings.MONGO_TIMEOUT,
                    "error": str(e)
                })
                cls._client = None
                cls._db = None
                raise DatabaseConnectionError(
                    db_type="MongoDB",
                    message="MongoDB unavailable",
                    trace_id=logger.tracer.get_trace_id(),
                    details={"error": str(e)}
                )

    @classmethod
    async def disconnect(cls):
        """Disconnect from MongoDB."""
        if cls._client is not None:
            cls._client.close()
            logger.info("MongoDB connection closed", context={"db": settings.MONGO_DB})
            cls._client = None
            cls._db = None

    @classmethod
    def get_db(cls) -> AsyncIOMotorDatabase:
        """Get MongoDB database instance."""
        if cls._db is None:
            logger.error("Attempt to access MongoDB before connection was established", context={})
            raise DatabaseConnectionError(
                db_type="MongoDB",
                message="MongoDB not connected. Call connect() first.",
                trace_id=logger.tracer.get_trace_id()
            )
        return cls._db

