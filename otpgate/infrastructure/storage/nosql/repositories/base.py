# Path: otpgate/infrastructure/storage/nosql/repositories/base.py
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from otpgate.shared.i18n.messages import get_message
from otpgate.shared.errors.infrastructure.database import MongoError
from otpgate.shared.logging.service import LoggingService
from otpgate.shared.logging.config import LogConfig
from otpgate.shared.utilities.types import LanguageCode


class MongoRepository:
    """Repository for MongoDB operations.

    Documents are keyed by string ids, so `_id` values pass through untouched.
    Duplicate key errors are re-raised as-is for callers that rely on unique indexes.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str):
        """Initialize repository with database and logger."""
        self.db = db
        self.collection = db[collection_name]
        self.logger = LoggingService(LogConfig())

    def _fail(self, operation: str, error: Exception, language: LanguageCode) -> MongoError:
        self.logger.error(f"Mongo {operation} failed", context={"collection": self.collection.name, "error": str(error)})
        return MongoError(
            operation=operation,
            message=get_message("database.error", language),
            trace_id=self.logger.tracer.get_trace_id(),
            details={"collection": self.collection.name},
            language=language
        )

    async def insert_one(self, document: Dict[str, Any], language: LanguageCode = "en") -> str:
        """Insert a single document."""
        try:
            result = await self.collection.insert_one(document)
            inserted_id = str(result.inserted_id)
            self.logger.info("Mongo insert_one", context={"collection": self.collection.name, "id": inserted_id})
            return inserted_id
        except DuplicateKeyError:
            raise
        except PyMongoError as e:
            raise self._fail("insert", e, language)

    async def find_one(self, query: Dict[str, Any], language: LanguageCode = "en") -> Optional[Dict[str, Any]]:
        """Find a single document."""
        try:
            result = await self.collection.find_one(query)
            self.logger.debug("Mongo find_one", context={"collection": self.collection.name, "found": bool(result)})
            return result
        except PyMongoError as e:
            raise self._fail("find_one", e, language)

    async def update_one(
            self,
            query: Dict[str, Any],
            update: Dict[str, Any],
            upsert: bool = False,
            language: LanguageCode = "en"
    ) -> int:
        """Apply `$set` to a single document; returns the matched count (1 for an upsert insert)."""
        try:
            result = await self.collection.update_one(query, {"$set": update}, upsert=upsert)
            self.logger.info("Mongo update_one", context={
                "collection": self.collection.name,
                "matched": result.matched_count,
                "upserted": result.upserted_id is not None
            })
            return result.matched_count or (1 if result.upserted_id is not None else 0)
        except DuplicateKeyError:
            raise
        except PyMongoError as e:
            raise self._fail("update", e, language)

    async def find_one_and_update(
            self,
            query: Dict[str, Any],
            update: Dict[str, Any],
            upsert: bool = False,
            language: LanguageCode = "en"
    ) -> Optional[Dict[str, Any]]:
        """Atomically update a document and return it after the update."""
        try:
            return await self.collection.find_one_and_update(
                query,
                update,
                upsert=upsert,
                return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            raise
        except PyMongoError as e:
            raise self._fail("find_one_and_update", e, language)

    async def delete_one(self, query: Dict[str, Any], language: LanguageCode = "en") -> int:
        """Delete a single document."""
        try:
            result = await self.collection.delete_one(query)
            self.logger.info("Mongo delete_one", context={"collection": self.collection.name,
                                                          "deleted": result.deleted_count})
            return result.deleted_count
        except PyMongoError as e:
            raise self._fail("delete", e, language)
