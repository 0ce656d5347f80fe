# Path: otpgate/infrastructure/storage/nosql/repositories/audit_log_repository.py
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from otpgate.infrastructure.storage.nosql.repositories.base import MongoRepository
from otpgate.shared.errors.infrastructure.database import MongoError
from otpgate.shared.utilities.time import utc_now


class AuditLogRepository(MongoRepository):
    def __init__(self, db: AsyncIOMotorDatabase):
        super().__init__(db, "audit_logs")

    async def log(self, action: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Record an audit entry. Audit failures are logged and never fail the request."""
        try:
            await self.insert_one({"action": action, "timestamp": utc_now(), "details": details or {}})
        except MongoError as e:
            self.logger.warning("Audit log write failed", context={"action": action, "error": e.message})
