# Path: otpgate/infrastructure/storage/nosql/repositories/account_repository.py
from typing import Any, Dict, Tuple
from uuid import uuid4

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from otpgate.infrastructure.storage.nosql.repositories.base import MongoRepository
from otpgate.shared.utilities.time import utc_now


class AccountRepository(MongoRepository):
    """Identity records keyed by E.164 phone number (unique index on `phone`)."""

    def __init__(self, db: AsyncIOMotorDatabase):
        super().__init__(db, "accounts")

    async def resolve_or_create(self, phone: str, role: str) -> Tuple[Dict[str, Any], bool]:
        """Return the account for `phone`, creating it if absent, plus whether it was created.

        A single upsert against the unique phone index. Two concurrent upserts can both
        miss and race on insert; the loser gets DuplicateKeyError and repeats the update,
        which then matches the winner's document.
        """
        candidate_id = str(uuid4())
        now = utc_now()
        update = {
            "$setOnInsert": {
                "_id": candidate_id,
                "phone": phone,
                "phone_confirmed_at": now,
                "created_at": now,
            },
            "$addToSet": {"roles": role},
            "$set": {"last_sign_in_at": now, "updated_at": now},
        }
        try:
            account = await self.find_one_and_update({"phone": phone}, update, upsert=True)
        except DuplicateKeyError:
            self.logger.info("Concurrent account creation detected, re-reading", context={"phone": phone})
            account = await self.find_one_and_update({"phone": phone}, update, upsert=False)

        is_new = account["_id"] == candidate_id
        self.logger.info("Account resolved", context={"account_id": account["_id"], "is_new": is_new, "role": role})
        return account, is_new
