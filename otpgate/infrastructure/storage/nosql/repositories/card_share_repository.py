# Path: otpgate/infrastructure/storage/nosql/repositories/card_share_repository.py
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import uuid4

from motor.motor_asyncio import AsyncIOMotorDatabase

from otpgate.infrastructure.storage.nosql.repositories.base import MongoRepository
from otpgate.shared.utilities.time import utc_now


class CardShareRepository(MongoRepository):
    """Shares in `shared_cards`.

    A partial unique index on (card_id, shared_with_user) where is_verified is false
    allows only one pending share per pair; inserts racing for it raise DuplicateKeyError.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        super().__init__(db, "shared_cards")

    async def find_pending(self, card_id: str, shared_with_user: str) -> Optional[Dict[str, Any]]:
        return await self.find_one({
            "card_id": card_id,
            "shared_with_user": shared_with_user,
            "is_verified": False
        })

    async def create_pending(
            self,
            card_id: str,
            shared_with_user: str,
            shared_by_admin: str,
            phone_number: str,
            otp_hash: str,
            expires_at: datetime
    ) -> Dict[str, Any]:
        document = {
            "_id": str(uuid4()),
            "card_id": card_id,
            "shared_with_user": shared_with_user,
            "shared_by_admin": shared_by_admin,
            "phone_number": phone_number,
            "otp_hash": otp_hash,
            "is_verified": False,
            "attempts": 0,
            "shared_at": utc_now(),
            "expires_at": expires_at,
        }
        await self.insert_one(document)
        return document

    async def remove(self, share_id: str) -> int:
        return await self.delete_one({"_id": share_id})

    async def reserve_attempt(self, share_id: str, max_attempts: int) -> Optional[Dict[str, Any]]:
        """Spend one verification attempt on a pending share.

        Returns the share with its new `attempts` count, or None once `max_attempts`
        are spent (or the share was verified or removed meanwhile).
        """
        return await self.find_one_and_update(
            {"_id": share_id, "is_verified": False, "attempts": {"$lt": max_attempts}},
            {"$inc": {"attempts": 1}}
        )

    async def mark_verified(self, share_id: str) -> Optional[Dict[str, Any]]:
        """Flip a pending share to verified; None if it was verified or removed concurrently."""
        return await self.find_one_and_update(
            {"_id": share_id, "is_verified": False},
            {"$set": {"is_verified": True, "verified_at": utc_now()}, "$unset": {"otp_hash": ""}}
        )
