# Path: otpgate/infrastructure/storage/nosql/repositories/role_member_repository.py
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from otpgate.infrastructure.storage.nosql.repositories.base import MongoRepository
from otpgate.shared.utilities.constants import ROLE_COLLECTIONS, UserRole
from otpgate.shared.utilities.time import utc_now


class RoleMemberRepository:
    """Allow-list rows in the `users` and `admins` collections, keyed by `phone_number`."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.tables = {role: MongoRepository(db, name) for role, name in ROLE_COLLECTIONS.items()}

    def table(self, role: str) -> MongoRepository:
        """Role table for `role`; anything other than admin reads from users."""
        return self.tables.get(role, self.tables[UserRole.USER.value])

    async def find_by_phone(self, role: str, phone: str) -> Optional[Dict[str, Any]]:
        return await self.table(role).find_one({"phone_number": phone})

    async def exists(self, role: str, phone: str) -> bool:
        return await self.find_by_phone(role, phone) is not None

    async def link_account(self, role: str, phone: str, account_id: str) -> None:
        """Attach the identity account to the role row, creating the row if needed."""
        await self.table(role).update_one(
            {"phone_number": phone},
            {"phone_number": phone, "account_id": account_id, "updated_at": utc_now()},
            upsert=True
        )

    async def set_pin(self, role: str, phone: str, pin_hash: str) -> bool:
        """Store the PIN hash; returns False when no row exists for the phone."""
        matched = await self.table(role).update_one(
            {"phone_number": phone},
            {"transaction_pin": pin_hash, "pin_updated_at": utc_now()}
        )
        return matched > 0

    async def ensure_member(self, role: str, phone: str) -> bool:
        """Insert an allow-list row if absent; returns True when a row was created."""
        table = self.table(role)
        if await table.find_one({"phone_number": phone}):
            return False
        await table.update_one(
            {"phone_number": phone},
            {"phone_number": phone, "created_at": utc_now()},
            upsert=True
        )
        return True
