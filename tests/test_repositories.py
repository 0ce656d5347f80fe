from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import DuplicateKeyError, PyMongoError
from redis.exceptions import ConnectionError as RedisConnectionError

from otpgate.infrastructure.storage.cache.repositories.cache_repository import CacheRepository
from otpgate.infrastructure.storage.nosql.repositories.account_repository import AccountRepository
from otpgate.infrastructure.storage.nosql.repositories.audit_log_repository import AuditLogRepository
from otpgate.infrastructure.storage.nosql.repositories.card_share_repository import CardShareRepository
from otpgate.infrastructure.storage.nosql.repositories.role_member_repository import RoleMemberRepository
from otpgate.shared.errors.infrastructure.database import CacheError, MongoError

PHONE = "+919876543210"


def make_db():
    collections = {}

    def get_collection(name):
        if name not in collections:
            collection = MagicMock()
            collection.name = name
            collection.find_one = AsyncMock(return_value=None)
            collection.insert_one = AsyncMock()
            collection.update_one = AsyncMock()
            collection.find_one_and_update = AsyncMock()
            collection.delete_one = AsyncMock()
            collections[name] = collection
        return collections[name]

    db = MagicMock()
    db.__getitem__.side_effect = get_collection
    return db, get_collection


@pytest.mark.asyncio
async def test_resolve_or_create_inserts_new_account():
    db, collection = make_db()
    accounts = collection("accounts")
    accounts.find_one_and_update.side_effect = (
        lambda query, update, **kwargs: {"_id": update["$setOnInsert"]["_id"], "phone": PHONE, "roles": ["user"]}
    )

    account, is_new = await AccountRepository(db).resolve_or_create(PHONE, "user")

    assert is_new is True
    query, update = accounts.find_one_and_update.await_args.args
    assert query == {"phone": PHONE}
    assert update["$addToSet"] == {"roles": "user"}
    assert "last_sign_in_at" in update["$set"]
    assert update["$setOnInsert"]["phone"] == PHONE
    assert accounts.find_one_and_update.await_args.kwargs["upsert"] is True


@pytest.mark.asyncio
async def test_resolve_or_create_returns_existing_account():
    db, collection = make_db()
    collection("accounts").find_one_and_update.return_value = {"_id": "acc-7", "phone": PHONE}

    account, is_new = await AccountRepository(db).resolve_or_create(PHONE, "admin")

    assert account["_id"] == "acc-7"
    assert is_new is False


@pytest.mark.asyncio
async def test_resolve_or_create_recovers_from_concurrent_insert():
    db, collection = make_db()
    accounts = collection("accounts")
    accounts.find_one_and_update.side_effect = [
        DuplicateKeyError("E11000 duplicate key error"),
        {"_id": "acc-winner", "phone": PHONE},
    ]

    account, is_new = await AccountRepository(db).resolve_or_create(PHONE, "user")

    assert account["_id"] == "acc-winner"
    assert is_new is False
    assert accounts.find_one_and_update.await_args_list[1].kwargs["upsert"] is False


@pytest.mark.asyncio
async def test_mongo_failures_become_mongo_error():
    db, collection = make_db()
    collection("accounts").find_one_and_update.side_effect = PyMongoError("down")

    with pytest.raises(MongoError) as exc:
        await AccountRepository(db).resolve_or_create(PHONE, "user")

    assert exc.value.status_code == 503


@pytest.mark.asyncio
async def test_role_tables_are_routed_by_role():
    db, collection = make_db()
    collection("admins").find_one.return_value = {"phone_number": PHONE}
    members = RoleMemberRepository(db)

    assert await members.exists("admin", PHONE) is True
    assert await members.exists("user", PHONE) is False
    collection("users").find_one.assert_awaited_once_with({"phone_number": PHONE})


@pytest.mark.asyncio
async def test_set_pin_reports_missing_row():
    db, collection = make_db()
    users = collection("users")
    users.update_one.return_value = MagicMock(matched_count=0, upserted_id=None)

    assert await RoleMemberRepository(db).set_pin("user", PHONE, "$2b$hash") is False
    query, update = users.update_one.await_args.args
    assert query == {"phone_number": PHONE}
    assert update["$set"]["transaction_pin"] == "$2b$hash"
    assert users.update_one.await_args.kwargs["upsert"] is False


@pytest.mark.asyncio
async def test_link_account_upserts_role_row():
    db, collection = make_db()
    users = collection("users")
    users.update_one.return_value = MagicMock(matched_count=0, upserted_id="new")

    await RoleMemberRepository(db).link_account("user", PHONE, "acc-1")

    query, update = users.update_one.await_args.args
    assert update["$set"]["account_id"] == "acc-1"
    assert users.update_one.await_args.kwargs["upsert"] is True


@pytest.mark.asyncio
async def test_ensure_member_skips_existing_rows():
    db, collection = make_db()
    admins = collection("admins")
    members = RoleMemberRepository(db)
    admins.update_one.return_value = MagicMock(matched_count=0, upserted_id="new")

    assert await members.ensure_member("admin", PHONE) is True

    admins.find_one.return_value = {"phone_number": PHONE}
    assert await members.ensure_member("admin", PHONE) is False
    assert admins.update_one.await_count == 1


@pytest.mark.asyncio
async def test_card_share_pending_document_shape():
    db, collection = make_db()
    shared_cards = collection("shared_cards")
    shared_cards.insert_one.return_value = MagicMock(inserted_id="share-1")
    repo = CardShareRepository(db)

    share = await repo.create_pending("card-1", "user-1", "admin-1", PHONE, "hash", expires_at=None)

    assert share["is_verified"] is False
    assert share["attempts"] == 0
    assert share["otp_hash"] == "hash"
    shared_cards.insert_one.assert_awaited_once_with(share)


@pytest.mark.asyncio
async def test_card_share_mark_verified_only_pending():
    db, collection = make_db()
    shared_cards = collection("shared_cards")
    repo = CardShareRepository(db)

    await repo.mark_verified("share-1")

    query, update = shared_cards.find_one_and_update.await_args.args
    assert query == {"_id": "share-1", "is_verified": False}
    assert update["$set"]["is_verified"] is True
    assert update["$unset"] == {"otp_hash": ""}


@pytest.mark.asyncio
async def test_card_share_attempts_reserved_only_below_limit():
    db, collection = make_db()
    shared_cards = collection("shared_cards")
    shared_cards.find_one_and_update.return_value = None
    repo = CardShareRepository(db)

    assert await repo.reserve_attempt("share-1", 5) is None

    query, update = shared_cards.find_one_and_update.await_args.args
    assert query == {"_id": "share-1", "is_verified": False, "attempts": {"$lt": 5}}
    assert update == {"$inc": {"attempts": 1}}


@pytest.mark.asyncio
async def test_audit_log_failure_is_not_fatal():
    db, collection = make_db()
    collection("audit_logs").insert_one.side_effect = PyMongoError("down")

    await AuditLogRepository(db).log("otp_sent", {"phone": PHONE})


@pytest.mark.asyncio
async def test_cache_repository_claims_slot_with_nx():
    redis = AsyncMock()
    redis.set.return_value = None
    repo = CacheRepository(redis)

    assert await repo.set_nx("otp-inflight:user:x", 60, "1") is False
    redis.set.assert_awaited_once_with("otp-inflight:user:x", "1", ex=60, nx=True)


@pytest.mark.asyncio
async def test_cache_repository_decodes_values():
    redis = AsyncMock()
    redis.get.return_value = b"3"
    redis.hgetall.return_value = {b"status": b"active"}
    repo = CacheRepository(redis)

    assert await repo.get("k") == "3"
    assert await repo.hgetall("h") == {"status": "active"}


@pytest.mark.asyncio
async def test_cache_repository_getdel_consumes_key():
    redis = AsyncMock()
    redis.getdel.side_effect = [b"session-1", None]
    repo = CacheRepository(redis)

    assert await repo.getdel("refresh_tokens:a:j") == "session-1"
    assert await repo.getdel("refresh_tokens:a:j") is None
    redis.getdel.assert_awaited_with("refresh_tokens:a:j")


@pytest.mark.asyncio
async def test_cache_repository_scan_keys():
    async def scan_iter(match, count):
        for key in (b"sessions:a:1", "sessions:a:2"):
            yield key

    redis = AsyncMock()
    redis.scan_iter = scan_iter

    assert await CacheRepository(redis).scan_keys("sessions:a:*") == ["sessions:a:1", "sessions:a:2"]


@pytest.mark.asyncio
async def test_cache_repository_wraps_redis_errors():
    redis = AsyncMock()
    redis.incr.side_effect = RedisConnectionError("refused")

    with pytest.raises(CacheError) as exc:
        await CacheRepository(redis).incr("k")

    assert exc.value.status_code == 503
