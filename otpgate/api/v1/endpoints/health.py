# Path: otpgate/api/v1/endpoints/health.py
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from otpgate.infrastructure.di.container import container
from otpgate.infrastructure.storage.cache.client import get_cache_client
from otpgate.shared.errors.base import BaseError
from otpgate.shared.i18n.messages import get_message
from otpgate.shared.models.responses.base import StandardResponse
from otpgate.shared.utilities.health_check import validate_dependencies

router = APIRouter(tags=["Health"])


@router.get("/health", summary="Report Redis and MongoDB reachability")
async def health_endpoint() -> JSONResponse:
    try:
        redis = await get_cache_client()
        db = container.mongo_db()
    except BaseError:
        status = {"redis_ok": False, "mongo_ok": False}
    else:
        status = await validate_dependencies(redis, db)

    healthy = all(status.values())
    body = StandardResponse.success(
        data=status,
        message=get_message("health.ok" if healthy else "health.degraded"),
        code=200 if healthy else 503
    )
    return JSONResponse(status_code=200 if healthy else 503, content=body.model_dump())
