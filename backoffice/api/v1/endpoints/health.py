"""Health check endpoints: liveness and readiness (store + cache)."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.v1.dependencies import get_cache
from backoffice.infrastructure.cache import CacheProtocol
from backoffice.infrastructure.persistence.database import get_db
from backoffice.schemas.health import HealthResponse, ReadinessResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse()


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "Database unreachable", "model": ReadinessResponse}},
)
async def readiness_check(
    db: Annotated[AsyncSession, Depends(get_db)],
    cache: Annotated[CacheProtocol | None, Depends(get_cache)],
) -> ReadinessResponse | JSONResponse:
    """200 when the database answers; cache trouble is reported but not fatal."""
    if cache is None:
        cache_status = "disabled"
    else:
        cache_status = "ok" if cache.is_available() else "unavailable"
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Readiness check failed: %s", e)
        return JSONResponse(
            status_code=503,
            content=ReadinessResponse(
                status="not_ready", database="unavailable", cache=cache_status
            ).model_dump(),
        )
    return ReadinessResponse(cache=cache_status)
