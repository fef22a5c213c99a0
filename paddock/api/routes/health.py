from __future__ import annotations

import asyncio
from typing import Any

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from paddock.core.config import get_settings
from paddock.db.session import SessionLocal
from paddock.workers.celery_app import celery_app

router = APIRouter(tags=["health"])
logger = structlog.get_logger(__name__)

CELERY_PING_TIMEOUT_SECONDS = 1.0
# Checkout cannot run without the purchase ledger, so readiness checks for it.
REQUIRED_TABLE = "public.purchases"

Check = dict[str, Any]


def _ok(**extra: Any) -> Check:
    return {"status": "ok", **extra}


def _failed(error: str) -> Check:
    return {"status": "failed", "error": error}


async def _check_database() -> Check:
    try:
        async with SessionLocal() as session:
            table = await session.scalar(text("SELECT to_regclass(:name)"), {"name": REQUIRED_TABLE})
    except Exception as exc:
        logger.warning("health_database_failed", error_type=type(exc).__name__)
        return _failed("database_unavailable")
    if table is None:
        return _failed("schema_missing")
    return _ok()


async def _check_redis() -> Check:
    client = Redis.from_url(get_settings().redis_url)
    try:
        if await client.ping() is not True:
            return _failed("redis_unexpected_reply")
    except Exception as exc:
        logger.warning("health_redis_failed", error_type=type(exc).__name__)
        return _failed("redis_unavailable")
    finally:
        await client.aclose()
    return _ok()


def _check_celery_worker_sync() -> Check:
    try:
        inspector = celery_app.control.inspect(timeout=CELERY_PING_TIMEOUT_SECONDS)
        replies = (inspector.ping() or {}) if inspector is not None else {}
    except Exception as exc:
        logger.warning("health_celery_failed", error_type=type(exc).__name__)
        return _failed("celery_unavailable")
    if not replies:
        return _failed("no_workers")
    return _ok(workers=len(replies))


async def _check_celery_worker() -> Check:
    return await asyncio.to_thread(_check_celery_worker_sync)


def _email_delivery() -> Check:
    return {"status": "configured" if get_settings().email_api_key else "disabled"}


def _respond(*, checks: dict[str, Check], required: tuple[str, ...], ok: str, bad: str) -> JSONResponse:
    healthy = all(checks[name]["status"] == "ok" for name in required)
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": ok if healthy else bad, "checks": checks},
    )


@router.get("/health")
async def health() -> JSONResponse:
    database, redis, celery = await asyncio.gather(
        _check_database(),
        _check_redis(),
        _check_celery_worker(),
    )
    checks = {
        "database": database,
        "redis": redis,
        "celery": celery,
        "email": _email_delivery(),
    }
    return _respond(checks=checks, required=("database", "redis", "celery"), ok="ok", bad="degraded")


@router.get("/ready")
async def ready() -> JSONResponse:
    # Notifications are fire-and-forget, so a missing worker never blocks checkout.
    database, redis = await asyncio.gather(_check_database(), _check_redis())
    checks = {"database": database, "redis": redis}
    return _respond(checks=checks, required=("database", "redis"), ok="ready", bad="not_ready")


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "live"}
