"""Health check endpoint — public, no auth required."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from src.dependencies import AppSettings, Scheduler

router = APIRouter(tags=["system"])
logger = logging.getLogger("wirelesstags.health")


@router.get("/health")
async def health_check(settings: AppSettings, scheduler: Scheduler) -> dict:
    """Liveness probe. Returns 200 if the API process is up.

    Reports "degraded" when the most recent sync cycle failed.
    """
    last = scheduler.last_result
    sync_ok = last is None or last.status == "success"
    if not sync_ok:
        logger.warning("Health check: last sync failed: %s", last.error)

    return {
        "status": "healthy" if sync_ok else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "last_sync_status": last.status if last else None,
        "last_sync_at": last.synced_at.isoformat() if last else None,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
