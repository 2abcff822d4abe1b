"""Wireless Tag Sync API — FastAPI application entry point.

Run locally:
    uvicorn src.main:app --reload --port 8000
"""

from __future__ import annotations

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator
from zoneinfo import ZoneInfo

from fastapi import FastAPI

from src.config import Settings, get_settings
from src.routers import health, sensors
from src.wirelesstags.client import HTTPConfig, WirelessTagClient
from src.wirelesstags.sync.orchestrator import SyncOrchestrator
from src.wirelesstags.sync.scheduler import SyncScheduler

# ---------- Logging ----------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger("wirelesstags")


def build_client(settings: Settings) -> WirelessTagClient:
    """Create the tag manager client from environment settings."""
    return WirelessTagClient(
        HTTPConfig(
            addr=settings.wirelesstag_addr,
            token=settings.wirelesstag_token,
            location=ZoneInfo(settings.wirelesstag_timezone) if settings.wirelesstag_timezone else None,
            user_agent=settings.wirelesstag_user_agent,
            timeout=settings.wirelesstag_timeout_seconds,
            insecure_skip_verify=settings.wirelesstag_insecure_skip_verify,
        )
    )


# ---------- Lifespan ----------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup / shutdown hooks."""
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())
    logger.info(
        "Starting Wireless Tag Sync API v%s [%s]",
        settings.app_version,
        settings.environment,
    )

    client = build_client(settings)
    scheduler = SyncScheduler(SyncOrchestrator(client))
    app.state.scheduler = scheduler

    loop_task: asyncio.Task | None = None
    if settings.sync_enabled:
        loop_task = asyncio.create_task(scheduler.run_forever(), name="sync-loop")

    yield

    if loop_task is not None:
        scheduler.stop()
        await loop_task
    await client.aclose()
    logger.info("Wireless Tag Sync API shut down")


# ---------- App factory ----------

def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Wireless Tag Sync API",
        description=(
            "Tag catalog and batched environmental readings pulled from the "
            "Wireless Sensor Tags cloud, bucketed per tag and timestamp."
        ),
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ---------- Health check (outside v1 prefix — always at /health) ----------
    app.include_router(health.router)

    # ---------- API v1 routes ----------
    v1_prefix = "/api/v1"

    app.include_router(sensors.router, prefix=v1_prefix)

    return app


app = create_app()
