"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from src.config import Settings, get_settings
from src.wirelesstags.sync.scheduler import SyncScheduler


async def get_scheduler(request: Request) -> SyncScheduler:
    """Return the scheduler created in the app lifespan.

    ``src.main`` stores it on ``app.state.scheduler`` at startup.
    """
    scheduler: SyncScheduler | None = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise HTTPException(status_code=503, detail="Sync scheduler not initialized")
    return scheduler


# Annotated shortcuts for route signatures
Scheduler = Annotated[SyncScheduler, Depends(get_scheduler)]
AppSettings = Annotated[Settings, Depends(get_settings)]
