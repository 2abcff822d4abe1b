"""Background scheduler driving successive sync cycles.

Each cycle asks for everything since the previous successful cycle's upper
bound (the first cycle reaches back ``schedule.initial_lookback_minutes``).
A failed cycle is logged and recorded; the previous snapshot stays current
and the watermark is not advanced, so the next cycle re-covers the gap.
Nothing is retried within a cycle.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable

from src.wirelesstags.config_loader import SyncConfig, get_sync_config
from src.wirelesstags.errors import WirelessTagError
from src.wirelesstags.sync.orchestrator import SyncCycleResult, SyncOrchestrator

logger = logging.getLogger("wirelesstags.sync.scheduler")

# Number of SyncResult records kept in memory
HISTORY_LIMIT = 50


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SyncResult:
    """Record of one executed cycle.

    Attributes:
        status:        'success' or 'error'.
        since:         Lower bound requested.
        sensors:       Tags in the catalog snapshot (0 on error).
        samples:       Samples merged (0 on error).
        error:         Error message if status == 'error'.
        synced_at:     UTC timestamp of completion.
    """

    status: str
    since: datetime
    sensors: int = 0
    samples: int = 0
    error: str | None = None
    synced_at: datetime = field(default_factory=_utc_now)


class SyncScheduler:
    """Run sync cycles on an interval and keep the latest snapshot.

    Usage::

        scheduler = SyncScheduler(SyncOrchestrator(client))
        task = asyncio.create_task(scheduler.run_forever())
        ...
        scheduler.stop()
        await task
    """

    def __init__(
        self,
        orchestrator: SyncOrchestrator,
        config: SyncConfig | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._orchestrator = orchestrator
        self._config = config or get_sync_config()
        self._clock = clock
        self._since: datetime | None = None
        self._snapshot: SyncCycleResult | None = None
        self._history: list[SyncResult] = []
        self._cycle_lock = asyncio.Lock()
        self._stop = asyncio.Event()

    @property
    def snapshot(self) -> SyncCycleResult | None:
        """Result of the most recent successful cycle, if any."""
        return self._snapshot

    @property
    def history(self) -> list[SyncResult]:
        return list(self._history)

    @property
    def last_result(self) -> SyncResult | None:
        return self._history[-1] if self._history else None

    def next_since(self) -> datetime:
        """Lower bound the next cycle will request."""
        if self._since is not None:
            return self._since
        lookback = timedelta(minutes=self._config.schedule.initial_lookback_minutes)
        return self._clock() - lookback

    async def run_once(self) -> SyncResult:
        """Run one cycle now; concurrent callers are serialised."""
        async with self._cycle_lock:
            since = self.next_since()
            try:
                cycle = await self._orchestrator.run(since)
            except WirelessTagError as exc:
                logger.error("Sync cycle since %s failed: %s", since.isoformat(), exc)
                return self._record(SyncResult(status="error", since=since, error=str(exc)))

            self._snapshot = cycle
            self._since = cycle.until
            return self._record(
                SyncResult(
                    status="success",
                    since=since,
                    sensors=len(cycle.sensors),
                    samples=cycle.sample_count,
                )
            )

    async def run_forever(self) -> None:
        """Run cycles every ``schedule.interval_seconds`` until ``stop()``.

        Unexpected exceptions are logged and recorded as failed cycles; they
        do not end the loop.
        """
        interval = self._config.schedule.interval_seconds
        logger.info("SyncScheduler: starting, interval %ds", interval)
        self._stop.clear()
        while not self._stop.is_set():
            try:
                await self.run_once()
            except Exception as exc:
                logger.exception("Sync cycle crashed")
                self._record(
                    SyncResult(
                        status="error",
                        since=self.next_since(),
                        error=f"{type(exc).__name__}: {exc}",
                    )
                )
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
        logger.info("SyncScheduler: stopped")

    def stop(self) -> None:
        self._stop.set()

    def _record(self, result: SyncResult) -> SyncResult:
        self._history.append(result)
        del self._history[:-HISTORY_LIMIT]
        logger.info(
            "Sync %s: %d tags, %d samples",
            result.status, result.sensors, result.samples,
        )
        return result
