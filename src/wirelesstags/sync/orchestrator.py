"""One full synchronization cycle against the tag manager.

    catalog → watermark → partition → fetch each kind → merge → attach

The cycle owns its results: a fresh ``slave_id -> MetricsCollection``
mapping is built every time and handed back in ``SyncCycleResult``; nothing
is carried over from previous cycles.  Any failure aborts the whole cycle.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import partial
from typing import Callable

from src.wirelesstags.base import MetricKind, MetricsCollection, SensorDescriptor
from src.wirelesstags.capabilities import capabilities as configured_capabilities
from src.wirelesstags.client import WirelessTagClient
from src.wirelesstags.config_loader import SyncConfig, get_sync_config
from src.wirelesstags.sync.merge import merge_batch
from src.wirelesstags.sync.partition import CapabilityLookup, partition_by_kind
from src.wirelesstags.sync.watermark import adjust_watermark
from src.wirelesstags.wire import BatchResponse

logger = logging.getLogger("wirelesstags.sync.orchestrator")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SyncCycleResult:
    """Outcome of one successful cycle.

    Attributes:
        sensors:         Catalog snapshot, each with its ``metrics`` attached.
        metrics:         slave id -> collection for every tag that got samples.
        requested_since: Lower bound the caller asked for.
        watermark:       Effective lower bound after adjustment.
        until:           "Now" at the start of the cycle; the upper bound requested.
        groups:          Kind -> ids requested in this cycle.
    """

    sensors: list[SensorDescriptor]
    metrics: dict[int, MetricsCollection]
    requested_since: datetime
    watermark: datetime
    until: datetime
    groups: dict[MetricKind, list[int]] = field(default_factory=dict)

    @property
    def sample_count(self) -> int:
        return sum(
            len(bucket)
            for collection in self.metrics.values()
            for bucket in collection.values()
        )

    def sensor(self, slave_id: int) -> SensorDescriptor | None:
        for sensor in self.sensors:
            if sensor.slave_id == slave_id:
                return sensor
        return None


class SyncOrchestrator:
    """Drive catalog refresh and batched metric retrieval for one account.

    Usage::

        orchestrator = SyncOrchestrator(client)
        result = await orchestrator.run(since=last_sync)
        for sensor in result.sensors:
            ...  # sensor.metrics holds this cycle's buckets
    """

    def __init__(
        self,
        client: WirelessTagClient,
        config: SyncConfig | None = None,
        capabilities: CapabilityLookup | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            client:       Client used for catalog and metric calls.
            config:       Sync config override (defaults to sync_config.yaml).
            capabilities: tag type -> kinds override (defaults to the config table).
            clock:        Source of "now" (for testing).
        """
        self._client = client
        self._config = config or get_sync_config()
        self._capabilities = capabilities
        self._clock = clock

    async def run(self, since: datetime) -> SyncCycleResult:
        """Run one cycle.

        Args:
            since: Lower bound requested by the caller (naive = UTC).

        Returns:
            SyncCycleResult with fresh per-tag collections.

        Raises:
            TransportError, RemoteError, DecodeError: From any catalog, fetch
            or merge step; no partial result is produced.
        """
        if since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)
        until = self._clock()

        sensors = await self._client.list_sensors()
        watermark = adjust_watermark(since, sensors)
        groups = partition_by_kind(
            sensors,
            self._capabilities or partial(configured_capabilities, config=self._config),
        )
        logger.info(
            "Sync cycle: %d tags, %d kinds, watermark %s",
            len(sensors), len(groups), watermark.isoformat(),
        )

        batches = await self._fetch_all(groups, watermark, until)

        # Merged in fetch order regardless of which request finished first
        metrics: dict[int, MetricsCollection] = {}
        for kind in groups:
            merge_batch(
                batches[kind],
                kind,
                watermark,
                metrics,
                zone=self._client.zone,
                dedupe=self._config.merge.dedupe_samples,
            )

        for sensor in sensors:
            sensor.metrics = metrics.get(sensor.slave_id, {})

        result = SyncCycleResult(
            sensors=sensors,
            metrics=metrics,
            requested_since=since,
            watermark=watermark,
            until=until,
            groups=groups,
        )
        logger.info(
            "Sync cycle complete: %d samples across %d tags",
            result.sample_count, len(metrics),
        )
        return result

    async def _fetch_all(
        self,
        groups: dict[MetricKind, list[int]],
        since: datetime,
        until: datetime,
    ) -> dict[MetricKind, BatchResponse]:
        """Fetch every kind's batch, concurrently when configured.

        The first failure cancels the requests still in flight and is
        re-raised.
        """
        if not groups:
            return {}

        if not self._config.fetch.concurrent:
            return {
                kind: await self._client.fetch_metrics(ids, kind, since, until)
                for kind, ids in groups.items()
            }

        semaphore = asyncio.Semaphore(self._config.fetch.max_concurrent)

        async def _fetch(kind: MetricKind, ids: list[int]) -> BatchResponse:
            async with semaphore:
                return await self._client.fetch_metrics(ids, kind, since, until)

        tasks = {
            kind: asyncio.create_task(_fetch(kind, ids), name=f"fetch-{kind.value}")
            for kind, ids in groups.items()
        }
        try:
            await asyncio.gather(*tasks.values())
        except BaseException:
            for task in tasks.values():
                task.cancel()
            await asyncio.gather(*tasks.values(), return_exceptions=True)
            raise
        return {kind: task.result() for kind, task in tasks.items()}
