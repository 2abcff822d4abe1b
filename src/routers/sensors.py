"""Read-only endpoints over the latest sync snapshot, plus a manual sync trigger."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query

from src.dependencies import Scheduler
from src.models.base import ErrorDetail
from src.models.sensors import (
    BucketRead,
    SampleRead,
    SensorMetricsRead,
    SensorRead,
    SyncStatusRead,
)
from src.wirelesstags.base import MetricsCollection, SensorDescriptor
from src.wirelesstags.capabilities import can_playback
from src.wirelesstags.sync.orchestrator import SyncCycleResult

router = APIRouter(
    tags=["sensors"],
    responses={503: {"model": ErrorDetail, "description": "No successful sync yet"}},
)


def _latest_values(metrics: MetricsCollection) -> dict[str, float]:
    latest: dict[str, float] = {}
    for timestamp in sorted(metrics):
        for sample in metrics[timestamp]:
            latest[sample.name] = sample.value
    return latest


def _sensor_read(sensor: SensorDescriptor, cycle: SyncCycleResult) -> SensorRead:
    return SensorRead(
        slave_id=sensor.slave_id,
        name=sensor.name,
        tag_type=sensor.tag_type,
        out_of_range=sensor.out_of_range,
        last_communication=sensor.last_communication,
        labels=sensor.labels(),
        capabilities=[
            kind.display_name for kind, ids in cycle.groups.items() if sensor.slave_id in ids
        ],
        can_playback=can_playback(sensor.tag_type),
        bucket_count=len(sensor.metrics),
        latest=_latest_values(sensor.metrics),
    )


def _require_snapshot(scheduler: Scheduler) -> SyncCycleResult:
    if scheduler.snapshot is None:
        raise HTTPException(status_code=503, detail="No successful sync yet")
    return scheduler.snapshot


# ---------- Sensors ----------

@router.get("/sensors", response_model=list[SensorRead])
async def list_sensors(scheduler: Scheduler) -> Any:
    cycle = _require_snapshot(scheduler)
    return [_sensor_read(sensor, cycle) for sensor in cycle.sensors]


@router.get(
    "/sensors/{slave_id}/metrics",
    response_model=SensorMetricsRead,
    responses={404: {"model": ErrorDetail}},
)
async def get_sensor_metrics(
    slave_id: int,
    scheduler: Scheduler,
    since: int | None = Query(default=None, description="Unix seconds, inclusive"),
) -> Any:
    cycle = _require_snapshot(scheduler)
    sensor = cycle.sensor(slave_id)
    if sensor is None:
        raise HTTPException(status_code=404, detail="Sensor not found")

    buckets = [
        BucketRead(
            timestamp=timestamp,
            samples=[SampleRead(name=s.name, value=s.value) for s in sensor.metrics[timestamp]],
        )
        for timestamp in sorted(sensor.metrics)
        if since is None or timestamp >= since
    ]
    return SensorMetricsRead(slave_id=slave_id, buckets=buckets)


# ---------- Sync ----------

@router.get("/sync", response_model=list[SyncStatusRead])
async def list_sync_results(scheduler: Scheduler) -> Any:
    return scheduler.history


@router.post("/sync", response_model=SyncStatusRead, responses={502: {"model": ErrorDetail}})
async def trigger_sync(scheduler: Scheduler) -> Any:
    result = await scheduler.run_once()
    if result.status != "success":
        raise HTTPException(status_code=502, detail=result.error or "Sync failed")
    return result
