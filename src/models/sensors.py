"""Pydantic models for the sensor snapshot API."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from src.models.base import TagSyncBase


# ---------- Samples ----------

class SampleRead(TagSyncBase):
    name: str  # display name, e.g. "lux"
    value: float


class BucketRead(TagSyncBase):
    timestamp: int  # Unix seconds
    samples: list[SampleRead]


# ---------- Sensors ----------

class SensorRead(TagSyncBase):
    slave_id: int = Field(ge=0, le=255)
    name: str
    tag_type: int
    out_of_range: bool
    last_communication: datetime
    labels: dict[str, str] = Field(default_factory=dict)
    capabilities: list[str] = Field(default_factory=list)
    can_playback: bool = False
    bucket_count: int = 0
    latest: dict[str, float] = Field(default_factory=dict)


class SensorMetricsRead(TagSyncBase):
    slave_id: int
    buckets: list[BucketRead]


# ---------- Sync status ----------

class SyncStatusRead(TagSyncBase):
    status: str
    since: datetime
    sensors: int = 0
    samples: int = 0
    error: str | None = None
    synced_at: datetime
