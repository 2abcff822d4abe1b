"""Wireless Sensor Tags metric sync.

This package pulls the tag catalog and batched historical readings from the
wirelesstag.net tag manager and turns them into per-tag, timestamp-keyed
metric collections for downstream consumers.

Subpackages:
    sync/  — Watermarking, batch partitioning, bucket merging, cycle orchestration

Core modules:
    base            — SensorDescriptor, MetricKind, MetricSample, MetricsCollection
    epoch           — FILETIME tick conversion
    wire            — JSON request/response codec
    client          — httpx client for the tag manager web services
    capabilities    — Tag-type to metric-kind lookup
    config_loader   — Load/validate/hot-reload sync_config.yaml
    errors          — TransportError / RemoteError / DecodeError
"""

from src.wirelesstags.base import (
    MetricKind,
    MetricSample,
    MetricsCollection,
    SensorDescriptor,
)
from src.wirelesstags.client import HTTPConfig, WirelessTagClient
from src.wirelesstags.config_loader import SyncConfig, get_sync_config
from src.wirelesstags.errors import DecodeError, RemoteError, TransportError, WirelessTagError

__all__ = [
    "MetricKind",
    "MetricSample",
    "MetricsCollection",
    "SensorDescriptor",
    "HTTPConfig",
    "WirelessTagClient",
    "SyncConfig",
    "get_sync_config",
    "WirelessTagError",
    "TransportError",
    "RemoteError",
    "DecodeError",
]
