"""Shared fixtures and fake tag manager responses for wirelesstags tests."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable
from zoneinfo import ZoneInfo

import httpx
import pytest

from src.wirelesstags.client import HTTPConfig, WirelessTagClient
from src.wirelesstags.config_loader import SyncConfig, load_sync_config
from src.wirelesstags.epoch import EPOCH_OFFSET_MS, TICKS_PER_MILLISECOND

# Fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"

AUCKLAND = ZoneInfo("Pacific/Auckland")

# Midnight of 10/15/2017 in Pacific/Auckland (NZDT, UTC+13) as Unix seconds
DAY_START_2017_10_15 = 1507978800

TEST_ADDR = "https://wirelesstag.test"
TEST_TOKEN = "test-token"


def unix_to_ticks(unix_seconds: float) -> int:
    """Inverse of the FILETIME conversion, for building catalog entries."""
    unix_ms = round(unix_seconds * 1000)
    return (unix_ms + EPOCH_OFFSET_MS) * TICKS_PER_MILLISECOND


def utc(unix_seconds: float) -> datetime:
    return datetime.fromtimestamp(unix_seconds, tz=timezone.utc)


def make_client(
    handler: Callable[[httpx.Request], httpx.Response],
    **config_overrides,
) -> WirelessTagClient:
    """Client whose HTTP traffic is answered by ``handler``."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    settings = {"addr": TEST_ADDR, "token": TEST_TOKEN, "location": AUCKLAND, **config_overrides}
    config = HTTPConfig(**settings)
    return WirelessTagClient(config, http_client=http_client)


def stats_payload(*stats: dict) -> dict:
    return {"d": {"stats": list(stats), "temp_unit": 0}}


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sync_config() -> SyncConfig:
    """Load the bundled sync config for tests."""
    return load_sync_config()


# ---------------------------------------------------------------------------
# JSON fixture loaders
# ---------------------------------------------------------------------------


@pytest.fixture
def tag_list_raw() -> dict:
    return json.loads((FIXTURES_DIR / "tag_list.json").read_text())


@pytest.fixture
def temperature_stats_raw() -> dict:
    return json.loads((FIXTURES_DIR / "multi_tag_stats_temperature.json").read_text())


@pytest.fixture
def service_error_raw() -> dict:
    return json.loads((FIXTURES_DIR / "service_error.json").read_text())
