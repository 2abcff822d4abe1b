"""Watermark adjustment: widen the lower bound so no recent report is skipped.

A tag that reported after the previous sync but whose report time we have
not seen yet would lose samples if we only asked for data after the old
watermark.  Lowering the watermark to the oldest last-communication of any
reachable tag guarantees coverage; the re-requested overlap is absorbed by
timestamp-keyed merging.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable

from src.wirelesstags.base import SensorDescriptor

logger = logging.getLogger("wirelesstags.sync.watermark")


def adjust_watermark(requested: datetime, sensors: Iterable[SensorDescriptor]) -> datetime:
    """Return the effective lower bound for a sync cycle.

    Out-of-range tags are skipped: their last communication is known to be
    stale and would drag the window arbitrarily far into the past.

    Args:
        requested: Caller's lower bound (naive values are taken as UTC).
        sensors:   Catalog snapshot for this cycle.

    Returns:
        ``requested`` or the earliest last-communication instant before it.
    """
    if requested.tzinfo is None:
        requested = requested.replace(tzinfo=timezone.utc)

    watermark = requested
    for sensor in sensors:
        if sensor.out_of_range:
            continue
        last_comm = sensor.last_communication
        if last_comm < watermark:
            watermark = last_comm

    if watermark != requested:
        logger.debug("Watermark lowered from %s to %s", requested, watermark)
    return watermark
