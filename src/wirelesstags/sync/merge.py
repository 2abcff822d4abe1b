"""Expand stat groups into absolute timestamps and merge them per tag.

The service returns each kind's samples grouped by calendar day: a date in
the reference zone plus, per tag, parallel arrays of time-of-day offsets
(seconds since local midnight) and values.  Merging turns that into

    results[slave_id][unix_seconds] -> [MetricSample, ...]

where samples of different kinds recorded in the same second share a
bucket, in the order the kinds were merged.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from src.wirelesstags.base import MetricKind, MetricSample, MetricsCollection, to_float32
from src.wirelesstags.config_loader import get_sync_config
from src.wirelesstags.errors import DecodeError
from src.wirelesstags.wire import BatchResponse, parse_wire_date

logger = logging.getLogger("wirelesstags.sync.merge")


def merge_batch(
    response: BatchResponse,
    kind: MetricKind,
    since: datetime,
    out: dict[int, MetricsCollection],
    zone: ZoneInfo | None = None,
    dedupe: bool = True,
) -> int:
    """Merge one kind's batch response into ``out``.

    Every stat group is validated before the first sample is written, so a
    malformed response leaves ``out`` untouched.

    Args:
        response: Decoded GetMultiTagStatsRaw result.
        kind:     Metric kind the response was requested for.
        since:    Samples strictly before this instant are dropped.
        out:      Per-cycle results, slave id -> collection. Mutated in place.
        zone:     Zone the stat dates are recorded in. Defaults to
                  reference_timezone from sync_config.yaml.
        dedupe:   Skip a sample whose (kind, value) is already in its bucket.
                  Merging an overlapping window twice is then a no-op.

    Returns:
        Number of samples appended.

    Raises:
        DecodeError: If a stat date is not ``M/D/YYYY`` or the ids, values
                     and tods arrays disagree in length.
    """
    if since.tzinfo is None:
        since = since.replace(tzinfo=timezone.utc)
    since_ts = since.timestamp()
    zone = zone or get_sync_config().zone

    day_starts: list[int] = []
    for stat in response.stats:
        errors = stat.shape_errors()
        if errors:
            raise DecodeError("; ".join(errors))
        # Offsets are elapsed seconds, so add them to the absolute instant
        # of midnight rather than to the wall clock (DST days are 23/25 h).
        day_starts.append(int(parse_wire_date(stat.date, zone).timestamp()))

    appended = 0
    for stat, day_start in zip(response.stats, day_starts):
        for slave_id, tods, values in zip(stat.ids, stat.tods, stat.values):
            for offset, value in zip(tods, values):
                timestamp = day_start + offset
                if timestamp < since_ts:
                    continue

                sample = MetricSample(kind=kind, value=to_float32(value))
                bucket = out.setdefault(slave_id, {}).setdefault(timestamp, [])
                if dedupe and sample in bucket:
                    continue
                bucket.append(sample)
                appended += 1

    logger.debug(
        "Merged %d %s samples from %d stat groups",
        appended, kind.display_name, len(response.stats),
    )
    return appended
