"""Group tag ids by metric kind so each kind costs one batched request."""

from __future__ import annotations

from typing import Callable, Iterable

from src.wirelesstags.base import FETCH_ORDER, MetricKind, SensorDescriptor
from src.wirelesstags.capabilities import capabilities as default_capabilities

CapabilityLookup = Callable[[int], "frozenset[MetricKind] | set[MetricKind]"]


def partition_by_kind(
    sensors: Iterable[SensorDescriptor],
    capabilities: CapabilityLookup | None = None,
) -> dict[MetricKind, list[int]]:
    """Build one id group per metric kind.

    A tag lands in every group its tag type supports, so it may appear in
    zero, one or several groups.  Kinds nobody supports are left out
    entirely; the service rejects requests with an empty id list.

    Args:
        sensors:      Catalog snapshot.
        capabilities: tag type -> supported kinds.  Defaults to the
                      sync_config.yaml table.

    Returns:
        Kind -> ids in catalog order, keyed in fetch order.
    """
    lookup = capabilities or default_capabilities
    groups: dict[MetricKind, list[int]] = {kind: [] for kind in FETCH_ORDER}
    for sensor in sensors:
        for kind in lookup(sensor.tag_type):
            groups[kind].append(sensor.slave_id)
    return {kind: ids for kind, ids in groups.items() if ids}
