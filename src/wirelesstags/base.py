"""Canonical data models for the wireless tag sync engine.

SensorDescriptor, MetricKind, MetricSample and MetricsCollection are the
types every other module speaks: the client decodes into them, the sync
engine fills them, and the API layer serialises them.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from src.wirelesstags.epoch import filetime_to_datetime

logger = logging.getLogger("wirelesstags")


# ---------------------------------------------------------------------------
# Metric kinds
# ---------------------------------------------------------------------------


class MetricKind(Enum):
    """Closed set of metric kinds a tag can report.

    Each kind has two fixed names: the ``type`` the service expects in
    GetMultiTagStatsRaw requests, and the display name consumers see.
    """

    TEMPERATURE = "temperature"
    LIGHT = "light"
    HUMIDITY = "humidity"
    MOTION = "motion"
    BATTERY = "battery"
    SIGNAL = "signal"

    @property
    def wire_name(self) -> str:
        return _WIRE_NAMES[self]

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_WIRE_NAMES: dict[MetricKind, str] = {
    MetricKind.TEMPERATURE: "temperature",
    MetricKind.LIGHT: "light",
    MetricKind.HUMIDITY: "cap",
    MetricKind.MOTION: "motion",
    MetricKind.BATTERY: "batteryVolt",
    MetricKind.SIGNAL: "signal",
}

_DISPLAY_NAMES: dict[MetricKind, str] = {
    MetricKind.TEMPERATURE: "temperature",
    MetricKind.LIGHT: "lux",
    MetricKind.HUMIDITY: "humidity",
    MetricKind.MOTION: "motion",
    MetricKind.BATTERY: "battery",
    MetricKind.SIGNAL: "signal",
}

#: Order in which kinds are requested and merged within a cycle.
FETCH_ORDER: tuple[MetricKind, ...] = (
    MetricKind.TEMPERATURE,
    MetricKind.HUMIDITY,
    MetricKind.LIGHT,
    MetricKind.MOTION,
    MetricKind.BATTERY,
    MetricKind.SIGNAL,
)


def to_float32(value: float) -> float:
    """Round a Python float through IEEE-754 single precision."""
    return struct.unpack("f", struct.pack("f", value))[0]


# ---------------------------------------------------------------------------
# Samples and collections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MetricSample:
    """One reading of one kind inside a timestamp bucket.

    Attributes:
        kind:  Which metric this reading is.
        value: Single-precision reading as reported by the service.
    """

    kind: MetricKind
    value: float

    @property
    def name(self) -> str:
        return self.kind.display_name


#: Unix seconds -> samples recorded at that second, in merge order.
MetricsCollection = dict[int, list[MetricSample]]


# ---------------------------------------------------------------------------
# Sensors
# ---------------------------------------------------------------------------


@dataclass
class SensorDescriptor:
    """A single tag as listed by the tag manager's catalog.

    Attributes:
        slave_id:     Tag identifier (0–255), unique within one catalog snapshot.
        tag_type:     Hardware family code; decides which kinds are polled.
        last_comm:    Last communication as raw FILETIME ticks.
        out_of_range: True when the tag is unreachable; its last_comm is stale.
        name:         User-visible tag name.
        comment:      Free-text comment, holding ``key=value`` labels.
        metrics:      Samples attached by the most recent sync cycle.
    """

    slave_id: int
    tag_type: int
    last_comm: int = 0
    out_of_range: bool = False
    name: str = ""
    comment: str = ""
    metrics: MetricsCollection = field(default_factory=dict)

    @property
    def last_communication(self) -> datetime:
        """Last communication instant in UTC."""
        return filetime_to_datetime(self.last_comm)

    def labels(self) -> dict[str, str]:
        """Return ``name`` and ``id`` plus extra labels parsed from the comment.

        Extra labels are entered in the tag's comment field as
        ``name1=value1,name2=value2``.  Surrounding whitespace is trimmed and
        entries that are not exactly one ``key=value`` pair are ignored.
        """
        labels = {"name": self.name, "id": str(self.slave_id)}
        for extra in self.comment.split(","):
            parts = extra.split("=")
            if len(parts) != 2:
                continue
            labels[parts[0].strip(" ")] = parts[1].strip(" ")
        return labels
