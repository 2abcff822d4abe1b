"""Tag-type capability lookup.

The tag manager identifies hardware families by a numeric ``tagType``.
Which metric kinds are polled for a family comes from the ``capabilities``
section of sync_config.yaml; the family predicates below are fixed facts
about the hardware.
"""

from __future__ import annotations

from src.wirelesstags.base import FETCH_ORDER, MetricKind
from src.wirelesstags.config_loader import SyncConfig, get_sync_config

_MOTION_TAG_TYPES = frozenset({12, 13, 21})
_LIGHT_TAG_TYPES = frozenset({26})
_REED_TAG_TYPES = frozenset({52, 53})
_PIR_TAG_TYPES = frozenset({72})
_PLAYBACK_TAG_TYPES = frozenset({21})


def capabilities(tag_type: int, config: SyncConfig | None = None) -> frozenset[MetricKind]:
    """Return the metric kinds a tag type is polled for.

    Total over all integers: unknown codes simply match whatever the
    configured rules say (usually temperature only, or nothing).
    """
    cfg = config or get_sync_config()
    return frozenset(kind for kind in FETCH_ORDER if cfg.capability(kind).matches(tag_type))


def has_event_sensor(tag_type: int) -> bool:
    """True for families that raise motion, light, reed or PIR events."""
    return tag_type in (_MOTION_TAG_TYPES | _LIGHT_TAG_TYPES | _REED_TAG_TYPES | _PIR_TAG_TYPES)


def can_playback(tag_type: int) -> bool:
    """True when the tag can upload readings recorded while out of range."""
    return tag_type in _PLAYBACK_TAG_TYPES
