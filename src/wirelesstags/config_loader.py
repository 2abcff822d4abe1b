"""Load, validate, and hot-reload the wireless tag sync configuration.

The config lives in ``sync_config.yaml`` alongside this module.  It is loaded
once and cached; call ``reload_sync_config()`` to re-read it from disk.

Usage::

    from src.wirelesstags.config_loader import get_sync_config

    config = get_sync_config()
    zone = config.zone                       # ZoneInfo("Pacific/Auckland")
    config.capability(MetricKind.LIGHT)      # CapabilityRule(include=(26,))
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from src.wirelesstags.base import MetricKind

logger = logging.getLogger("wirelesstags.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "sync_config.yaml"

DEFAULT_TIMEZONE = "Pacific/Auckland"


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CapabilityRule:
    """Which tag types support one metric kind.

    Exactly one of ``include`` / ``exclude`` is meaningful: with ``include``
    only the listed tag types qualify, with ``exclude`` every tag type except
    the listed ones does.
    """

    include: tuple[int, ...] | None = None
    exclude: tuple[int, ...] | None = None

    def matches(self, tag_type: int) -> bool:
        if self.exclude is not None:
            return tag_type not in self.exclude
        return tag_type in (self.include or ())


@dataclass
class FetchConfig:
    concurrent: bool = True
    max_concurrent: int = 3


@dataclass
class MergeConfig:
    dedupe_samples: bool = True


@dataclass
class ScheduleConfig:
    interval_seconds: int = 300
    initial_lookback_minutes: int = 60


@dataclass
class SyncConfig:
    """Complete, validated sync configuration.

    Attributes:
        version:            Config schema version string.
        reference_timezone: IANA zone the service records dates in.
        capabilities:       Metric kind -> tag-type rule.
        fetch:              Batch request settings.
        merge:              Bucket merge settings.
        schedule:           Background cycle settings.
    """

    version: str
    reference_timezone: str
    capabilities: dict[MetricKind, CapabilityRule]
    fetch: FetchConfig = field(default_factory=FetchConfig)
    merge: MergeConfig = field(default_factory=MergeConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.reference_timezone)

    def capability(self, kind: MetricKind) -> CapabilityRule:
        """Return the rule for a kind; unconfigured kinds match nothing."""
        return self.capabilities.get(kind, CapabilityRule(include=()))


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when sync_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Sync config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc


def _int_list(value: object, where: str, errors: list[str]) -> tuple[int, ...] | None:
    if not isinstance(value, list):
        errors.append(f"{where} must be a list of tag type codes, got {value!r}")
        return None
    codes: list[int] = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, int):
            errors.append(f"{where} contains a non-integer tag type {item!r}")
            continue
        codes.append(item)
    return tuple(codes)


def _section(raw: dict, name: str, errors: list[str]) -> dict:
    value = raw.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        errors.append(f"'{name}' must be a mapping, got {value!r}")
        return {}
    return value


def _int_setting(section: dict, key: str, default: int, where: str, errors: list[str]) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        errors.append(f"{where} must be an integer, got {value!r}")
        return default
    return value


def _bool_setting(section: dict, key: str, default: bool, where: str, errors: list[str]) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        errors.append(f"{where} must be true or false, got {value!r}")
        return default
    return value


def _validate_and_build(raw: dict) -> SyncConfig:
    """Validate the raw YAML dict and construct a SyncConfig.

    Raises:
        ConfigValidationError: If any field is missing or invalid.
    """
    if not isinstance(raw, dict):
        raise ConfigValidationError(
            f"sync_config.yaml must be a mapping at the top level, got {type(raw).__name__}"
        )

    errors: list[str] = []

    version = str(raw.get("version", "1.0"))

    # ── Reference time zone ──
    tz_name = raw.get("reference_timezone", DEFAULT_TIMEZONE)
    try:
        ZoneInfo(str(tz_name))
    except (ZoneInfoNotFoundError, ValueError, OSError):
        errors.append(f"reference_timezone {tz_name!r} is not a known IANA zone")

    # ── Capabilities ──
    caps_raw = raw.get("capabilities") or {}
    if not isinstance(caps_raw, dict):
        errors.append("'capabilities' must be a mapping of kind -> rule")
        caps_raw = {}

    capabilities: dict[MetricKind, CapabilityRule] = {}
    for name, rule_raw in caps_raw.items():
        try:
            kind = MetricKind(name)
        except ValueError:
            errors.append(
                f"capabilities.{name} is not a metric kind "
                f"(expected one of {[k.value for k in MetricKind]})"
            )
            continue
        if not isinstance(rule_raw, dict):
            errors.append(f"capabilities.{name} must be a mapping")
            continue
        has_include = "include" in rule_raw
        has_exclude = "exclude" in rule_raw
        if has_include == has_exclude:
            errors.append(f"capabilities.{name} needs exactly one of 'include' or 'exclude'")
            continue
        if has_include:
            codes = _int_list(rule_raw["include"], f"capabilities.{name}.include", errors)
            capabilities[kind] = CapabilityRule(include=codes or ())
        else:
            codes = _int_list(rule_raw["exclude"], f"capabilities.{name}.exclude", errors)
            capabilities[kind] = CapabilityRule(exclude=codes or ())

    # ── Fetch ──
    fetch_raw = _section(raw, "fetch", errors)
    fetch = FetchConfig(
        concurrent=_bool_setting(fetch_raw, "concurrent", True, "fetch.concurrent", errors),
        max_concurrent=_int_setting(
            fetch_raw, "max_concurrent", 3, "fetch.max_concurrent", errors
        ),
    )
    if fetch.max_concurrent < 1:
        errors.append(f"fetch.max_concurrent must be >= 1, got {fetch.max_concurrent}")

    # ── Merge ──
    merge_raw = _section(raw, "merge", errors)
    merge = MergeConfig(
        dedupe_samples=_bool_setting(
            merge_raw, "dedupe_samples", True, "merge.dedupe_samples", errors
        )
    )

    # ── Schedule ──
    sched_raw = _section(raw, "schedule", errors)
    schedule = ScheduleConfig(
        interval_seconds=_int_setting(
            sched_raw, "interval_seconds", 300, "schedule.interval_seconds", errors
        ),
        initial_lookback_minutes=_int_setting(
            sched_raw,
            "initial_lookback_minutes",
            60,
            "schedule.initial_lookback_minutes",
            errors,
        ),
    )
    if schedule.interval_seconds <= 0:
        errors.append(
            f"schedule.interval_seconds must be positive, got {schedule.interval_seconds}"
        )
    if schedule.initial_lookback_minutes < 0:
        errors.append(
            "schedule.initial_lookback_minutes must not be negative, "
            f"got {schedule.initial_lookback_minutes}"
        )

    if errors:
        raise ConfigValidationError(
            f"sync_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return SyncConfig(
        version=version,
        reference_timezone=str(tz_name),
        capabilities=capabilities,
        fetch=fetch,
        merge=merge,
        schedule=schedule,
    )


def load_sync_config(path: Path | None = None) -> SyncConfig:
    """Load and validate the sync config from disk.

    Args:
        path: Override path to YAML. Uses the bundled sync_config.yaml by default.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded sync config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: SyncConfig | None = None
_config_lock = threading.Lock()


def get_sync_config() -> SyncConfig:
    """Return the global SyncConfig, loading it on first call. Thread-safe."""
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:
                _config = load_sync_config()
    return _config


def reload_sync_config(path: Path | None = None) -> SyncConfig:
    """Reload the sync config from disk and replace the global singleton.

    If validation fails the old config is kept and the error is re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_sync_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info("Reloaded sync config: %s → %s", old_version, new_config.version)
    return new_config
