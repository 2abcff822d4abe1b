"""Tests for tag-type capability lookup."""

from __future__ import annotations

import pytest

from src.wirelesstags.base import MetricKind
from src.wirelesstags.capabilities import can_playback, capabilities, has_event_sensor
from src.wirelesstags.config_loader import SyncConfig, _validate_and_build


class TestCapabilities:
    @pytest.mark.parametrize(
        ("tag_type", "expected"),
        [
            (12, {MetricKind.TEMPERATURE}),
            (13, {MetricKind.TEMPERATURE, MetricKind.HUMIDITY}),
            (21, {MetricKind.TEMPERATURE, MetricKind.HUMIDITY}),
            (26, {MetricKind.TEMPERATURE, MetricKind.HUMIDITY, MetricKind.LIGHT}),
            (52, {MetricKind.TEMPERATURE, MetricKind.HUMIDITY}),
            (72, {MetricKind.TEMPERATURE, MetricKind.HUMIDITY}),
            (82, set()),
            (92, set()),
        ],
    )
    def test_default_table(self, sync_config: SyncConfig, tag_type: int, expected: set) -> None:
        assert capabilities(tag_type, sync_config) == frozenset(expected)

    def test_unknown_tag_type_is_total(self, sync_config: SyncConfig) -> None:
        assert capabilities(9999, sync_config) == frozenset({MetricKind.TEMPERATURE})
        assert capabilities(-1, sync_config) == frozenset({MetricKind.TEMPERATURE})

    def test_configured_extra_kinds(self) -> None:
        config = _validate_and_build(
            {
                "capabilities": {
                    "motion": {"include": [12, 13, 21]},
                    "signal": {"exclude": []},
                }
            }
        )
        assert capabilities(13, config) == frozenset({MetricKind.MOTION, MetricKind.SIGNAL})
        assert capabilities(26, config) == frozenset({MetricKind.SIGNAL})

    def test_defaults_to_bundled_config(self) -> None:
        assert MetricKind.LIGHT in capabilities(26)


class TestTagFamilies:
    @pytest.mark.parametrize("tag_type", [12, 13, 21, 26, 52, 53, 72])
    def test_event_sensors(self, tag_type: int) -> None:
        assert has_event_sensor(tag_type)

    @pytest.mark.parametrize("tag_type", [32, 42, 82])
    def test_non_event_sensors(self, tag_type: int) -> None:
        assert not has_event_sensor(tag_type)

    def test_only_type_21_can_playback(self) -> None:
        assert can_playback(21)
        assert not can_playback(13)
