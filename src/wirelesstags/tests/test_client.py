"""Tests for WirelessTagClient against a mocked tag manager."""

from __future__ import annotations

import json

import httpx
import pytest

from src.wirelesstags.base import MetricKind
from src.wirelesstags.client import HTTPConfig, WirelessTagClient
from src.wirelesstags.errors import DecodeError, RemoteError, TransportError
from src.wirelesstags.tests.conftest import (
    AUCKLAND,
    DAY_START_2017_10_15,
    TEST_TOKEN,
    make_client,
    stats_payload,
    utc,
)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestClientConstruction:
    @pytest.mark.parametrize("addr", ["ftp://wirelesstag.net", "wirelesstag.net"])
    def test_rejects_non_http_scheme(self, addr: str) -> None:
        with pytest.raises(ValueError, match="http:// or https://"):
            WirelessTagClient(HTTPConfig(addr=addr), http_client=httpx.AsyncClient())

    def test_location_overrides_config_zone(self, sync_config) -> None:
        client = WirelessTagClient(
            HTTPConfig(addr="http://localhost:8080", location=AUCKLAND),
            http_client=httpx.AsyncClient(),
            sync_config=sync_config,
        )
        assert client.zone is AUCKLAND

    def test_zone_defaults_to_config(self, sync_config) -> None:
        client = WirelessTagClient(
            HTTPConfig(addr="http://localhost:8080"),
            http_client=httpx.AsyncClient(),
            sync_config=sync_config,
        )
        assert client.zone.key == "Pacific/Auckland"


# ---------------------------------------------------------------------------
# list_sensors
# ---------------------------------------------------------------------------


class TestListSensors:
    @pytest.mark.asyncio
    async def test_request_shape(self, tag_list_raw: dict) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=tag_list_raw)

        async with make_client(handler, user_agent="tag-sync-test") as client:
            sensors = await client.list_sensors()

        assert [s.slave_id for s in sensors] == [1, 2, 3]
        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/ethClient.asmx/GetTagList2"
        assert request.headers["Authorization"] == f"Bearer {TEST_TOKEN}"
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["User-Agent"] == "tag-sync-test"
        assert request.content == b"{}"

    @pytest.mark.asyncio
    async def test_default_user_agent(self, tag_list_raw: dict) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=tag_list_raw)

        await make_client(handler).list_sensors()
        assert seen[0].headers["User-Agent"] == "WirelessTagClient"

    @pytest.mark.asyncio
    async def test_remote_error_message_verbatim(self, service_error_raw: dict) -> None:
        client = make_client(lambda request: httpx.Response(500, json=service_error_raw))

        with pytest.raises(RemoteError) as exc_info:
            await client.list_sensors()

        assert str(exc_info.value) == "Authentication failed. Please sign in again."
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_unstructured_error_body(self) -> None:
        client = make_client(lambda request: httpx.Response(503, text="Service Unavailable"))

        with pytest.raises(RemoteError, match="unexpected response status code 503"):
            await client.list_sensors()

    @pytest.mark.asyncio
    async def test_non_json_body(self) -> None:
        client = make_client(lambda request: httpx.Response(200, text="<html></html>"))

        with pytest.raises(DecodeError):
            await client.list_sensors()

    @pytest.mark.asyncio
    async def test_wrong_shape(self) -> None:
        client = make_client(lambda request: httpx.Response(200, json={"d": {"stats": []}}))

        with pytest.raises(DecodeError):
            await client.list_sensors()

    @pytest.mark.asyncio
    async def test_connection_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError, match="GetTagList2"):
            await make_client(handler).list_sensors()

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(TransportError):
            await make_client(handler).list_sensors()


# ---------------------------------------------------------------------------
# fetch_metrics
# ---------------------------------------------------------------------------


class TestFetchMetrics:
    @pytest.mark.asyncio
    async def test_request_body(self, temperature_stats_raw: dict) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=temperature_stats_raw)

        since = utc(DAY_START_2017_10_15 + 60)
        until = utc(DAY_START_2017_10_15 + 86400 + 60)
        batch = await make_client(handler).fetch_metrics(
            [1, 2], MetricKind.TEMPERATURE, since, until
        )

        assert len(batch.stats) == 1
        request = seen[0]
        assert request.url.path == "/ethLogs.asmx/GetMultiTagStatsRaw"
        assert json.loads(request.content) == {
            "ids": [1, 2],
            "type": "temperature",
            "fromDate": "10/15/2017",
            "toDate": "10/16/2017",
        }

    @pytest.mark.asyncio
    async def test_kind_wire_name(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=stats_payload())

        since = utc(DAY_START_2017_10_15)
        await make_client(handler).fetch_metrics([5], MetricKind.HUMIDITY, since, since)
        assert json.loads(seen[0].content)["type"] == "cap"

    @pytest.mark.asyncio
    async def test_empty_ids_rejected(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        since = utc(DAY_START_2017_10_15)
        with pytest.raises(ValueError):
            await make_client(handler).fetch_metrics([], MetricKind.TEMPERATURE, since, since)

    @pytest.mark.asyncio
    async def test_malformed_batch(self) -> None:
        payload = stats_payload(
            {"date": "10/15/2017", "ids": [1, 2], "values": [[20.0]], "tods": [[60]]}
        )
        client = make_client(lambda request: httpx.Response(200, json=payload))
        since = utc(DAY_START_2017_10_15)

        with pytest.raises(DecodeError):
            await client.fetch_metrics([1, 2], MetricKind.TEMPERATURE, since, since)

    @pytest.mark.asyncio
    async def test_path_replaces_base_path(self, temperature_stats_raw: dict) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=temperature_stats_raw)

        client = make_client(handler, addr="http://localhost:8080/ignored")
        since = utc(DAY_START_2017_10_15)
        await client.fetch_metrics([1], MetricKind.TEMPERATURE, since, since)

        assert str(seen[0].url) == "http://localhost:8080/ethLogs.asmx/GetMultiTagStatsRaw"
