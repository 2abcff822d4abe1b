"""HTTP client for the Wireless Sensor Tags cloud (wirelesstag.net).

Endpoints used:
    /ethClient.asmx/GetTagList2         — Catalog of tags with last-communication ticks
    /ethLogs.asmx/GetMultiTagStatsRaw   — Batched raw samples for many tags, one kind

Every call is a JSON POST carrying ``Authorization: Bearer <token>``.
Failures are mapped onto the taxonomy in ``src.wirelesstags.errors``:
httpx request failures become TransportError, non-200 replies become
RemoteError, and payloads of the wrong shape become DecodeError.
"""

from __future__ import annotations

import logging
import ssl
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Sequence
from zoneinfo import ZoneInfo

import httpx

from src.wirelesstags.base import MetricKind, SensorDescriptor
from src.wirelesstags.config_loader import SyncConfig, get_sync_config
from src.wirelesstags.errors import TransportError
from src.wirelesstags.wire import (
    BatchResponse,
    decode_batch_response,
    decode_error,
    decode_json,
    decode_tag_list,
    encode_stats_request,
    format_wire_date,
)

logger = logging.getLogger("wirelesstags.client")

DEFAULT_USER_AGENT = "WirelessTagClient"

_TAG_LIST_PATH = "/ethClient.asmx/GetTagList2"
_MULTI_TAG_STATS_PATH = "/ethLogs.asmx/GetMultiTagStatsRaw"


@dataclass
class HTTPConfig:
    """Settings needed to build a WirelessTagClient.

    Attributes:
        addr:                 Base address, ``http://host:port`` or ``https://host``.
        token:                API bearer token for the tag manager account.
        location:             Zone the tags are set to.  Overrides
                              ``reference_timezone`` from sync_config.yaml.
        user_agent:           HTTP User-Agent, defaults to "WirelessTagClient".
        timeout:              Per-request timeout in seconds; None means no timeout.
        insecure_skip_verify: Skip TLS certificate verification.
        tls_context:          Custom SSL context; overrides insecure_skip_verify.
    """

    addr: str
    token: str = ""
    location: ZoneInfo | None = None
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float | None = None
    insecure_skip_verify: bool = False
    tls_context: ssl.SSLContext | None = None


class WirelessTagClient:
    """Fetch the tag catalog and batched metric samples from the tag manager.

    Usage::

        async with WirelessTagClient(HTTPConfig(addr="https://wirelesstag.net", token=tok)) as client:
            sensors = await client.list_sensors()
            batch = await client.fetch_metrics([1, 2], MetricKind.TEMPERATURE, since, now)
    """

    def __init__(
        self,
        config: HTTPConfig,
        http_client: httpx.AsyncClient | None = None,
        sync_config: SyncConfig | None = None,
    ) -> None:
        """Validate the address and prepare the underlying httpx client.

        Args:
            config:      Connection settings.
            http_client: Optional pre-configured httpx client (for testing).
                         It is not closed by ``aclose()``.
            sync_config: Override for the YAML sync config.

        Raises:
            ValueError: If the address is not an http:// or https:// URL.
        """
        try:
            url = httpx.URL(config.addr)
        except httpx.InvalidURL as exc:
            raise ValueError(f"Invalid address {config.addr!r}: {exc}") from exc
        if url.scheme not in ("http", "https"):
            raise ValueError(
                f"Unsupported protocol scheme: {url.scheme}, "
                "your address must start with http:// or https://"
            )

        self._url = url
        self._token = config.token
        self._user_agent = config.user_agent or DEFAULT_USER_AGENT
        self._zone = config.location or (sync_config or get_sync_config()).zone

        if http_client is not None:
            self._http_client = http_client
            self._owns_client = False
        else:
            verify: ssl.SSLContext | bool = not config.insecure_skip_verify
            if config.tls_context is not None:
                verify = config.tls_context
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(config.timeout),
                verify=verify,
            )
            self._owns_client = True

    @property
    def zone(self) -> ZoneInfo:
        """Zone request dates are rendered in and stat dates are parsed in."""
        return self._zone

    async def __aenter__(self) -> "WirelessTagClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()

    # ------------------------------------------------------------------
    # Service calls
    # ------------------------------------------------------------------

    async def list_sensors(self) -> list[SensorDescriptor]:
        """Fetch every tag visible to the account.

        Raises:
            TransportError, RemoteError, DecodeError
        """
        payload = await self._post(_TAG_LIST_PATH, b"{}", what="GetTagList2")
        sensors = decode_tag_list(payload)
        logger.debug("GetTagList2 returned %d tags", len(sensors))
        return sensors

    async def fetch_metrics(
        self,
        ids: Sequence[int],
        kind: MetricKind,
        from_: datetime,
        to: datetime,
    ) -> BatchResponse:
        """Fetch raw samples of one kind for a group of tags.

        Args:
            ids:   Tag slave ids; must not be empty.
            kind:  Metric kind to request.
            from_: Lower bound; only its calendar date (in the reference zone) is sent.
            to:    Upper bound; only its calendar date is sent.

        Returns:
            Decoded batch response.

        Raises:
            ValueError:     If ``ids`` is empty.
            TransportError: If the request could not be completed.
            RemoteError:    If the service replied with an error payload.
            DecodeError:    If the reply is not a batch of stat groups.
        """
        if not ids:
            raise ValueError("fetch_metrics needs at least one tag id")

        from_date = format_wire_date(from_, self._zone)
        to_date = format_wire_date(to, self._zone)
        body = encode_stats_request(ids, kind, from_date, to_date)
        logger.debug(
            "GetMultiTagStatsRaw %s for %d tags, %s → %s",
            kind.wire_name, len(ids), from_date, to_date,
        )

        payload = await self._post(_MULTI_TAG_STATS_PATH, body, what="GetMultiTagStatsRaw")
        return decode_batch_response(payload)

    # ------------------------------------------------------------------
    # Private HTTP helper
    # ------------------------------------------------------------------

    def _build_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
            "User-Agent": self._user_agent,
        }

    async def _post(self, path: str, body: bytes, what: str) -> Any:
        """POST a JSON body and return the parsed JSON reply.

        Raises:
            TransportError: On any httpx request failure, timeouts included.
            RemoteError:    On non-200 responses.
            DecodeError:    If the 200 body is not JSON.
        """
        url = self._url.copy_with(path=path)
        try:
            response = await self._http_client.post(
                url, content=body, headers=self._build_headers()
            )
        except httpx.RequestError as exc:
            logger.warning("%s request to %s failed: %s", what, url, exc)
            raise TransportError(f"error during {what}: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            error = decode_error(response.content, response.status_code)
            logger.error(
                "%s %s → %d: %s", what, url, response.status_code, error.message
            )
            raise error

        return decode_json(response.content, what)
