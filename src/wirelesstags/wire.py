"""Wire codec for the tag manager's JSON web services.

Requests are JSON POST bodies; responses wrap their result in a ``d`` member
(ASP.NET style).  Dates travel as ``M/D/YYYY`` strings in the zone the tag
manager records in, and samples come back grouped per calendar day as
time-of-day offsets in seconds.

Shapes handled here::

    GetMultiTagStatsRaw request
        {"ids": [1, 2], "type": "temperature", "fromDate": "10/15/2017", "toDate": "10/16/2017"}

    GetMultiTagStatsRaw response
        {"d": {"stats": [{"date": "10/15/2017", "ids": [1, 2],
                          "values": [[21.5, 21.7], [19.0]],
                          "tods": [[3600, 7200], [3600]]}], ...}}

    GetTagList2 response
        {"d": [{"slaveId": 1, "tagType": 13, "lastComm": 131557748239379584, ...}]}

    Error response (any non-200)
        {"Message": "...", "ExceptionType": "...", "StackTrace": "..."}
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Annotated, Any, Sequence
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from src.wirelesstags.base import MetricKind, SensorDescriptor
from src.wirelesstags.epoch import MAX_TICKS, MIN_TICKS
from src.wirelesstags.errors import DecodeError, RemoteError

WIRE_DATE_FORMAT = "%m/%d/%Y"

SlaveId = Annotated[int, Field(ge=0, le=255)]
TimeOfDay = Annotated[int, Field(ge=0)]
FiletimeTicks = Annotated[int, Field(ge=MIN_TICKS, le=MAX_TICKS)]


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def format_wire_date(moment: datetime, zone: ZoneInfo) -> str:
    """Render ``moment`` as ``M/D/YYYY`` in the given zone, without zero padding.

    Naive datetimes are taken to be UTC.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    local = moment.astimezone(zone)
    return f"{local.month}/{local.day}/{local.year}"


def parse_wire_date(text: str, zone: ZoneInfo) -> datetime:
    """Parse a ``M/D/YYYY`` stat date to midnight of that day in ``zone``.

    Raises:
        DecodeError: If the text is not a calendar date.
    """
    try:
        day = datetime.strptime(text, WIRE_DATE_FORMAT)
    except (TypeError, ValueError) as exc:
        raise DecodeError(f"can't parse start date {text!r}") from exc
    return day.replace(tzinfo=zone)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


def encode_stats_request(
    ids: Sequence[int], kind: MetricKind, from_date: str, to_date: str
) -> bytes:
    """Encode a GetMultiTagStatsRaw request body.

    The id list must reach the service as a literal array of integers, so
    every id is coerced to a plain ``int`` here; ``bytes``/``bytearray`` id
    buffers or numpy scalars would otherwise serialise as something else.
    """
    body = {
        "ids": [int(i) for i in ids],
        "type": kind.wire_name,
        "fromDate": from_date,
        "toDate": to_date,
    }
    return json.dumps(body).encode("utf-8")


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class StatGroup(_WireModel):
    """One calendar day of samples for a set of tags and one metric kind."""

    date: str
    ids: list[SlaveId]
    values: list[list[float]]
    tods: list[list[TimeOfDay]]

    def shape_errors(self) -> list[str]:
        """Describe every violation of the ids/values/tods length invariant."""
        errors: list[str] = []
        if len(self.ids) != len(self.values):
            errors.append(
                f"stat {self.date}: {len(self.ids)} ids but {len(self.values)} value rows"
            )
        if len(self.ids) != len(self.tods):
            errors.append(
                f"stat {self.date}: {len(self.ids)} ids but {len(self.tods)} tod rows"
            )
        for i, (values, tods) in enumerate(zip(self.values, self.tods)):
            if len(values) != len(tods):
                errors.append(
                    f"stat {self.date}: row {i} has {len(values)} values but {len(tods)} tods"
                )
        return errors

    @model_validator(mode="after")
    def _check_shape(self) -> "StatGroup":
        errors = self.shape_errors()
        if errors:
            raise ValueError("; ".join(errors))
        return self


class BatchResponse(_WireModel):
    """Decoded GetMultiTagStatsRaw result (the ``d`` member)."""

    stats: list[StatGroup] = Field(default_factory=list)
    temp_unit: int | None = None
    ids: list[int] | None = None
    names: list[str] | None = None


class _BatchEnvelope(_WireModel):
    d: BatchResponse


class TagListEntry(_WireModel):
    """One tag from GetTagList2; only the fields the sync engine reads."""

    slave_id: SlaveId = Field(alias="slaveId")
    tag_type: int = Field(alias="tagType")
    last_comm: FiletimeTicks = Field(alias="lastComm")
    out_of_range: bool = Field(default=False, alias="outOfRange")
    name: str = ""
    comment: str | None = None

    def to_descriptor(self) -> SensorDescriptor:
        return SensorDescriptor(
            slave_id=self.slave_id,
            tag_type=self.tag_type,
            last_comm=self.last_comm,
            out_of_range=self.out_of_range,
            name=self.name,
            comment=self.comment or "",
        )


class _TagListEnvelope(_WireModel):
    d: list[TagListEntry]


class ServiceErrorPayload(_WireModel):
    message: str = Field(alias="Message")
    exception_type: str | None = Field(default=None, alias="ExceptionType")
    stack_trace: str | None = Field(default=None, alias="StackTrace")


def decode_json(body: bytes, what: str) -> Any:
    """Parse a JSON body, mapping syntax errors to DecodeError."""
    try:
        return json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DecodeError(f"error decoding JSON {what} response: {exc}") from exc


def decode_batch_response(payload: Any) -> BatchResponse:
    """Validate a parsed GetMultiTagStatsRaw payload.

    Raises:
        DecodeError: If the payload does not have the batch shape.
    """
    try:
        return _BatchEnvelope.model_validate(payload).d
    except ValidationError as exc:
        raise DecodeError(f"unexpected GetMultiTagStatsRaw payload: {exc}") from exc


def decode_tag_list(payload: Any) -> list[SensorDescriptor]:
    """Validate a parsed GetTagList2 payload into sensor descriptors.

    Raises:
        DecodeError: If the payload does not have the tag list shape.
    """
    try:
        envelope = _TagListEnvelope.model_validate(payload)
    except ValidationError as exc:
        raise DecodeError(f"error while decoding sensor tag data: {exc}") from exc
    return [entry.to_descriptor() for entry in envelope.d]


def decode_error(body: bytes, status_code: int) -> RemoteError:
    """Build a RemoteError from a non-200 response body.

    The service's ``Message`` is surfaced verbatim.  Bodies that are not the
    structured error payload fall back to the status code.
    """
    try:
        payload = ServiceErrorPayload.model_validate(json.loads(body))
    except (UnicodeDecodeError, json.JSONDecodeError, ValidationError):
        return RemoteError(
            f"unexpected response status code {status_code}", status_code=status_code
        )
    return RemoteError(
        payload.message,
        exception_type=payload.exception_type,
        stack_trace=payload.stack_trace,
        status_code=status_code,
    )
