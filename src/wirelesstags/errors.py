"""Error taxonomy for talking to the Wireless Sensor Tags service.

    TransportError — the HTTP call could not complete (connect, read, timeout)
    RemoteError    — the service answered with a structured failure payload
    DecodeError    — a payload does not match the documented wire shape

None of these are retried here; a failed call aborts the current sync cycle.
"""

from __future__ import annotations


class WirelessTagError(Exception):
    """Base class for every error raised by the wirelesstags package."""


class TransportError(WirelessTagError):
    """The underlying HTTP request could not be completed."""


class RemoteError(WirelessTagError):
    """The service replied with a non-success status.

    Attributes:
        message:        ``Message`` from the service's error payload, verbatim.
        exception_type: ``ExceptionType`` from the payload, if any.
        stack_trace:    ``StackTrace`` from the payload, if any.
        status_code:    HTTP status code of the response.
    """

    def __init__(
        self,
        message: str,
        exception_type: str | None = None,
        stack_trace: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.exception_type = exception_type
        self.stack_trace = stack_trace
        self.status_code = status_code


class DecodeError(WirelessTagError):
    """A response payload violates the expected wire contract."""
