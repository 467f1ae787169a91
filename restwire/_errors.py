# Copyright (c) 2023 - 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from .http.client.base import Response
    from .http.converter import Converter
    from .http.types import Header

__all__ = (
    "RestwireError",
    "InvalidEndpointDescriptor",
    "MissingPathParameter",
    "UnusedNamedParameterOnEntityRequest",
    "ConversionException",
    "ErrorKind",
    "RestError",
    "ConversionError",
    "HttpError",
    "NetworkError",
    "UnexpectedError",
)


class RestwireError(Exception):
    default_message: ClassVar[str] = "restwire error"
    __slots__ = ("message", "details")

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message or self.default_message)
        if cause:
            self.__cause__ = cause  # preserves traceback
        self.message = message or self.default_message
        self.details = details or {}

    def to_dict(self, *, include_cause: bool = False) -> dict[str, Any]:
        data = {
            "error": self.__class__.__name__,
            "message": self.message,
            **({"details": self.details} if self.details else {}),
        }
        if include_cause and (cause := self.get_cause()):
            data["cause"] = repr(cause)
        return data

    def get_cause(self) -> BaseException | None:
        """Get the cause of this error, if any."""
        return self.__cause__


class InvalidEndpointDescriptor(RestwireError):
    """The declarative contract of an endpoint method is malformed."""

    default_message = "Invalid endpoint descriptor"
    __slots__ = ()

    @classmethod
    def for_method(cls, method_name: str, reason: str):
        return cls(
            f"{reason}: {method_name}",
            details={"method": method_name, "reason": reason},
        )


class MissingPathParameter(RestwireError):
    """A path template placeholder has no matching named argument."""

    default_message = "Path parameter has no matching named argument"
    __slots__ = ()


class UnusedNamedParameterOnEntityRequest(RestwireError):
    """Named arguments were left over on a single-entity request."""

    default_message = (
        "Named argument on single-entity request was not used for path "
        "substitution"
    )
    __slots__ = ()


class ConversionException(RestwireError):
    """Raised by a converter when a body cannot be converted."""

    default_message = "Conversion failed"
    __slots__ = ()


class ErrorKind(str, Enum):
    CONVERSION = "conversion"
    HTTP = "http"
    NETWORK = "network"
    UNEXPECTED = "unexpected"


class RestError(RestwireError):
    """Per-call failure of an HTTP round trip.

    Every instance carries the URL of the request (or the server URL when
    the request was never built). Errors that saw a response also carry it,
    so callers can inspect status, headers and the raw body.
    """

    kind: ClassVar[ErrorKind]
    __slots__ = ("url", "response", "target_type", "_converter")

    def __init__(
        self,
        message: str | None = None,
        *,
        url: str,
        response: Response | None = None,
        converter: Converter | None = None,
        target_type: Any = None,
        cause: BaseException | None = None,
    ):
        details = {"url": url, "kind": self.kind.value}
        if response is not None:
            details["status"] = response.status
        super().__init__(message, details=details, cause=cause)
        self.url = url
        self.response = response
        self.target_type = target_type
        self._converter = converter

    @property
    def status(self) -> int | None:
        return self.response.status if self.response is not None else None

    @property
    def headers(self) -> tuple[Header, ...]:
        return self.response.headers if self.response is not None else ()

    @property
    def body(self) -> bytes | None:
        return self.response.body if self.response is not None else None

    def body_as(self, target_type: Any = None) -> Any:
        """Decode the raw response body, by default into the endpoint type.

        Returns None when there is no response body to decode.
        """
        body = self.body
        if body is None or self._converter is None:
            return None
        return self._converter.from_body(
            body, target_type if target_type is not None else self.target_type
        )


class ConversionError(RestError):
    kind = ErrorKind.CONVERSION
    default_message = "Response body could not be converted"
    __slots__ = ()


class HttpError(RestError):
    kind = ErrorKind.HTTP
    default_message = "Non-2xx HTTP status"
    __slots__ = ()


class NetworkError(RestError):
    kind = ErrorKind.NETWORK
    default_message = "Network failure"
    __slots__ = ()


class UnexpectedError(RestError):
    kind = ErrorKind.UNEXPECTED
    default_message = "Unexpected failure"
    __slots__ = ()
