# Copyright (c) 2023 - 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

"""Value objects shared by the request builder, converters and transports."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, BinaryIO

__all__ = (
    "Header",
    "Parameter",
    "MimeType",
    "TypedBytes",
    "TypedByteArray",
    "TypedString",
)


@dataclass(slots=True, frozen=True)
class Header:
    """An HTTP header. Equality is structural."""

    name: str
    value: str

    def __post_init__(self):
        if self.name is None:
            raise ValueError("Header name must not be None.")
        if self.value is None:
            raise ValueError("Header value must not be None.")

    def __str__(self) -> str:
        return f"{self.name}: {self.value}"


@dataclass(slots=True, frozen=True)
class Parameter:
    """A named value bound for path substitution, query string or body.

    ``value_type`` records the declared (or runtime) type of the value for
    converters; it takes no part in equality or hashing.
    """

    name: str
    value: Any
    value_type: Any = field(default=None, compare=False, hash=False)

    def __post_init__(self):
        if self.name is None:
            raise ValueError("Parameter name must not be None.")
        if self.value_type is None and self.value is not None:
            object.__setattr__(self, "value_type", type(self.value))

    def __hash__(self) -> int:
        try:
            return hash((self.name, self.value))
        except TypeError:
            return hash(self.name)

    def __str__(self) -> str:
        return f"{self.name}={self.value}"


@dataclass(slots=True, frozen=True)
class MimeType:
    mime_name: str
    extension: str | None = None

    def __str__(self) -> str:
        return self.mime_name


class TypedBytes(ABC):
    """Binary payload paired with the MIME type that describes it."""

    @property
    @abstractmethod
    def mime_type(self) -> MimeType: ...

    @property
    @abstractmethod
    def length(self) -> int: ...

    @abstractmethod
    def write_to(self, out: BinaryIO) -> None: ...

    def to_bytes(self) -> bytes:
        from io import BytesIO

        buf = BytesIO()
        self.write_to(buf)
        return buf.getvalue()


class TypedByteArray(TypedBytes):
    __slots__ = ("_mime_type", "_data")

    def __init__(self, mime_type: MimeType | str, data: bytes):
        if data is None:
            raise ValueError("data must not be None.")
        if isinstance(mime_type, str):
            mime_type = MimeType(mime_type)
        self._mime_type = mime_type
        self._data = bytes(data)

    @property
    def mime_type(self) -> MimeType:
        return self._mime_type

    @property
    def length(self) -> int:
        return len(self._data)

    def write_to(self, out: BinaryIO) -> None:
        out.write(self._data)

    def to_bytes(self) -> bytes:
        return self._data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypedByteArray):
            return NotImplemented
        return (
            self._mime_type == other._mime_type and self._data == other._data
        )

    def __hash__(self) -> int:
        return hash((self._mime_type, self._data))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(mime_type={self._mime_type.mime_name!r}, "
            f"length={len(self._data)})"
        )


class TypedString(TypedByteArray):
    __slots__ = ()

    TEXT_PLAIN = MimeType("text/plain; charset=UTF-8", "txt")

    def __init__(self, value: str):
        super().__init__(self.TEXT_PLAIN, value.encode("utf-8"))

    def __str__(self) -> str:
        return self._data.decode("utf-8")
