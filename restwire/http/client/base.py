# Copyright (c) 2023 - 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Protocol, runtime_checkable

from ..types import Header, TypedBytes

__all__ = ("Request", "Response", "Client", "part_filename", "to_headers")


@dataclass(slots=True, frozen=True)
class Request:
    """Everything a transport needs to perform one HTTP request.

    ``body`` and ``multipart`` are mutually exclusive. An empty multipart
    mapping is normalised to None.
    """

    method: str
    url: str
    headers: tuple[Header, ...] = ()
    body: TypedBytes | None = None
    multipart: Mapping[str, TypedBytes] | None = field(
        default=None, compare=False
    )

    def __post_init__(self):
        if self.method is None:
            raise ValueError("Method must not be None.")
        if self.url is None:
            raise ValueError("Url must not be None.")
        object.__setattr__(self, "headers", tuple(self.headers or ()))

        parts = self.multipart
        if parts is not None:
            parts = MappingProxyType(dict(parts)) if parts else None
            object.__setattr__(self, "multipart", parts)
        if self.body is not None and parts is not None:
            raise ValueError(
                "Request body and multipart parts are mutually exclusive."
            )

    @property
    def is_multipart(self) -> bool:
        return self.multipart is not None


@dataclass(slots=True, frozen=True)
class Response:
    """An HTTP response as handed back by a transport."""

    status: int
    reason: str
    headers: tuple[Header, ...]
    body: bytes | None = None

    def __post_init__(self):
        if self.status < 100:
            raise ValueError(f"Invalid status code: {self.status}")
        if self.reason is None:
            raise ValueError("Reason must not be None.")
        if self.headers is None:
            raise ValueError("Headers must not be None.")
        object.__setattr__(self, "headers", tuple(self.headers))

    def header(self, name: str) -> str | None:
        """First value of the named header, compared case-insensitively."""
        name = name.lower()
        for h in self.headers:
            if h.name.lower() == name:
                return h.value
        return None


@runtime_checkable
class Client(Protocol):
    """Blocking transport contract.

    Implementations must preserve header order and body bytes as received
    and signal I/O failures by raising ``OSError``.
    """

    def execute(self, request: Request) -> Response: ...


def to_headers(pairs: Iterable[tuple[str, str]]) -> tuple[Header, ...]:
    return tuple(Header(str(k), str(v)) for k, v in pairs)


def part_filename(name: str, part: TypedBytes) -> str:
    """File name sent for a multipart part: the part name plus extension."""
    ext = part.mime_type.extension
    return f"{name}.{ext}" if ext else name
