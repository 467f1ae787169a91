# Copyright (c) 2023 - 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from typing import TYPE_CHECKING

from restwire._lazy import lazy_import

from .base import Client, Request, Response

if TYPE_CHECKING:
    from .aiohttp_client import AiohttpClient
    from .httpx_client import HttpxClient

_LAZY_MAP: dict[str, tuple[str, str | None]] = {
    "HttpxClient": ("httpx_client", "HttpxClient"),
    "AiohttpClient": ("aiohttp_client", "AiohttpClient"),
}


def __getattr__(name: str):
    return lazy_import(name, _LAZY_MAP, __name__, globals())


__all__ = (
    "AiohttpClient",
    "Client",
    "HttpxClient",
    "Request",
    "Response",
)
