# Copyright (c) 2023 - 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

__all__ = ("RequestInformation", "Profiler")

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class RequestInformation:
    """Static description of a request, handed to a ``Profiler``."""

    method: str
    base_url: str
    relative_path: str
    content_length: int
    content_type: str | None


class Profiler(Generic[T]):
    """Hook around every transport call.

    ``before_call`` runs right before the request is sent and may return a
    value that is passed back to ``after_call``.
    """

    def before_call(self) -> T | None:
        return None

    def after_call(
        self,
        request_info: RequestInformation,
        elapsed_ms: int,
        status_code: int,
        before_call_data: T | None,
    ) -> Any:
        return None
