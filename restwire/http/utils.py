# Copyright (c) 2023 - 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

__all__ = (
    "UTF_8",
    "Executor",
    "SynchronousExecutor",
    "execute_on",
    "parse_charset",
)

UTF_8 = "UTF-8"


@runtime_checkable
class Executor(Protocol):
    def execute(self, fn: Callable[[], Any]) -> None: ...


class SynchronousExecutor:
    """Runs every task immediately on the calling thread."""

    def execute(self, fn: Callable[[], Any]) -> None:
        fn()

    def __repr__(self) -> str:
        return "SynchronousExecutor()"


def execute_on(executor: Any, fn: Callable[[], Any]) -> None:
    """Hand ``fn`` to either an ``Executor`` or a ``concurrent.futures`` executor."""
    if isinstance(executor, Executor):
        executor.execute(fn)
    elif hasattr(executor, "submit"):
        executor.submit(fn)
    elif callable(executor):
        executor(fn)
    else:
        raise TypeError(f"Not an executor: {executor!r}")


def parse_charset(content_type: str) -> str:
    """Charset parameter of a Content-Type value, UTF-8 when absent."""
    for part in content_type.split(";")[1:]:
        key, _, value = part.strip().partition("=")
        if key.strip().lower() == "charset" and value:
            return value.strip().strip('"')
    return UTF_8
