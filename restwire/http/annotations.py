# Copyright (c) 2023 - 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

"""Declarative surface used to describe a remote API.

Example:
    ```python
    class GitHub:
        @GET("users/{user}/repos")
        @query_param("sort", "updated")
        def repos(self, user: Annotated[str, Named("user")]) -> list[Repo]: ...

        @POST("repos/{owner}/{repo}/issues")
        def create_issue(
            self,
            owner: Annotated[str, Named("owner")],
            repo: Annotated[str, Named("repo")],
            issue: Annotated[Issue, SingleEntity()],
            callback: Callback[Issue],
        ) -> None: ...
    ```

Decorators only record marks on the function; validation happens when a
descriptor is resolved, so conflicting marks are reported together with
the method they belong to.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from .._errors import RestwireError
    from .client.base import Response

__all__ = (
    "MARKS_ATTR",
    "RestMethod",
    "Verb",
    "QueryParam",
    "QueryParams",
    "Multipart",
    "Named",
    "SingleEntity",
    "Callback",
    "rest_method",
    "GET",
    "POST",
    "PUT",
    "DELETE",
    "HEAD",
    "query_param",
    "query_params",
    "multipart",
    "get_marks",
    "is_endpoint",
)

MARKS_ATTR = "__restwire_marks__"

T = TypeVar("T")
F = TypeVar("F", bound=Callable)


@dataclass(slots=True, frozen=True)
class RestMethod:
    """An HTTP verb and whether requests using it carry a body."""

    value: str
    has_body: bool = False


@dataclass(slots=True, frozen=True)
class Verb:
    method: RestMethod
    path: str


@dataclass(slots=True, frozen=True)
class QueryParam:
    name: str
    value: str


@dataclass(slots=True, frozen=True)
class QueryParams:
    value: tuple[QueryParam, ...]


@dataclass(slots=True, frozen=True)
class Multipart:
    pass


@dataclass(slots=True, frozen=True)
class Named:
    """Binds an argument to a key for path substitution, query or body."""

    value: str


@dataclass(slots=True, frozen=True)
class SingleEntity:
    """Marks the argument whose value becomes the whole request body."""


class Callback(ABC, Generic[T]):
    """Receives the outcome of an asynchronous endpoint call.

    Exactly one of the two methods is invoked per call, on the callback
    executor of the adapter.
    """

    @abstractmethod
    def success(self, result: T, response: Response) -> None: ...

    @abstractmethod
    def failure(self, error: RestwireError) -> None: ...


def _add_mark(func: F, mark) -> F:
    marks = func.__dict__.get(MARKS_ATTR)
    if marks is None:
        marks = []
        setattr(func, MARKS_ATTR, marks)
    # decorators apply bottom-up; keep source order
    marks.insert(0, mark)
    return func


def get_marks(func: Callable) -> tuple:
    return tuple(getattr(func, MARKS_ATTR, ()))


def is_endpoint(func: Callable) -> bool:
    return any(isinstance(m, Verb) for m in get_marks(func))


def rest_method(
    value: str, has_body: bool = False
) -> Callable[[str], Callable[[F], F]]:
    """Create a verb decorator factory, e.g. ``PATCH = rest_method("PATCH", True)``."""
    method = RestMethod(value.upper(), has_body)

    def factory(path: str) -> Callable[[F], F]:
        if not isinstance(path, str):
            raise TypeError(
                f"@{method.value} expects a path template, got {path!r}"
            )

        def decorator(func: F) -> F:
            return _add_mark(func, Verb(method, path))

        return decorator

    factory.rest_method = method
    return factory


GET = rest_method("GET")
POST = rest_method("POST", has_body=True)
PUT = rest_method("PUT", has_body=True)
DELETE = rest_method("DELETE")
HEAD = rest_method("HEAD")


def query_param(name: str, value: str) -> Callable[[F], F]:
    """Add one fixed query parameter to every request of the endpoint."""

    def decorator(func: F) -> F:
        return _add_mark(func, QueryParam(name, value))

    return decorator


def query_params(*params: QueryParam | tuple[str, str]) -> Callable[[F], F]:
    """Add several fixed query parameters, in the given order."""
    value = tuple(
        p if isinstance(p, QueryParam) else QueryParam(*p) for p in params
    )

    def decorator(func: F) -> F:
        return _add_mark(func, QueryParams(value))

    return decorator


def multipart(func: F) -> F:
    """Send named arguments as the parts of a multipart request."""
    return _add_mark(func, Multipart())
