# Copyright (c) 2023 - 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import inspect
import logging
import re
import threading
import typing
from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, TypeVar, get_args, get_origin

from .._errors import InvalidEndpointDescriptor
from .annotations import (
    Callback,
    Multipart,
    Named,
    QueryParam,
    QueryParams,
    SingleEntity,
    Verb,
    get_marks,
)

__all__ = (
    "RoleKind",
    "ArgumentRole",
    "MethodDescriptor",
    "DescriptorCache",
    "parse_path_parameters",
)

logger = logging.getLogger(__name__)

PATH_PARAMETERS = re.compile(r"\{([a-z_-]+)\}")


def parse_path_parameters(path: str) -> tuple[str, ...]:
    """Unique path parameter names of a template, in order of appearance."""
    return tuple(dict.fromkeys(PATH_PARAMETERS.findall(path)))


class RoleKind(str, Enum):
    NAMED = "named"
    SINGLE_ENTITY = "single-entity"


@dataclass(slots=True, frozen=True)
class ArgumentRole:
    kind: RoleKind
    name: str | None = None

    def __str__(self) -> str:
        if self.kind is RoleKind.NAMED:
            return f"{self.kind.value}:{self.name}"
        return self.kind.value


_SINGLE_ENTITY_ROLE = ArgumentRole(RoleKind.SINGLE_ENTITY)


def _strip_annotated(hint: Any) -> Any:
    if get_origin(hint) is Annotated:
        return get_args(hint)[0]
    return hint


def _is_callback_type(hint: Any) -> bool:
    origin = get_origin(hint) or hint
    return isinstance(origin, type) and issubclass(origin, Callback)


def _resolve_typevar(arg: Any, method_name: str) -> Any:
    if isinstance(arg, TypeVar):
        if arg.__bound__ is None:
            raise InvalidEndpointDescriptor.for_method(
                method_name,
                f"Callback type variable {arg} has no bound to convert into",
            )
        return arg.__bound__
    return arg


def _callback_type_argument(hint: Any, method_name: str) -> Any:
    """Type argument ``X`` of ``Callback[X]`` for a callback annotation.

    Walks generic bases so that ``MyCallback[X]`` and concrete subclasses
    such as ``class UserCallback(Callback[User])`` resolve too.
    """
    origin = get_origin(hint) or hint
    subst = dict(zip(getattr(origin, "__parameters__", ()), get_args(hint)))

    def walk(cls: type, mapping: dict) -> Any:
        if cls is Callback:
            return mapping.get(T_CALLBACK, T_CALLBACK)
        for base in getattr(cls, "__orig_bases__", ()):
            base_origin = get_origin(base) or base
            if not (
                isinstance(base_origin, type)
                and issubclass(base_origin, Callback)
            ):
                continue
            base_args = tuple(
                mapping.get(a, a) if isinstance(a, TypeVar) else a
                for a in get_args(base)
            )
            params = getattr(base_origin, "__parameters__", ())
            return walk(base_origin, dict(zip(params, base_args)))
        return T_CALLBACK

    found = walk(origin, subst)
    if found is T_CALLBACK:
        raise InvalidEndpointDescriptor.for_method(
            method_name,
            "Last parameter must be of type Callback[X] or a subclass bound to X",
        )
    return _resolve_typevar(found, method_name)


T_CALLBACK = Callback.__parameters__[0]


@dataclass(slots=True, frozen=True)
class MethodDescriptor:
    """Parsed declarative contract of one endpoint method.

    Built once per method and never mutated. ``argument_roles`` lines up
    with the method's parameters after ``self``, minus the trailing callback
    of asynchronous methods.
    """

    name: str
    verb: str
    has_body: bool
    path_template: str
    path_param_names: tuple[str, ...]
    fixed_query_params: tuple[QueryParam, ...]
    argument_roles: tuple[ArgumentRole, ...]
    response_type: Any
    is_synchronous: bool
    is_multipart: bool = False
    signature: inspect.Signature | None = field(
        default=None, compare=False, repr=False
    )

    @property
    def single_entity_index(self) -> int | None:
        for i, role in enumerate(self.argument_roles):
            if role.kind is RoleKind.SINGLE_ENTITY:
                return i
        return None

    @property
    def has_single_entity(self) -> bool:
        return self.single_entity_index is not None

    def bind(
        self, args: tuple, kwargs: dict
    ) -> tuple[tuple[Any, ...], Callback | None]:
        """Align call arguments with ``argument_roles``.

        Returns the argument values and, for asynchronous methods, the
        callback instance.
        """
        if self.signature is None:
            values = tuple(args)
        else:
            try:
                bound = self.signature.bind(*args, **kwargs)
            except TypeError as e:
                raise TypeError(f"{self.name}(): {e}") from e
            bound.apply_defaults()
            values = tuple(bound.arguments.values())

        if self.is_synchronous:
            return values, None
        callback = values[-1] if values else None
        if not isinstance(callback, Callback):
            raise TypeError(
                f"{self.name}() expects a Callback as its last argument, "
                f"got {type(callback).__name__}"
            )
        return values[:-1], callback

    @classmethod
    def from_method(
        cls,
        func: Callable,
        *,
        name: str | None = None,
        skip_self: bool = True,
    ) -> MethodDescriptor:
        """Parse an endpoint method.

        Raises:
            InvalidEndpointDescriptor: For any malformed contract.
        """
        name = name or getattr(func, "__qualname__", repr(func))
        try:
            hints = typing.get_type_hints(func, include_extras=True)
        except Exception as e:
            raise InvalidEndpointDescriptor(
                f"Unable to resolve type hints of {name}: {e}",
                details={"method": name},
                cause=e,
            )

        sig = inspect.signature(func)
        params = list(sig.parameters.values())
        if skip_self and params:
            params = params[1:]
        for p in params:
            if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
                raise InvalidEndpointDescriptor.for_method(
                    name, f"Variadic parameter {p.name!r} is not supported"
                )
        sig = sig.replace(parameters=params)

        is_synchronous, response_type = cls._parse_response_type(
            name, hints, params
        )
        verb, fixed_query, is_multipart = cls._parse_method_marks(name, func)
        roles = cls._parse_parameter_roles(
            name, hints, params if is_synchronous else params[:-1]
        )

        if is_multipart:
            if not verb.method.has_body:
                raise InvalidEndpointDescriptor.for_method(
                    name, "Multipart requires an HTTP method with a body"
                )
            if _SINGLE_ENTITY_ROLE in roles:
                raise InvalidEndpointDescriptor.for_method(
                    name, "Multipart and SingleEntity are mutually exclusive"
                )

        descriptor = cls(
            name=name,
            verb=verb.method.value,
            has_body=verb.method.has_body,
            path_template=verb.path,
            path_param_names=parse_path_parameters(verb.path),
            fixed_query_params=fixed_query,
            argument_roles=roles,
            response_type=response_type,
            is_synchronous=is_synchronous,
            is_multipart=is_multipart,
            signature=sig,
        )
        logger.debug(
            f"Resolved endpoint {name}: {descriptor.verb} "
            f"{descriptor.path_template} (synchronous={is_synchronous})"
        )
        return descriptor

    @staticmethod
    def _parse_response_type(
        name: str, hints: dict[str, Any], params: list[inspect.Parameter]
    ) -> tuple[bool, Any]:
        return_type = hints.get("return", type(None))
        has_return_type = return_type is not type(None)

        last_hint = None
        if params:
            last_hint = _strip_annotated(hints.get(params[-1].name))
        has_callback = last_hint is not None and _is_callback_type(last_hint)

        if has_return_type and has_callback:
            raise InvalidEndpointDescriptor.for_method(
                name,
                "Method may only have return type or Callback as last "
                "argument, not both",
            )
        if not has_return_type and not has_callback:
            raise InvalidEndpointDescriptor.for_method(
                name,
                "Method must have either a return type or Callback as last "
                "argument",
            )
        if has_return_type:
            return True, return_type
        return False, _callback_type_argument(last_hint, name)

    @staticmethod
    def _parse_method_marks(
        name: str, func: Callable
    ) -> tuple[Verb, tuple[QueryParam, ...], bool]:
        verb: Verb | None = None
        query: tuple[QueryParam, ...] | None = None
        is_multipart = False

        for mark in get_marks(func):
            if isinstance(mark, Verb):
                if verb is not None:
                    raise InvalidEndpointDescriptor.for_method(
                        name, "Method contains multiple HTTP methods"
                    )
                verb = mark
            elif isinstance(mark, (QueryParam, QueryParams)):
                if query is not None:
                    raise InvalidEndpointDescriptor.for_method(
                        name,
                        "query_param and query_params are mutually exclusive",
                    )
                if isinstance(mark, QueryParam):
                    query = (mark,)
                else:
                    if not mark.value:
                        raise InvalidEndpointDescriptor.for_method(
                            name, "query_params must not be empty"
                        )
                    query = mark.value
            elif isinstance(mark, Multipart):
                is_multipart = True

        if verb is None:
            raise InvalidEndpointDescriptor.for_method(
                name, "Method not decorated with GET, POST, PUT, DELETE or HEAD"
            )
        return verb, query or (), is_multipart

    @staticmethod
    def _parse_parameter_roles(
        name: str, hints: dict[str, Any], params: list[inspect.Parameter]
    ) -> tuple[ArgumentRole, ...]:
        roles = []
        for i, p in enumerate(params):
            hint = hints.get(p.name)
            metadata = (
                get_args(hint)[1:] if get_origin(hint) is Annotated else ()
            )
            markers = [
                m for m in metadata if isinstance(m, (Named, SingleEntity))
            ]
            if len(markers) != 1:
                raise InvalidEndpointDescriptor.for_method(
                    name,
                    f"Argument {i} ({p.name!r}) must be annotated with "
                    "exactly one of Named or SingleEntity",
                )
            marker = markers[0]
            if isinstance(marker, SingleEntity):
                if _SINGLE_ENTITY_ROLE in roles:
                    raise InvalidEndpointDescriptor.for_method(
                        name, "Method has multiple SingleEntity arguments"
                    )
                roles.append(_SINGLE_ENTITY_ROLE)
            else:
                roles.append(ArgumentRole(RoleKind.NAMED, marker.value))
        return tuple(roles)


class DescriptorCache:
    """Read-through cache of descriptors keyed by a stable endpoint id.

    Each key has its own lock, so concurrent first use of one endpoint is
    serialised without blocking resolution of other endpoints. A failed
    resolution is not cached and fails again on the next lookup.
    """

    def __init__(self) -> None:
        self._descriptors: dict[Hashable, MethodDescriptor] = {}
        self._locks: dict[Hashable, threading.Lock] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._descriptors

    def get(
        self, key: Hashable, func: Callable, *, skip_self: bool = True
    ) -> MethodDescriptor:
        descriptor = self._descriptors.get(key)
        if descriptor is not None:
            return descriptor

        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
        with lock:
            descriptor = self._descriptors.get(key)
            if descriptor is None:
                descriptor = MethodDescriptor.from_method(
                    func, skip_self=skip_self
                )
                self._descriptors[key] = descriptor
        return descriptor

    def prime(
        self, items: Iterable[tuple[Hashable, Callable]], *, skip_self=True
    ) -> None:
        """Resolve every endpoint now, failing on the first malformed one."""
        for key, func in items:
            self.get(key, func, skip_self=skip_self)
