# Copyright (c) 2023 - 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import functools
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

import orjson
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .._errors import ConversionException
from .types import MimeType, Parameter, TypedByteArray, TypedBytes

__all__ = ("Converter", "JsonConverter", "JSON")

JSON = MimeType("application/json; charset=UTF-8", "json")


class Converter(ABC):
    """Arbiter for converting objects to and from their HTTP representation."""

    @abstractmethod
    def from_body(self, body: bytes, target_type: Any) -> Any:
        """Convert a response body into an instance of ``target_type``.

        Raises:
            ConversionException: If the body cannot be converted.
        """

    @abstractmethod
    def from_object(self, obj: Any) -> TypedBytes:
        """Serialize one object into a request body."""

    @abstractmethod
    def from_params(self, parameters: Sequence[Parameter]) -> TypedBytes:
        """Serialize an ordered parameter list into a request body."""


@functools.lru_cache(maxsize=256)
def _adapter(target_type: Any) -> TypeAdapter:
    return TypeAdapter(target_type)


def _get_adapter(target_type: Any) -> TypeAdapter:
    try:
        return _adapter(target_type)
    except TypeError:  # unhashable type expression
        return TypeAdapter(target_type)


def _default(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, (set, frozenset)):
        return list(obj)
    return _get_adapter(type(obj)).dump_python(obj, mode="json")


class JsonConverter(Converter):
    """JSON converter backed by orjson, with pydantic validation on decode.

    Target types can be anything pydantic understands: models, dataclasses,
    TypedDicts (from ``typing_extensions`` before Python 3.12), builtin
    containers. ``Any`` and ``object`` return the plain decoded JSON value.
    An empty body converts to None whatever the target type.
    """

    def __init__(self, *, sort_keys: bool = False):
        self._option = orjson.OPT_SORT_KEYS if sort_keys else None

    def _dumps(self, obj: Any) -> bytes:
        if self._option is None:
            return orjson.dumps(obj, default=_default)
        return orjson.dumps(obj, default=_default, option=self._option)

    def from_body(self, body: bytes, target_type: Any) -> Any:
        if not body:
            return None
        try:
            if target_type in (Any, object, None):
                return orjson.loads(body)
            if target_type is bytes:
                return bytes(body)
            return _get_adapter(target_type).validate_json(body)
        except (orjson.JSONDecodeError, PydanticValidationError) as e:
            raise ConversionException(
                f"Unable to convert body to {target_type!r}",
                details={"target_type": repr(target_type)},
                cause=e,
            )

    def from_object(self, obj: Any) -> TypedBytes:
        try:
            return TypedByteArray(JSON, self._dumps(obj))
        except TypeError as e:
            raise ConversionException(
                f"Unable to convert {type(obj).__name__} to JSON", cause=e
            )

    def from_params(self, parameters: Sequence[Parameter]) -> TypedBytes:
        data = {p.name: p.value for p in parameters}
        try:
            return TypedByteArray(JSON, self._dumps(data))
        except TypeError as e:
            raise ConversionException(
                "Unable to convert parameters to JSON", cause=e
            )
