# Copyright (c) 2023 - 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from collections.abc import Sequence
from typing import Any
from urllib.parse import quote_plus

from .._errors import MissingPathParameter, UnusedNamedParameterOnEntityRequest
from .client.base import Request
from .converter import Converter
from .descriptor import MethodDescriptor, RoleKind
from .types import Header, Parameter, TypedBytes

__all__ = ("RequestBuilder",)


class RequestBuilder:
    """Builds HTTP requests from endpoint invocations.

    Path templates look like ``"path/to/{id}/action"``; the argument bound
    with ``Named("id")`` is form-encoded and substituted for every ``{id}``.
    Named arguments not consumed by the path go to the query string for
    verbs without a body, and into the body otherwise.
    """

    def __init__(self, converter: Converter):
        self.converter = converter

    def create_param_list(
        self, descriptor: MethodDescriptor, args: Sequence[Any]
    ) -> list[Parameter]:
        """All fixed query parameters and non-None named arguments."""
        params = [
            Parameter(q.name, q.value, str)
            for q in descriptor.fixed_query_params
        ]
        for role, arg in zip(descriptor.argument_roles, args):
            if arg is None or role.kind is not RoleKind.NAMED:
                continue
            params.append(Parameter(role.name, arg))
        return params

    @staticmethod
    def substitute_path(
        descriptor: MethodDescriptor, params: list[Parameter]
    ) -> str:
        """Replace path placeholders, removing used entries from ``params``."""
        path = descriptor.path_template
        for name in descriptor.path_param_names:
            found = next((p for p in params if p.name == name), None)
            if found is None:
                raise MissingPathParameter(
                    f"URL param {name} has no matching Named argument",
                    details={"method": descriptor.name, "param": name},
                )
            value = quote_plus(str(found.value), encoding="utf-8")
            path = path.replace("{" + name + "}", value)
            params.remove(found)
        return path

    def build(
        self,
        descriptor: MethodDescriptor,
        args: Sequence[Any],
        api_url: str,
        headers: Sequence[Header] | None = None,
    ) -> Request:
        params = self.create_param_list(descriptor, args)
        path = self.substitute_path(descriptor, params)

        entity_index = descriptor.single_entity_index
        if entity_index is not None and params:
            raise UnusedNamedParameterOnEntityRequest(
                details={
                    "method": descriptor.name,
                    "params": [p.name for p in params],
                }
            )

        url = api_url if api_url.endswith("/") else api_url + "/"
        url += path

        body: TypedBytes | None = None
        parts: dict[str, TypedBytes] | None = None
        if not descriptor.has_body:
            if params:
                # values are appended as given, only path values are encoded
                url += "?" + "&".join(f"{p.name}={p.value}" for p in params)
        elif descriptor.is_multipart:
            parts = {p.name: self._to_typed_bytes(p.value) for p in params}
        elif params:
            body = self.converter.from_params(params)
        elif entity_index is not None:
            body = self._to_typed_bytes(args[entity_index])

        return Request(
            method=descriptor.verb,
            url=url,
            headers=tuple(headers or ()),
            body=body,
            multipart=parts,
        )

    def _to_typed_bytes(self, value: Any) -> TypedBytes:
        if isinstance(value, TypedBytes):
            return value
        return self.converter.from_object(value)
