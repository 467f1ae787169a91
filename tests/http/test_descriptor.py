# Copyright (c) 2023 - 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

import threading
from typing import Annotated, Generic, TypeVar
from unittest.mock import patch

import pytest
from pydantic import BaseModel

from restwire import (
    DELETE,
    GET,
    HEAD,
    POST,
    PUT,
    Callback,
    InvalidEndpointDescriptor,
    Named,
    SingleEntity,
    multipart,
    query_param,
    query_params,
    rest_method,
)
from restwire.http.annotations import QueryParam
from restwire.http.descriptor import (
    DescriptorCache,
    MethodDescriptor,
    RoleKind,
    parse_path_parameters,
)

CUSTOM1 = rest_method("CUSTOM1")
CUSTOM2 = rest_method("CUSTOM2", has_body=True)


class Payload(BaseModel):
    value: str


R = TypeVar("R", bound=Payload)
T = TypeVar("T")


class PayloadCallback(Callback[Payload]):
    def success(self, result, response):
        pass

    def failure(self, error):
        pass


class ExtendingCallback(Callback[T], Generic[T]):
    def success(self, result, response):
        pass

    def failure(self, error):
        pass


def describe(func):
    return MethodDescriptor.from_method(func)


class TestPathParameterParsing:
    @pytest.mark.parametrize(
        "path, expected",
        [
            ("", ()),
            ("foo", ()),
            ("foo/bar", ()),
            ("foo/bar/{}", ()),
            ("foo/bar/{taco}", ("taco",)),
            ("foo/bar/{t}", ("t",)),
            ("foo/bar/{!!!}/", ()),
            ("foo/bar/{}/{taco}", ("taco",)),
            ("foo/bar/{taco}/or/{burrito}", ("taco", "burrito")),
            ("foo/bar/{taco}/or/{taco}", ("taco",)),
            ("foo/bar/{taco-shell}", ("taco-shell",)),
            ("foo/bar/{taco_shell}", ("taco_shell",)),
            ("foo/{Upper}", ()),
        ],
    )
    def test_parse(self, path, expected):
        assert parse_path_parameters(path) == expected


class TypeExamples:
    @GET("foo")
    def a(self, c: PayloadCallback) -> None: ...

    @GET("foo")
    def b(self, id: Annotated[str, Named("id")], c: PayloadCallback): ...

    @GET("foo")
    def c(self, c: Callback[Payload]): ...

    @GET("foo")
    def d(self, id: Annotated[str, Named("id")], c: Callback[Payload]): ...

    @GET("foo")
    def e(self, c: Callback[R]): ...

    @GET("foo")
    def f(self, c: Callback[list[str]]): ...

    @GET("foo")
    def g(self, c: ExtendingCallback[Payload]): ...

    @GET("foo")
    def h(self) -> Payload: ...

    @GET("foo")
    def i(self) -> list[str]: ...

    @GET("foo")
    def j(self, id: Annotated[str, Named("id")]): ...

    @GET("foo")
    def k(self, c: Callback[Payload]) -> Payload: ...

    @GET("foo")
    def l(self, c: Callback): ...

    @GET("foo")
    def m(self, c: Callback[T]): ...


class TestResponseType:
    @pytest.mark.parametrize("name", ["a", "b", "c", "d", "e", "g"])
    def test_callback_types_resolve_to_payload(self, name):
        descriptor = describe(getattr(TypeExamples, name))
        assert descriptor.is_synchronous is False
        assert descriptor.response_type is Payload

    def test_generic_callback_with_generic_type(self):
        descriptor = describe(TypeExamples.f)
        assert descriptor.response_type == list[str]

    def test_synchronous_response(self):
        descriptor = describe(TypeExamples.h)
        assert descriptor.is_synchronous is True
        assert descriptor.response_type is Payload

    def test_synchronous_generic_response(self):
        assert describe(TypeExamples.i).response_type == list[str]

    def test_callback_excluded_from_roles(self):
        descriptor = describe(TypeExamples.d)
        assert [str(r) for r in descriptor.argument_roles] == ["named:id"]

    @pytest.mark.parametrize("name", ["j", "k", "l", "m"])
    def test_invalid_response_delivery(self, name):
        with pytest.raises(InvalidEndpointDescriptor):
            describe(getattr(TypeExamples, name))

    def test_neither_message(self):
        with pytest.raises(InvalidEndpointDescriptor, match="either"):
            describe(TypeExamples.j)

    def test_both_message(self):
        with pytest.raises(InvalidEndpointDescriptor, match="not both"):
            describe(TypeExamples.k)


class AnnotationExamples:
    def a(self) -> Payload: ...

    @DELETE("foo")
    def b(self) -> Payload: ...

    @GET("foo")
    def c(self) -> Payload: ...

    @HEAD("foo")
    def d(self) -> Payload: ...

    @POST("foo")
    def e(self) -> Payload: ...

    @PUT("foo")
    def f(self) -> Payload: ...

    @CUSTOM1("foo")
    def g(self) -> Payload: ...

    @CUSTOM2("foo")
    def h(self) -> Payload: ...

    @GET("foo")
    @query_param("a", "b")
    def i(self) -> Payload: ...

    @GET("foo")
    @query_params(("a", "b"), QueryParam("c", "d"))
    def j(self) -> Payload: ...

    @GET("foo")
    @query_param("a", "b")
    @query_params(("a", "b"), ("c", "d"))
    def k(self) -> Payload: ...

    @query_param("a", "b")
    def l(self) -> Payload: ...

    @query_params(("a", "b"), ("c", "d"))
    def m(self) -> Payload: ...

    @GET("foo")
    @query_params()
    def n(self) -> Payload: ...

    @GET("foo")
    @POST("foo")
    def o(self) -> Payload: ...


class TestMethodMarks:
    @pytest.mark.parametrize(
        "name, verb, has_body",
        [
            ("b", "DELETE", False),
            ("c", "GET", False),
            ("d", "HEAD", False),
            ("e", "POST", True),
            ("f", "PUT", True),
            ("g", "CUSTOM1", False),
            ("h", "CUSTOM2", True),
        ],
    )
    def test_verbs(self, name, verb, has_body):
        descriptor = describe(getattr(AnnotationExamples, name))
        assert descriptor.verb == verb
        assert descriptor.has_body is has_body
        assert descriptor.path_template == "foo"

    def test_lacking_method(self):
        with pytest.raises(InvalidEndpointDescriptor, match="GET"):
            describe(AnnotationExamples.a)

    def test_multiple_methods(self):
        with pytest.raises(InvalidEndpointDescriptor, match="multiple"):
            describe(AnnotationExamples.o)

    def test_single_query_param(self):
        descriptor = describe(AnnotationExamples.i)
        assert descriptor.fixed_query_params == (QueryParam("a", "b"),)

    def test_multiple_query_params_keep_order(self):
        descriptor = describe(AnnotationExamples.j)
        assert descriptor.fixed_query_params == (
            QueryParam("a", "b"),
            QueryParam("c", "d"),
        )

    def test_both_query_param_forms(self):
        with pytest.raises(InvalidEndpointDescriptor, match="exclusive"):
            describe(AnnotationExamples.k)

    @pytest.mark.parametrize("name", ["l", "m"])
    def test_query_params_without_method(self, name):
        with pytest.raises(InvalidEndpointDescriptor):
            describe(getattr(AnnotationExamples, name))

    def test_empty_query_params(self):
        with pytest.raises(InvalidEndpointDescriptor, match="empty"):
            describe(AnnotationExamples.n)

    def test_no_query_params_is_empty_tuple(self):
        assert describe(AnnotationExamples.b).fixed_query_params == ()


class ParameterExamples:
    @GET("foo")
    def a(self) -> Payload: ...

    @GET("foo")
    def b(self, a: Annotated[str, Named("a")]) -> Payload: ...

    @GET("foo")
    def c(
        self,
        a: Annotated[str, Named("a")],
        b: Annotated[str, Named("b")],
        c: Annotated[str, Named("c")],
    ) -> Payload: ...

    @GET("foo")
    def d(self, cb: Callback[Payload]): ...

    @POST("foo")
    def g(self, entity: Annotated[Payload, SingleEntity()]) -> Payload: ...

    @POST("foo")
    def h(
        self,
        entity: Annotated[Payload, SingleEntity()],
        cb: Callback[Payload],
    ): ...

    @POST("foo")
    def i(
        self,
        a: Annotated[Payload, SingleEntity()],
        b: Annotated[Payload, SingleEntity()],
    ) -> Payload: ...

    @POST("foo")
    def j(
        self,
        a: Annotated[str, Named("a")],
        b: Annotated[Payload, SingleEntity()],
        c: Annotated[str, Named("c")],
    ) -> Payload: ...

    @GET("foo")
    def unannotated(self, a: str) -> Payload: ...

    @GET("foo")
    def both_markers(
        self, a: Annotated[str, Named("a"), SingleEntity()]
    ) -> Payload: ...

    @GET("foo")
    def variadic(self, *args: str) -> Payload: ...


class TestParameterRoles:
    def test_empty_params(self):
        descriptor = describe(ParameterExamples.a)
        assert descriptor.argument_roles == ()
        assert descriptor.single_entity_index is None

    def test_single_param(self):
        roles = describe(ParameterExamples.b).argument_roles
        assert [str(r) for r in roles] == ["named:a"]

    def test_multiple_params(self):
        roles = describe(ParameterExamples.c).argument_roles
        assert [r.name for r in roles] == ["a", "b", "c"]

    def test_empty_params_with_callback(self):
        assert describe(ParameterExamples.d).argument_roles == ()

    @pytest.mark.parametrize("name", ["g", "h"])
    def test_single_entity(self, name):
        descriptor = describe(getattr(ParameterExamples, name))
        assert len(descriptor.argument_roles) == 1
        assert descriptor.argument_roles[0].kind is RoleKind.SINGLE_ENTITY
        assert str(descriptor.argument_roles[0]) == "single-entity"
        assert descriptor.single_entity_index == 0

    def test_two_single_entities(self):
        with pytest.raises(InvalidEndpointDescriptor, match="multiple"):
            describe(ParameterExamples.i)

    def test_single_entity_with_named(self):
        descriptor = describe(ParameterExamples.j)
        assert [str(r) for r in descriptor.argument_roles] == [
            "named:a",
            "single-entity",
            "named:c",
        ]
        assert descriptor.single_entity_index == 1

    @pytest.mark.parametrize("name", ["unannotated", "both_markers"])
    def test_argument_needs_exactly_one_marker(self, name):
        with pytest.raises(InvalidEndpointDescriptor, match="exactly one"):
            describe(getattr(ParameterExamples, name))

    def test_variadic_rejected(self):
        with pytest.raises(InvalidEndpointDescriptor, match="Variadic"):
            describe(ParameterExamples.variadic)


class MultipartExamples:
    @POST("upload")
    @multipart
    def ok(self, name: Annotated[str, Named("name")]) -> Payload: ...

    @GET("upload")
    @multipart
    def no_body(self, name: Annotated[str, Named("name")]) -> Payload: ...

    @POST("upload")
    @multipart
    def with_entity(
        self, entity: Annotated[Payload, SingleEntity()]
    ) -> Payload: ...


class TestMultipart:
    def test_multipart_flag(self):
        assert describe(MultipartExamples.ok).is_multipart is True
        assert describe(ParameterExamples.b).is_multipart is False

    def test_multipart_requires_body(self):
        with pytest.raises(InvalidEndpointDescriptor, match="body"):
            describe(MultipartExamples.no_body)

    def test_multipart_excludes_single_entity(self):
        with pytest.raises(InvalidEndpointDescriptor, match="exclusive"):
            describe(MultipartExamples.with_entity)


class TestBind:
    def test_bind_aligns_keywords(self):
        descriptor = describe(ParameterExamples.c)
        values, callback = descriptor.bind(("1",), {"c": "3", "b": "2"})
        assert values == ("1", "2", "3")
        assert callback is None

    def test_bind_splits_callback(self):
        descriptor = describe(TypeExamples.d)
        cb = PayloadCallback()
        values, callback = descriptor.bind(("42", cb), {})
        assert values == ("42",)
        assert callback is cb

    def test_bind_requires_callback_instance(self):
        descriptor = describe(TypeExamples.d)
        with pytest.raises(TypeError, match="Callback"):
            descriptor.bind(("42", object()), {})

    def test_bind_wrong_arity(self):
        descriptor = describe(ParameterExamples.b)
        with pytest.raises(TypeError):
            descriptor.bind((), {})


class TestDescriptorCache:
    def test_memoizes_per_key(self):
        cache = DescriptorCache()
        first = cache.get("b", ParameterExamples.b)
        assert cache.get("b", ParameterExamples.b) is first
        assert "b" in cache
        assert len(cache) == 1

    def test_failure_not_cached(self):
        cache = DescriptorCache()
        for _ in range(2):
            with pytest.raises(InvalidEndpointDescriptor):
                cache.get("a", AnnotationExamples.a)
        assert "a" not in cache

    def test_prime_resolves_all(self):
        cache = DescriptorCache()
        cache.prime([("b", ParameterExamples.b), ("c", ParameterExamples.c)])
        assert len(cache) == 2

    def test_concurrent_first_use_parses_once(self):
        cache = DescriptorCache()
        barrier = threading.Barrier(8)
        results = []
        original = MethodDescriptor.from_method.__func__

        calls = []

        def counting(cls, func, **kwargs):
            calls.append(func)
            return original(cls, func, **kwargs)

        def worker():
            barrier.wait()
            results.append(cache.get("c", ParameterExamples.c))

        with patch.object(
            MethodDescriptor, "from_method", classmethod(counting)
        ):
            threads = [threading.Thread(target=worker) for _ in range(8)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

        assert len(calls) == 1
        assert all(r is results[0] for r in results)
