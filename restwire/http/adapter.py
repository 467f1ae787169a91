# Copyright (c) 2023 - 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, TypeVar

from restwire.config import settings

from .annotations import is_endpoint
from .client.base import Client
from .converter import Converter, JsonConverter
from .descriptor import DescriptorCache, MethodDescriptor
from .dispatcher import Dispatcher
from .profiler import Profiler
from .types import Header
from .utils import SynchronousExecutor

__all__ = ("Server", "RestAdapter")

logger = logging.getLogger(__name__)

A = TypeVar("A")


@dataclass(slots=True, frozen=True)
class Server:
    """Base URL of the remote API."""

    api_url: str
    name: str = "production"

    def __post_init__(self):
        if not self.api_url:
            raise ValueError("Server URL must not be empty.")


def endpoint_methods(api: type) -> dict[str, Callable]:
    """Endpoint functions of an API class, subclasses overriding bases."""
    found: dict[str, Callable] = {}
    for klass in reversed(api.__mro__):
        for name, value in vars(klass).items():
            if callable(value) and is_endpoint(value):
                found[name] = value
            else:
                found.pop(name, None)
    return found


class RestAdapter:
    """Adapts a declarative API class to HTTP calls.

    Each endpoint method of the class is decorated with one HTTP verb. Calls
    happen in one of two ways:

    - Synchronously on the calling thread, returning the converted response
      or raising a ``RestError``. The method declares a return type.
    - Asynchronously on the HTTP executor, with the outcome delivered to the
      ``Callback`` given as the last argument, on the callback executor. The
      call returns a ``concurrent.futures.Future`` settled with the same
      outcome.

    Use ``RestAdapter.Builder`` to create one.
    """

    def __init__(
        self,
        *,
        server: Server,
        client_provider: Callable[[], Client],
        converter: Converter,
        http_executor: Any,
        callback_executor: Any,
        headers_provider: Callable[[], Sequence[Header]],
        profiler: Profiler | None = None,
        owned: Sequence[Any] = (),
    ):
        self.server = server
        self.converter = converter
        self.dispatcher = Dispatcher(
            api_url=server.api_url,
            client_provider=client_provider,
            converter=converter,
            headers_provider=headers_provider,
            http_executor=http_executor,
            callback_executor=callback_executor,
            profiler=profiler,
            log_chunk_size=settings.LOG_CHUNK_SIZE,
        )
        self._descriptors = DescriptorCache()
        self._owned = list(owned)

    def create(self, api: type[A], *, eager: bool = True) -> A:
        """Return an implementation of ``api`` backed by this adapter.

        With ``eager`` every endpoint is validated now and a malformed one
        raises ``InvalidEndpointDescriptor`` here; otherwise each endpoint
        is resolved on its first call.
        """
        methods = endpoint_methods(api)
        if eager:
            self._descriptors.prime((f, f) for f in methods.values())

        namespace = {
            name: self._make_endpoint(func) for name, func in methods.items()
        }
        namespace["__module__"] = api.__module__
        proxy_cls = type(api.__name__, (api,), namespace)
        proxy_cls.__qualname__ = f"{api.__qualname__}[rest]"
        logger.debug(
            f"Created {api.__qualname__} with {len(methods)} endpoints "
            f"for {self.server.api_url}"
        )
        return object.__new__(proxy_cls)

    def descriptor(self, func: Callable) -> MethodDescriptor:
        """Resolved descriptor of an endpoint function."""
        func = getattr(func, "__wrapped__", func)
        return self._descriptors.get(func, func)

    def _make_endpoint(self, func: Callable) -> Callable:
        cache = self._descriptors
        dispatcher = self.dispatcher

        @functools.wraps(func)
        def endpoint(_self, *args, **kwargs):
            descriptor = cache.get(func, func)
            return dispatcher.invoke(descriptor, args, kwargs)

        return endpoint

    def close(self) -> None:
        """Release executors and clients created by the builder."""
        for resource in self._owned:
            if isinstance(resource, ThreadPoolExecutor):
                resource.shutdown(wait=True)
            elif hasattr(resource, "close"):
                resource.close()
        self._owned.clear()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    class Builder:
        """Build a ``RestAdapter``.

        Only the server is required (it falls back to the
        ``RESTWIRE_SERVER_URL`` setting); everything else gets a default:
        ``JsonConverter``, ``HttpxClient``, a thread pool for HTTP calls,
        same-thread callbacks and no headers.
        """

        def __init__(self):
            self._server: Server | None = None
            self._client_provider: Callable[[], Client] | None = None
            self._http_executor: Any = None
            self._callback_executor: Any = None
            self._headers_provider: Callable[[], Sequence[Header]] | None = None
            self._converter: Converter | None = None
            self._profiler: Profiler | None = None

        def set_server(self, server: Server | str) -> RestAdapter.Builder:
            if server is None:
                raise ValueError("server must not be None")
            self._server = server if isinstance(server, Server) else Server(server)
            return self

        def set_client(
            self, client: Client | Callable[[], Client]
        ) -> RestAdapter.Builder:
            if client is None:
                raise ValueError("client must not be None")
            if isinstance(client, Client):
                self._client_provider = lambda: client
            else:
                self._client_provider = client
            return self

        def set_executors(
            self, http_executor: Any, callback_executor: Any = None
        ) -> RestAdapter.Builder:
            """Executors for asynchronous calls.

            Args:
                http_executor: Runs the HTTP calls. Anything with
                    ``execute(fn)`` or ``submit(fn)``.
                callback_executor: Runs ``Callback`` methods. When None,
                    callbacks run on the thread that made the HTTP call.
            """
            if http_executor is None:
                raise ValueError("http_executor must not be None")
            self._http_executor = http_executor
            self._callback_executor = callback_executor or SynchronousExecutor()
            return self

        def set_headers(
            self, headers: Sequence[Header] | Callable[[], Sequence[Header]]
        ) -> RestAdapter.Builder:
            if headers is None:
                raise ValueError("headers must not be None")
            if callable(headers):
                self._headers_provider = headers
            else:
                fixed = tuple(headers)
                self._headers_provider = lambda: fixed
            return self

        def set_converter(self, converter: Converter) -> RestAdapter.Builder:
            if converter is None:
                raise ValueError("converter must not be None")
            self._converter = converter
            return self

        def set_profiler(self, profiler: Profiler) -> RestAdapter.Builder:
            if profiler is None:
                raise ValueError("profiler must not be None")
            self._profiler = profiler
            return self

        def build(self) -> RestAdapter:
            server = self._server
            if server is None:
                if not settings.SERVER_URL:
                    raise ValueError("Server may not be None.")
                server = Server(settings.SERVER_URL)

            owned = []
            client_provider = self._client_provider
            if client_provider is None:
                from .client.httpx_client import HttpxClient

                client = HttpxClient(timeout=settings.HTTP_TIMEOUT)
                owned.append(client)
                client_provider = lambda: client  # noqa: E731

            http_executor = self._http_executor
            if http_executor is None:
                http_executor = ThreadPoolExecutor(
                    max_workers=settings.HTTP_WORKERS,
                    thread_name_prefix="restwire-http",
                )
                owned.append(http_executor)

            return RestAdapter(
                server=server,
                client_provider=client_provider,
                converter=self._converter or JsonConverter(),
                http_executor=http_executor,
                callback_executor=self._callback_executor
                or SynchronousExecutor(),
                headers_provider=self._headers_provider or (lambda: ()),
                profiler=self._profiler,
                owned=owned,
            )
