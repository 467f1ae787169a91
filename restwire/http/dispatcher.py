# Copyright (c) 2023 - 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import Future
from enum import Enum
from typing import Any

from .._errors import (
    ConversionError,
    ConversionException,
    HttpError,
    NetworkError,
    RestwireError,
    UnexpectedError,
)
from .annotations import Callback
from .client.base import Client, Request, Response
from .converter import Converter
from .descriptor import MethodDescriptor
from .profiler import Profiler, RequestInformation
from .request_builder import RequestBuilder
from .types import Header
from .utils import UTF_8, SynchronousExecutor, execute_on, parse_charset

__all__ = ("CallState", "RestCall", "Dispatcher")

logger = logging.getLogger(__name__)


class CallState(str, Enum):
    IDLE = "idle"
    BUILDING = "building"
    EXECUTING = "executing"
    DECODING = "decoding"
    COMPLETED = "completed"
    FAILED = "failed"


class RestCall:
    """One HTTP round trip for one endpoint invocation.

    Moves through ``IDLE -> BUILDING -> EXECUTING -> DECODING -> COMPLETED``
    or ends in ``FAILED`` from any step. Nothing is retried.
    """

    __slots__ = (
        "dispatcher",
        "descriptor",
        "args",
        "state",
        "url",
        "request",
        "response",
        "result",
        "error",
        "duration",
    )

    def __init__(
        self,
        dispatcher: Dispatcher,
        descriptor: MethodDescriptor,
        args: Sequence[Any],
    ):
        self.dispatcher = dispatcher
        self.descriptor = descriptor
        self.args = tuple(args)
        self.state = CallState.IDLE
        self.url = dispatcher.api_url
        self.request: Request | None = None
        self.response: Response | None = None
        self.result: Any = None
        self.error: RestwireError | None = None
        self.duration: float | None = None

    def invoke(self) -> Any:
        """Run the call, returning the decoded result.

        Raises:
            RestwireError: The uniform per-call error for any failure.
        """
        start = time.perf_counter()
        try:
            self.result = self._invoke()
            self.state = CallState.COMPLETED
            return self.result
        except ConversionException as e:
            # request encoding failed, decode failures are already wrapped
            self._fail(UnexpectedError(e.message, url=self.url, cause=e))
            raise self.error from e
        except RestwireError as e:
            self._fail(e)
            raise
        except OSError as e:
            self._fail(NetworkError(str(e) or None, url=self.url, cause=e))
            raise self.error from e
        except Exception as e:
            self._fail(UnexpectedError(str(e) or None, url=self.url, cause=e))
            raise self.error from e
        finally:
            self.duration = time.perf_counter() - start

    def _fail(self, error: RestwireError) -> None:
        self.error = error
        self.state = CallState.FAILED
        logger.debug(
            f"{self.descriptor.verb} {self.url} failed: "
            f"{type(error).__name__}: {error.message}"
        )

    def _invoke(self) -> Any:
        d = self.dispatcher
        descriptor = self.descriptor

        self.state = CallState.BUILDING
        self.request = request = d.request_builder.build(
            descriptor, self.args, d.api_url, d.headers_provider()
        )
        self.url = url = request.url

        self.state = CallState.EXECUTING
        profiler_data = None
        if d.profiler is not None:
            profiler_data = d.profiler.before_call()

        logger.debug(f"Sending {request.method} to {url}")
        start = time.perf_counter()
        self.response = response = d.client_provider().execute(request)
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        status = response.status

        if d.profiler is not None:
            d.profiler.after_call(
                d.request_info(descriptor, request),
                elapsed_ms,
                status,
                profiler_data,
            )
        if logger.isEnabledFor(logging.DEBUG):
            d.log_response_body(url, response.body, status, elapsed_ms)

        for header in response.headers:
            if (
                header.name.lower() == "content-type"
                and parse_charset(header.value).upper() != UTF_8
            ):
                raise OSError("Only UTF-8 charset supported.")

        if 200 <= status < 300:
            self.state = CallState.DECODING
            try:
                return d.converter.from_body(
                    response.body, descriptor.response_type
                )
            except ConversionException as e:
                raise ConversionError(
                    e.message,
                    url=url,
                    response=response,
                    converter=d.converter,
                    target_type=descriptor.response_type,
                    cause=e,
                ) from e
        raise HttpError(
            f"HTTP {status} {response.reason}",
            url=url,
            response=response,
            converter=d.converter,
            target_type=descriptor.response_type,
        )


class Dispatcher:
    """Runs endpoint invocations synchronously or on the work executor."""

    def __init__(
        self,
        *,
        api_url: str,
        client_provider: Callable[[], Client],
        converter: Converter,
        headers_provider: Callable[[], Sequence[Header]] | None = None,
        http_executor: Any = None,
        callback_executor: Any = None,
        profiler: Profiler | None = None,
        log_chunk_size: int = 4000,
    ):
        self.api_url = api_url
        self.client_provider = client_provider
        self.converter = converter
        self.request_builder = RequestBuilder(converter)
        self.headers_provider = headers_provider or (lambda: ())
        self.http_executor = http_executor
        self.callback_executor = callback_executor or SynchronousExecutor()
        self.profiler = profiler
        self.log_chunk_size = log_chunk_size

    def new_call(
        self, descriptor: MethodDescriptor, args: Sequence[Any]
    ) -> RestCall:
        return RestCall(self, descriptor, args)

    def invoke(
        self, descriptor: MethodDescriptor, args: tuple, kwargs: dict
    ) -> Any:
        """Dispatch one invocation of an endpoint method.

        Synchronous endpoints return the decoded result or raise. Asynchronous
        endpoints return a ``Future`` at once; the outcome is delivered to the
        callback on the callback executor and also settles the future.
        """
        values, callback = descriptor.bind(args, kwargs)
        if descriptor.is_synchronous:
            return self.new_call(descriptor, values).invoke()

        if self.http_executor is None:
            raise RuntimeError(
                "Asynchronous invocation requires an HTTP executor."
            )
        call = self.new_call(descriptor, values)
        future: Future = Future()
        execute_on(
            self.http_executor, lambda: self._run_async(call, callback, future)
        )
        return future

    def _run_async(
        self, call: RestCall, callback: Callback, future: Future
    ) -> None:
        try:
            result = call.invoke()
        except RestwireError as e:
            future.set_exception(e)
            self._deliver(call, callback.failure, e)
            return
        future.set_result(result)
        self._deliver(call, callback.success, result, call.response)

    def _deliver(self, call: RestCall, method: Callable, *args: Any) -> None:
        def run():
            try:
                method(*args)
            except Exception:
                name = getattr(method, "__qualname__", repr(method))
                logger.exception(
                    f"Callback {name} raised for "
                    f"{call.descriptor.verb} {call.url}"
                )

        execute_on(self.callback_executor, run)

    def request_info(
        self, descriptor: MethodDescriptor, request: Request
    ) -> RequestInformation:
        content_length, content_type = 0, None
        if request.body is not None:
            content_length = request.body.length
            content_type = request.body.mime_type.mime_name
        return RequestInformation(
            method=descriptor.verb,
            base_url=self.api_url,
            relative_path=descriptor.path_template,
            content_length=content_length,
            content_type=content_type,
        )

    def log_response_body(
        self, url: str, body: bytes | None, status: int, elapsed_ms: int
    ) -> None:
        logger.debug(f"---- HTTP {status} from {url} ({elapsed_ms}ms)")
        text = (body or b"").decode(UTF_8.lower(), errors="replace")
        size = self.log_chunk_size
        for i in range(0, len(text), size):
            logger.debug(text[i : i + size])
        logger.debug("---- END HTTP")
