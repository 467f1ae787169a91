# Copyright (c) 2023 - 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import asyncio
from typing import Any

import aiohttp
import anyio
from yarl import URL

from .base import Request, Response, part_filename, to_headers

__all__ = ("AiohttpClient",)


class AiohttpClient:
    """A ``Client`` that runs each request on a fresh aiohttp session.

    ``execute`` blocks: it drives the request on its own event loop through
    ``anyio.run``, so it must be called from a thread without a running
    loop, such as a worker of the HTTP executor.
    """

    def __init__(self, *, timeout: float = 30.0, **client_kwargs: Any):
        self.timeout = timeout
        self.client_kwargs = client_kwargs

    def _create_http_session(self) -> aiohttp.ClientSession:
        """Create a new HTTP session (not thread-safe, create new for each request)."""
        return aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            **self.client_kwargs,
        )

    def execute(self, request: Request) -> Response:
        return anyio.run(self.execute_async, request)

    async def execute_async(self, request: Request) -> Response:
        try:
            async with self._create_http_session() as session:
                async with session.request(
                    request.method,
                    URL(request.url, encoded=True),
                    headers=[(h.name, h.value) for h in request.headers],
                    data=self.create_body(request),
                ) as response:
                    body = await response.read()
                    return Response(
                        status=response.status,
                        reason=response.reason or "",
                        headers=to_headers(response.headers.items()),
                        body=body,
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise OSError(
                f"{type(e).__name__} during {request.method} {request.url}: {e}"
            ) from e

    @staticmethod
    def create_body(request: Request) -> Any:
        if request.body is not None:
            return aiohttp.BytesPayload(
                request.body.to_bytes(),
                content_type=request.body.mime_type.mime_name,
            )
        if request.multipart is not None:
            form = aiohttp.FormData()
            for name, part in request.multipart.items():
                form.add_field(
                    name,
                    part.to_bytes(),
                    content_type=part.mime_type.mime_name,
                    filename=part_filename(name, part),
                )
            return form
        return None
