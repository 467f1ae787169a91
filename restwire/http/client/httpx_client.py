# Copyright (c) 2023 - 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import httpx

from .base import Request, Response, part_filename, to_headers

__all__ = ("HttpxClient",)


class HttpxClient:
    """A ``Client`` backed by a blocking ``httpx.Client``.

    Transport failures surface as ``OSError`` so the dispatcher reports
    them as network errors.
    """

    def __init__(
        self, client: httpx.Client | None = None, *, timeout: float = 30.0
    ):
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    def execute(self, request: Request) -> Response:
        http_request = self.create_request(request)
        self.prepare_request(http_request)
        try:
            http_response = self._client.send(http_request)
        except httpx.TransportError as e:
            raise OSError(
                f"{type(e).__name__} during {request.method} {request.url}: {e}"
            ) from e
        return self.parse_response(http_response)

    def prepare_request(self, request: httpx.Request) -> None:
        """Hook for subclasses to adjust the request before it is sent."""

    def create_request(self, request: Request) -> httpx.Request:
        headers = [(h.name, h.value) for h in request.headers]
        if request.body is not None:
            headers.append(("Content-Type", request.body.mime_type.mime_name))
            return httpx.Request(
                request.method,
                request.url,
                headers=headers,
                content=request.body.to_bytes(),
            )
        if request.multipart is not None:
            files = {
                name: (
                    part_filename(name, part),
                    part.to_bytes(),
                    part.mime_type.mime_name,
                )
                for name, part in request.multipart.items()
            }
            return httpx.Request(
                request.method, request.url, headers=headers, files=files
            )
        return httpx.Request(request.method, request.url, headers=headers)

    @staticmethod
    def parse_response(response: httpx.Response) -> Response:
        return Response(
            status=response.status_code,
            reason=response.reason_phrase or "",
            headers=to_headers(response.headers.multi_items()),
            body=response.content,
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
