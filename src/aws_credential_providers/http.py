#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
"""Minimal HTTP primitives used by the network-backed credential resolvers."""

import ipaddress
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import urlunparse

import aiohttp


@dataclass(frozen=True, kw_only=True)
class URI:
    """Target location for an :py:class:`HTTPRequest`."""

    scheme: str = "http"
    """For example ``http`` or ``https``."""

    host: str
    """The hostname or IP address."""

    port: int | None = None
    """An explicit port number."""

    path: str | None = None
    """Path component of the URI."""

    @property
    def netloc(self) -> str:
        """Construct the ``{host}:{port}`` part of the URI.

        IPv6 hosts are wrapped in square brackets.
        """
        host = self.host.strip("[]")
        try:
            if isinstance(ipaddress.ip_address(host), ipaddress.IPv6Address):
                host = f"[{host}]"
        except ValueError:
            host = self.host
        if self.port is not None:
            return f"{host}:{self.port}"
        return host

    def with_path(self, path: str) -> "URI":
        return URI(scheme=self.scheme, host=self.host, port=self.port, path=path)

    def build(self) -> str:
        return urlunparse((self.scheme, self.netloc, self.path or "", "", "", ""))


@dataclass(kw_only=True)
class HTTPRequest:
    """An outbound HTTP request."""

    destination: URI
    method: str = "GET"
    fields: dict[str, str] = field(default_factory=dict)
    body: bytes = field(repr=False, default=b"")


@dataclass(kw_only=True)
class HTTPResponse:
    """Basic HTTP response returned by :py:class:`HTTPClient` implementations."""

    status: int
    """The 3 digit response status code (1xx, 2xx, 3xx, 4xx, 5xx)."""

    fields: dict[str, str] = field(default_factory=dict)
    """HTTP header fields."""

    body: bytes = field(repr=False, default=b"")
    """The response payload."""

    reason: str | None = None
    """Optional string provided by the server explaining the status."""

    async def consume_body_async(self) -> bytes:
        return self.body


@dataclass(kw_only=True)
class HTTPRequestConfiguration:
    """Request-level HTTP configuration.

    :param read_timeout: How long, in seconds, the whole exchange may take before
        timing out.
    """

    read_timeout: float | None = None


class HTTPClient(Protocol):
    """An asynchronous HTTP client interface."""

    async def send(
        self,
        request: HTTPRequest,
        *,
        request_config: HTTPRequestConfiguration | None = None,
    ) -> HTTPResponse:
        """Send HTTP request over the wire and return the response.

        :param request: The request including destination URI, fields, payload.
        :param request_config: Configuration specific to this request.
        """
        ...


class AIOHTTPClient(HTTPClient):
    """Implementation of :py:class:`HTTPClient` using aiohttp."""

    def __init__(self, *, _session: aiohttp.ClientSession | None = None) -> None:
        """Initialize the client.

        :param _session: A session owned by the caller. Without one, each request
            opens and closes its own session.
        """
        self._session = _session

    async def send(
        self,
        request: HTTPRequest,
        *,
        request_config: HTTPRequestConfiguration | None = None,
    ) -> HTTPResponse:
        """Send HTTP request using aiohttp client.

        :param request: The request including destination URI, fields, payload.
        :param request_config: Configuration specific to this request.
        """
        request_config = request_config or HTTPRequestConfiguration()
        if self._session is not None:
            return await self._send(self._session, request, request_config)
        async with aiohttp.ClientSession() as session:
            return await self._send(session, request, request_config)

    async def _send(
        self,
        session: aiohttp.ClientSession,
        request: HTTPRequest,
        request_config: HTTPRequestConfiguration,
    ) -> HTTPResponse:
        async with session.request(
            method=request.method,
            url=request.destination.build(),
            headers=request.fields,
            data=request.body or None,
            timeout=aiohttp.ClientTimeout(total=request_config.read_timeout),
        ) as resp:
            return await self._marshal_response(resp)

    async def _marshal_response(self, resp: aiohttp.ClientResponse) -> HTTPResponse:
        """Convert a ``aiohttp.ClientResponse`` to an :py:class:`HTTPResponse`."""
        return HTTPResponse(
            status=resp.status,
            fields=dict(resp.headers.items()),
            body=await resp.read(),
            reason=resp.reason,
        )
