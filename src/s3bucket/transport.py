"""
Concrete HTTP transports.

``Urllib3Transport`` (blocking) and ``AiohttpTransport`` (asyncio) adapt
third-party clients to the Protocols in ``protocols.py``. Library exceptions
are converted to ``TransportError`` here and nowhere else. Neither transport
retries, follows redirects, or sets a timeout.
"""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import Mapping
from urllib.parse import urlsplit

import aiohttp
import urllib3
from yarl import URL

from .errors import TransportError
from .protocols import AsyncRawResponse, RawResponse
from .request import SignedRequest
from .result import Failure, Result, Success


logger = logging.getLogger(__name__)


def lower_headers(headers: Mapping[str, str]) -> dict[str, str]:
    return {name.lower(): value for name, value in headers.items()}


def check_content_length(
    headers: Mapping[str, str], received: int, url: str = ""
) -> Result[None, TransportError]:
    """A body shorter (or longer) than ``Content-Length`` is a transport failure.

    Skipped for content-encoded bodies, whose decoded length differs.
    """
    if headers.get("content-encoding", "identity").strip().lower() != "identity":
        return Success(None)
    advertised = headers.get("content-length")
    if advertised is None or not advertised.strip().isdigit():
        return Success(None)
    expected = int(advertised)
    if expected != received:
        return Failure(
            TransportError(
                message=f"Body length {received} does not match Content-Length {expected}",
                url=url,
            )
        )
    return Success(None)


class Urllib3Transport:
    """Blocking transport over a ``urllib3.PoolManager``.

    The pool manager is owned by this object and shared by every request sent
    through it; requests hold no other shared state.
    """

    def __init__(
        self, *, verify_tls: bool = True, pool_manager: urllib3.PoolManager | None = None
    ) -> None:
        self._owns_pool = pool_manager is None
        self._http = pool_manager or urllib3.PoolManager(
            cert_reqs="CERT_REQUIRED" if verify_tls else "CERT_NONE",
            retries=False,
        )
        if not verify_tls:
            logger.warning("TLS certificate verification is disabled")

    def send(self, request: SignedRequest) -> Result[RawResponse, TransportError]:
        # Dot segments must reach the wire as signed; PoolManager.urlopen removes them.
        split = urlsplit(request.url)
        target = f"{split.path}?{split.query}" if split.query else split.path
        try:
            pool = self._http.connection_from_url(request.url)
            response = pool.urlopen(
                request.method,
                target,
                body=request.body or None,
                headers=request.headers,
                preload_content=True,
                redirect=False,
                retries=False,
                assert_same_host=False,
            )
        except urllib3.exceptions.HTTPError as exc:
            logger.debug(f"{request.method} {request.url} failed: {exc}")
            return Failure(TransportError(message=str(exc), url=request.url))
        return Success(
            RawResponse(
                status=response.status,
                headers=lower_headers(response.headers),
                body=response.data,
            )
        )

    def close(self) -> None:
        if self._owns_pool:
            self._http.clear()

    def __enter__(self) -> Urllib3Transport:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


class _AiohttpChunkStream:
    """Body of an aiohttp response, read chunk by chunk."""

    def __init__(self, response: aiohttp.ClientResponse) -> None:
        self._response = response

    async def next_chunk(self) -> Result[bytes | None, TransportError]:
        try:
            chunk = await self._response.content.readany()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            self._response.close()
            message = str(exc) or type(exc).__name__
            return Failure(TransportError(message=message, url=str(self._response.url)))
        if not chunk:
            self._response.release()
            return Success(None)
        return Success(chunk)

    def close(self) -> None:
        self._response.close()


class AiohttpTransport:
    """Async transport over an ``aiohttp.ClientSession``.

    The session is created on first use (inside the running event loop) and
    closed by ``close()`` unless it was supplied by the caller.

    Usage:
        async with AiohttpTransport() as transport:
            result = await transport.send(request)
    """

    def __init__(
        self, *, verify_tls: bool = True, session: aiohttp.ClientSession | None = None
    ) -> None:
        self._verify_tls = verify_tls
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(ssl=None if self._verify_tls else False),
                timeout=aiohttp.ClientTimeout(total=None),
            )
            self._owns_session = True
            logger.info("Opened aiohttp session")
        return self._session

    async def send(self, request: SignedRequest) -> Result[AsyncRawResponse, TransportError]:
        session = self._get_session()
        try:
            response = await session.request(
                request.method,
                URL(request.url, encoded=True),
                headers=request.headers,
                data=request.body or None,
                allow_redirects=False,
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.debug(f"{request.method} {request.url} failed: {exc!r}")
            return Failure(TransportError(message=str(exc) or type(exc).__name__, url=request.url))
        return Success(
            AsyncRawResponse(
                status=response.status,
                headers=lower_headers(response.headers),
                stream=_AiohttpChunkStream(response),
            )
        )

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            logger.info("Closed aiohttp session")

    async def __aenter__(self) -> AiohttpTransport:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()


__all__ = [
    "AiohttpTransport",
    "Urllib3Transport",
    "check_content_length",
    "lower_headers",
]
