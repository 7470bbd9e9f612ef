# src/s3bucket/bucket.py
"""
Primary interface to one S3 bucket.

Each verb method selects a command, assembles and signs the request, and
hands it to the execution engine. Every method returns a ``Result``; a 404 is
an ordinary ``ServiceError`` because only the caller knows whether a missing
key is expected.

Usage:
    bucket = Bucket("example-bucket", region, credentials)
    match bucket.put("/test.file", b"I want to go to S3", "text/plain"):
        case Success(response):
            assert response.status == 200
        case Failure(error):
            print(describe_error(error))
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from types import TracebackType
from typing import Callable

from .classifier import S3Response
from .command import Command, Delete, Get, List, Put
from .config import BucketSettings
from .credentials import Credentials
from .engine import ResponseFuture, execute, execute_async
from .errors import S3Error, SigningInputError
from .listing import ListBucketResult, parse_list_result
from .protocols import AsyncTransportProtocol, SyncTransportProtocol
from .region import Region
from .request import Headers, Query, SignedRequest, build_request
from .result import Failure, Result, Success
from .transport import AiohttpTransport, Urllib3Transport


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


class Bucket:
    """
    Handle on one bucket: name, region, credentials, extra headers/query, and
    the transports requests are sent through.

    Transports default to ``Urllib3Transport`` / ``AiohttpTransport`` created
    on first use and owned (closed) by the bucket. Injected transports are
    left open for their owner to close.
    """

    def __init__(
        self,
        name: str,
        region: Region,
        credentials: Credentials,
        *,
        transport: SyncTransportProtocol | None = None,
        async_transport: AsyncTransportProtocol | None = None,
        clock: Clock | None = None,
        verify_tls: bool = True,
    ) -> None:
        self._name = name
        self._region = region
        self._credentials = credentials
        self._extra_headers: Headers = {}
        self._extra_query: Query = {}
        self._transport = transport
        self._owns_transport = transport is None
        self._async_transport = async_transport
        self._owns_async_transport = async_transport is None
        self._clock: Clock = clock or utc_now
        self._verify_tls = verify_tls

    @classmethod
    def from_settings(
        cls,
        settings: BucketSettings,
        credentials: Credentials,
        **kwargs: object,
    ) -> Result[Bucket, SigningInputError]:
        """Resolve the settings' region and build a bucket (no I/O)."""
        match settings.resolve_region():
            case Failure(error):
                return Failure(error)
            case Success(region):
                return Success(
                    cls(
                        settings.bucket_name,
                        region,
                        credentials,
                        verify_tls=settings.verify_tls,
                        **kwargs,  # type: ignore[arg-type]
                    )
                )

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def region(self) -> Region:
        return self._region

    @property
    def host(self) -> str:
        return self._region.host

    @property
    def scheme(self) -> str:
        return self._region.scheme

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    def set_credentials(self, credentials: Credentials) -> Credentials:
        """Replace the credentials, returning the previous ones."""
        previous, self._credentials = self._credentials, credentials
        return previous

    @property
    def extra_headers(self) -> Headers:
        """Headers sent (and signed) with every request.

        Library headers (Host, Content-Type, Content-Length, Authorization,
        x-amz-date, x-amz-content-sha256, x-amz-security-token) take
        precedence over entries of the same name.
        """
        return self._extra_headers

    @property
    def extra_query(self) -> Query:
        return self._extra_query

    def add_header(self, key: str, value: str) -> None:
        self._extra_headers[key] = value

    def add_query(self, key: str, value: str) -> None:
        self._extra_query[key] = value

    def __repr__(self) -> str:
        return f"Bucket(name={self._name!r}, region={self._region.tag!r}, host={self.host!r})"

    # -------------------------------------------------------------------------
    # Request plumbing
    # -------------------------------------------------------------------------

    def sign_request(
        self, path: str, command: Command
    ) -> Result[SignedRequest, SigningInputError]:
        """Assemble and sign the request for ``command`` without sending it."""
        return build_request(
            bucket=self._name,
            region=self._region,
            credentials=self._credentials,
            path=path,
            command=command,
            moment=self._clock(),
            extra_headers=self._extra_headers,
            extra_query=self._extra_query,
        )

    def _sync_transport(self) -> SyncTransportProtocol:
        if self._transport is None:
            self._transport = Urllib3Transport(verify_tls=self._verify_tls)
        return self._transport

    def _get_async_transport(self) -> AsyncTransportProtocol:
        if self._async_transport is None:
            self._async_transport = AiohttpTransport(verify_tls=self._verify_tls)
        return self._async_transport

    def request(self, path: str, command: Command) -> Result[S3Response, S3Error]:
        match self.sign_request(path, command):
            case Failure(error):
                return Failure(error)
            case Success(request):
                return execute(request, self._sync_transport())

    def request_async(
        self, path: str, command: Command
    ) -> Result[ResponseFuture, SigningInputError]:
        """Signed request wrapped in a not-yet-started ResponseFuture."""
        return self.sign_request(path, command).map(
            lambda request: ResponseFuture(request, self._get_async_transport())
        )

    async def _request_async(self, path: str, command: Command) -> Result[S3Response, S3Error]:
        match self.sign_request(path, command):
            case Failure(error):
                return Failure(error)
            case Success(request):
                return await execute_async(request, self._get_async_transport())

    # -------------------------------------------------------------------------
    # Blocking verbs
    # -------------------------------------------------------------------------

    def get(self, path: str) -> Result[S3Response, S3Error]:
        """Fetch an object; the body is in ``response.body``."""
        return self.request(path, Get())

    def put(
        self, path: str, content: bytes, content_type: str = "application/octet-stream"
    ) -> Result[S3Response, S3Error]:
        return self.request(path, Put(content=content, content_type=content_type))

    def delete(self, path: str) -> Result[S3Response, S3Error]:
        return self.request(path, Delete())

    def list_page(
        self,
        prefix: str = "",
        delimiter: str | None = None,
        continuation_token: str | None = None,
    ) -> Result[ListBucketResult, S3Error]:
        """One ListObjectsV2 page."""
        command = List(prefix=prefix, delimiter=delimiter, continuation_token=continuation_token)
        return self.request("/", command).and_then(
            lambda response: parse_list_result(response.body)
        )

    def list(
        self, prefix: str = "", delimiter: str | None = None
    ) -> Result[list[ListBucketResult], S3Error]:
        """
        Every page under ``prefix``, in server order.

        Reissues the listing with each ``NextContinuationToken`` and stops at
        the first page without one. The first failing page fails the listing.
        """
        pages: list[ListBucketResult] = []
        token: str | None = None
        while True:
            match self.list_page(prefix, delimiter, token):
                case Failure(error):
                    return Failure(error)
                case Success(page):
                    pages.append(page)
                    logger.debug(f"Listed page {len(pages)} of {self._name}/{prefix}")
                    token = page.next_continuation_token
                    if token is None:
                        return Success(pages)

    # -------------------------------------------------------------------------
    # Async verbs
    # -------------------------------------------------------------------------

    async def get_async(self, path: str) -> Result[S3Response, S3Error]:
        return await self._request_async(path, Get())

    async def put_async(
        self, path: str, content: bytes, content_type: str = "application/octet-stream"
    ) -> Result[S3Response, S3Error]:
        return await self._request_async(path, Put(content=content, content_type=content_type))

    async def delete_async(self, path: str) -> Result[S3Response, S3Error]:
        return await self._request_async(path, Delete())

    async def list_page_async(
        self,
        prefix: str = "",
        delimiter: str | None = None,
        continuation_token: str | None = None,
    ) -> Result[ListBucketResult, S3Error]:
        command = List(prefix=prefix, delimiter=delimiter, continuation_token=continuation_token)
        return (await self._request_async("/", command)).and_then(
            lambda response: parse_list_result(response.body)
        )

    async def list_async(
        self, prefix: str = "", delimiter: str | None = None
    ) -> Result[list[ListBucketResult], S3Error]:
        pages: list[ListBucketResult] = []
        token: str | None = None
        while True:
            match await self.list_page_async(prefix, delimiter, token):
                case Failure(error):
                    return Failure(error)
                case Success(page):
                    pages.append(page)
                    token = page.next_continuation_token
                    if token is None:
                        return Success(pages)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        if self._owns_transport and self._transport is not None:
            self._transport.close()
            self._transport = None

    async def aclose(self) -> None:
        if self._owns_async_transport and self._async_transport is not None:
            await self._async_transport.close()
            self._async_transport = None
        self.close()

    def __enter__(self) -> Bucket:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    async def __aenter__(self) -> Bucket:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()


__all__ = ["Bucket", "Clock", "utc_now"]
