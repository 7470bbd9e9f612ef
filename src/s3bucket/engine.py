"""
Execution engine: send a SignedRequest and classify the outcome.

Two modes share one contract, ``SignedRequest -> Result[response, S3Error]``:

- ``execute`` (blocking): one transport call, full body, classify.
- ``ResponseFuture`` (asyncio): an explicit finite-state machine

      Sending -> AwaitingHeaders -> Done                     (status < 300)
                                 -> StreamingErrorBody* -> Done  (status >= 300)

  It suspends only while awaiting response headers and while awaiting each
  chunk of an error body. A successful body is not buffered; it is handed to
  the caller as a ``StreamingResponse`` to drain. Advancing or awaiting a
  machine that has reached ``Done`` raises ``FutureAlreadyDone``.

Both modes produce equal Results for the same byte stream, however it is
chunked.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Generator, Literal, Mapping

from .classifier import S3Response, classify, is_success
from .errors import S3Error, TransportError
from .protocols import (
    AsyncRawResponse,
    AsyncTransportProtocol,
    ChunkStreamProtocol,
    SyncTransportProtocol,
)
from .request import SignedRequest
from .result import Failure, Result, Success
from .transport import check_content_length


logger = logging.getLogger(__name__)


class FutureAlreadyDone(RuntimeError):
    """A ResponseFuture was advanced or awaited after reaching Done."""


# ---------------------------------------------------------------------------
# Blocking mode
# ---------------------------------------------------------------------------


def execute(
    request: SignedRequest, transport: SyncTransportProtocol
) -> Result[S3Response, S3Error]:
    """
    Send a request and wait for the complete response.

    Returns:
        Success(S3Response) for status < 300, otherwise Failure with a
        ServiceError, MalformedErrorBody or TransportError
    """
    logger.debug(f"{request.method} {request.url}")
    match transport.send(request):
        case Failure(error):
            return Failure(error)
        case Success(raw):
            pass

    logger.debug(f"{request.method} {request.url} -> {raw.status}")
    match check_content_length(raw.headers, len(raw.body), request.url):
        case Failure(error):
            return Failure(error)
        case Success(_):
            return classify(raw.status, raw.headers, raw.body)


# ---------------------------------------------------------------------------
# Suspension-based mode
# ---------------------------------------------------------------------------


class StreamingResponse:
    """Successful async response whose body has not been read yet.

    The body is drained by the caller with ``read()`` (buffered, cached) or
    chunk by chunk with ``next_chunk()``. Dropping it unread should be paired
    with ``close()`` to release the connection.
    """

    def __init__(
        self, status: int, headers: Mapping[str, str], stream: ChunkStreamProtocol, url: str = ""
    ) -> None:
        self.status = status
        self.headers = dict(headers)
        self.url = url
        self._stream = stream
        self._received = 0
        self._body: bytes | None = None

    def __repr__(self) -> str:
        return f"StreamingResponse(status={self.status}, url={self.url!r})"

    async def next_chunk(self) -> Result[bytes | None, TransportError]:
        """Next body chunk; ``None`` once the body is complete and verified."""
        match await self._stream.next_chunk():
            case Success(None):
                return check_content_length(self.headers, self._received, self.url).map(
                    lambda _: None
                )
            case Success(chunk):
                self._received += len(chunk)
                return Success(chunk)
            case Failure(error):
                return Failure(error)

    async def read(self) -> Result[bytes, TransportError]:
        """Drain the rest of the body. A truncated body is a TransportError."""
        if self._body is not None:
            return Success(self._body)
        chunks: list[bytes] = []
        while True:
            match await self.next_chunk():
                case Success(None):
                    self._body = b"".join(chunks)
                    return Success(self._body)
                case Success(chunk):
                    chunks.append(chunk)
                case Failure(error):
                    return Failure(error)

    async def to_response(self) -> Result[S3Response, TransportError]:
        """Drain into the same S3Response the blocking mode returns."""
        return (await self.read()).map(
            lambda body: S3Response(status=self.status, headers=self.headers, body=body)
        )

    def close(self) -> None:
        self._stream.close()


@dataclass(frozen=True)
class Sending:
    """Request built, not yet handed to the transport."""

    request: SignedRequest
    kind: Literal["Sending"] = "Sending"


@dataclass(frozen=True)
class AwaitingHeaders:
    """Transport call in flight; waiting for status and headers."""

    pending: Awaitable[Result[AsyncRawResponse, TransportError]] = field(repr=False)
    url: str = ""
    kind: Literal["AwaitingHeaders"] = "AwaitingHeaders"


@dataclass(frozen=True)
class StreamingErrorBody:
    """Status >= 300; accumulating the error document chunk by chunk."""

    status: int
    headers: Mapping[str, str]
    stream: ChunkStreamProtocol = field(repr=False)
    chunks: tuple[bytes, ...] = ()
    url: str = ""
    kind: Literal["StreamingErrorBody"] = "StreamingErrorBody"


@dataclass(frozen=True)
class Done:
    """Terminal state holding the outcome."""

    outcome: Result[StreamingResponse, S3Error]
    kind: Literal["Done"] = "Done"


FutureState = Sending | AwaitingHeaders | StreamingErrorBody | Done


def _finish_error_body(state: StreamingErrorBody) -> Done:
    body = b"".join(state.chunks)
    match check_content_length(state.headers, len(body), state.url):
        case Failure(error):
            return Done(outcome=Failure(error))
        case Success(_):
            pass
    match classify(state.status, state.headers, body):
        case Failure(error):
            return Done(outcome=Failure(error))
        case Success(_):
            raise AssertionError(f"status {state.status} classified as success")


class ResponseFuture:
    """
    Explicit state machine executing one request on an async transport.

    ``advance()`` performs exactly one transition and returns the new state;
    ``await future`` runs transitions until ``Done`` and returns the outcome.
    Both raise ``FutureAlreadyDone`` once the machine has finished.

    Usage:
        match await ResponseFuture(request, transport):
            case Success(response):
                body = await response.read()
            case Failure(error):
                ...
    """

    def __init__(self, request: SignedRequest, transport: AsyncTransportProtocol) -> None:
        self._transport = transport
        self._state: FutureState = Sending(request=request)
        self._finished = False

    @property
    def state(self) -> FutureState:
        return self._state

    @property
    def done(self) -> bool:
        return isinstance(self._state, Done)

    async def advance(self) -> FutureState:
        """Perform one transition."""
        match self._state:
            case Sending(request=request):
                logger.debug(f"{request.method} {request.url}")
                pending = self._transport.send(request)
                self._state = AwaitingHeaders(pending=pending, url=request.url)

            case AwaitingHeaders(pending=pending, url=url):
                try:
                    result = await pending
                except asyncio.CancelledError:
                    self._abandon()
                    raise
                match result:
                    case Failure(error):
                        self._state = Done(outcome=Failure(error))
                    case Success(raw) if is_success(raw.status):
                        logger.debug(f"{url} -> {raw.status}")
                        self._state = Done(
                            outcome=Success(
                                StreamingResponse(raw.status, raw.headers, raw.stream, url)
                            )
                        )
                    case Success(raw):
                        logger.debug(f"{url} -> {raw.status}, reading error body")
                        self._state = StreamingErrorBody(
                            status=raw.status, headers=raw.headers, stream=raw.stream, url=url
                        )

            case StreamingErrorBody(stream=stream, chunks=chunks) as state:
                try:
                    result_chunk = await stream.next_chunk()
                except asyncio.CancelledError:
                    stream.close()
                    self._abandon()
                    raise
                match result_chunk:
                    case Failure(error):
                        self._state = Done(outcome=Failure(error))
                    case Success(None):
                        self._state = _finish_error_body(state)
                    case Success(chunk):
                        self._state = replace(state, chunks=(*chunks, chunk))

            case Done():
                raise FutureAlreadyDone("ResponseFuture advanced after Done")

        return self._state

    async def _run(self) -> Result[StreamingResponse, S3Error]:
        if self._finished:
            raise FutureAlreadyDone("ResponseFuture awaited after Done")
        state = self._state
        while not isinstance(state, Done):
            state = await self.advance()
        self._finished = True
        return state.outcome

    def __await__(self) -> Generator[Any, None, Result[StreamingResponse, S3Error]]:
        return self._run().__await__()

    def _abandon(self) -> None:
        self._state = Done(outcome=Failure(TransportError(message="request abandoned")))
        self._finished = True

    def close(self) -> None:
        """Discard an unfinished machine, releasing the in-flight call or stream."""
        match self._state:
            case AwaitingHeaders(pending=pending):
                close = getattr(pending, "close", None)
                if callable(close):
                    close()
            case StreamingErrorBody(stream=stream):
                stream.close()
            case _:
                pass
        if not isinstance(self._state, Done):
            self._abandon()


async def execute_async(
    request: SignedRequest, transport: AsyncTransportProtocol
) -> Result[S3Response, S3Error]:
    """Run a ResponseFuture and drain a successful body into an S3Response."""
    match await ResponseFuture(request, transport):
        case Success(streaming):
            return await streaming.to_response()
        case Failure(error):
            return Failure(error)


__all__ = [
    "AwaitingHeaders",
    "Done",
    "FutureAlreadyDone",
    "FutureState",
    "ResponseFuture",
    "Sending",
    "StreamingErrorBody",
    "StreamingResponse",
    "execute",
    "execute_async",
]
