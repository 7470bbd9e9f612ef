# src/s3bucket/protocols.py
"""
Shared Protocol definitions for HTTP transports.

The execution engine only talks to these Protocols, so tests can substitute
fake transports that deliver controlled header and chunk sequences without
network access. Concrete urllib3/aiohttp adapters live in ``transport.py``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Mapping, Protocol

from .errors import TransportError
from .result import Result

if TYPE_CHECKING:
    from .request import SignedRequest


# ---------------------------------------------------------------------------
# Raw responses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RawResponse:
    """Complete response from a blocking transport (body fully read)."""

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = field(default=b"", repr=False)


class ChunkStreamProtocol(Protocol):
    """Response body delivered chunk by chunk."""

    async def next_chunk(self) -> Result[bytes | None, TransportError]:
        """Next chunk, ``None`` at end of stream."""
        ...

    def close(self) -> None:
        """Release the underlying connection without draining."""
        ...


@dataclass(frozen=True)
class AsyncRawResponse:
    """Status and headers of an async response; the body is still streaming."""

    status: int
    headers: Mapping[str, str]
    stream: ChunkStreamProtocol


# ---------------------------------------------------------------------------
# Transports
# ---------------------------------------------------------------------------


class SyncTransportProtocol(Protocol):
    """Blocking transport: one call, one complete response."""

    def send(self, request: SignedRequest) -> Result[RawResponse, TransportError]: ...

    def close(self) -> None: ...


class AsyncTransportProtocol(Protocol):
    """Async transport: resolves once response headers have arrived."""

    def send(
        self, request: SignedRequest
    ) -> Awaitable[Result[AsyncRawResponse, TransportError]]: ...

    async def close(self) -> None: ...


__all__ = [
    "AsyncRawResponse",
    "AsyncTransportProtocol",
    "ChunkStreamProtocol",
    "RawResponse",
    "SyncTransportProtocol",
]
