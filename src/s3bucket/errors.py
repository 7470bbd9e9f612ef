"""S3 Error ADT - Algebraic Data Types for request pipeline failures.

This module defines frozen dataclasses representing every way a single S3
call can fail, enabling exhaustive pattern matching on ``S3Error``.

Failures are never retried by the pipeline; each one reaches the caller on
first occurrence.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


@dataclass(frozen=True)
class TransportError:
    """Connection, TLS, DNS or mid-body failure while talking to the service.

    Also used when a response body ends before its advertised
    ``Content-Length``.

    Attributes:
        message: Human-readable description of the failure
        url: URL of the request that failed (no query credentials are ever
            placed in URLs, so this is safe to log)
    """

    message: str
    url: str = ""
    kind: Literal["TransportError"] = "TransportError"


@dataclass(frozen=True)
class ServiceError:
    """The service answered with a status >= 300 and a parsable error body.

    Fields missing from the error document are empty strings. A 404 is an
    ordinary ServiceError; callers decide whether it is expected.

    Attributes:
        status: HTTP status code
        code: S3 error code (e.g. "NoSuchKey", "SignatureDoesNotMatch")
        message: Error message from the service
        raw_body: The complete error document as received
        resource: Resource named in the error document, if any
        request_id: Request id reported by the service, if any
    """

    status: int
    code: str
    message: str
    raw_body: bytes = field(default=b"", repr=False)
    resource: str = ""
    request_id: str = ""
    kind: Literal["ServiceError"] = "ServiceError"


@dataclass(frozen=True)
class MalformedErrorBody:
    """Status >= 300 but the body is not a parsable S3 error document.

    Attributes:
        status: HTTP status code
        reason: Why parsing failed
        raw_body: The bytes that failed to parse, for diagnosis
    """

    status: int
    reason: str
    raw_body: bytes = b""
    kind: Literal["MalformedErrorBody"] = "MalformedErrorBody"


@dataclass(frozen=True)
class SigningInputError:
    """The request could not be signed. Raised before any network access.

    Attributes:
        message: Description of the bad input
        region_tag: Offending region tag when resolution failed
    """

    message: str
    region_tag: str | None = None
    kind: Literal["SigningInputError"] = "SigningInputError"


@dataclass(frozen=True)
class EncodingError:
    """Response bytes are not valid text/XML where a document is required.

    Attributes:
        message: Description of the decoding failure
        raw_body: The bytes that failed to decode
    """

    message: str
    raw_body: bytes = field(default=b"", repr=False)
    kind: Literal["EncodingError"] = "EncodingError"


# Union type for all pipeline errors - enables exhaustive pattern matching
S3Error = TransportError | ServiceError | MalformedErrorBody | SigningInputError | EncodingError


def describe_error(error: S3Error) -> str:
    """One-line summary of an error, suitable for logs and CLI output."""
    match error:
        case TransportError(message=message, url=url):
            return f"transport error ({url}): {message}" if url else f"transport error: {message}"
        case ServiceError(status=status, code=code, message=message):
            return f"service error {status} {code}: {message}"
        case MalformedErrorBody(status=status, reason=reason):
            return f"malformed error body (status {status}): {reason}"
        case SigningInputError(message=message):
            return f"signing input error: {message}"
        case EncodingError(message=message):
            return f"encoding error: {message}"


__all__ = [
    "EncodingError",
    "MalformedErrorBody",
    "S3Error",
    "ServiceError",
    "SigningInputError",
    "TransportError",
    "describe_error",
]
