"""
Canonical request construction for AWS Signature Version 4.

The canonical request is the exact string both sides hash. Any byte that
differs from what the service rebuilds (ordering, encoding, whitespace, the
blank line after the headers) produces a signature mismatch, so every helper
here is pure and byte-exact.

Layout (``\\n`` separated)::

    GET
    /bucket/key.txt
    list-type=2&prefix=photos%2F
    host:s3.amazonaws.com
    x-amz-content-sha256:e3b0c442...
    x-amz-date:20130524T000000Z

    host;x-amz-content-sha256;x-amz-date
    e3b0c442...
"""

from __future__ import annotations

import hashlib
import re
from typing import Iterable, Mapping, Sequence
from urllib.parse import quote

from .errors import SigningInputError
from .result import Failure, Result, Success


EMPTY_PAYLOAD_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

HeaderValue = str | Sequence[str]

_WHITESPACE_RUN = re.compile(r"\s+")


def uri_encode(value: str, *, encode_slash: bool = True) -> str:
    """
    Percent-encode per the SigV4 rules.

    Only ``A-Z a-z 0-9 - _ . ~`` stay literal; everything else becomes
    ``%XX`` with uppercase hex over the UTF-8 bytes. ``/`` is kept when
    encoding a path.
    """
    return quote(value, safe="" if encode_slash else "/")


def canonical_uri(path: str) -> str:
    """URI-encoded absolute path; an empty path is ``/``."""
    if not path:
        return "/"
    if not path.startswith("/"):
        path = "/" + path
    return uri_encode(path, encode_slash=False)


def canonical_query_string(query: Mapping[str, str]) -> str:
    """Encoded ``key=value`` pairs sorted by encoded key, then value."""
    pairs = sorted((uri_encode(key), uri_encode(value)) for key, value in query.items())
    return "&".join(f"{key}={value}" for key, value in pairs)


def normalize_header_value(value: HeaderValue) -> str:
    """Comma-join multiple values, trim, collapse internal whitespace runs."""
    joined = value if isinstance(value, str) else ",".join(v.strip() for v in value)
    return _WHITESPACE_RUN.sub(" ", joined.strip())


def signed_header_list(names: Iterable[str]) -> str:
    """Lowercased, de-duplicated, sorted, ``;``-joined header names."""
    return ";".join(sorted({name.lower() for name in names}))


def canonical_headers(
    headers: Mapping[str, HeaderValue], signed: Iterable[str]
) -> Result[str, SigningInputError]:
    """
    ``name:value\\n`` for each signed header, sorted by lowercased name.

    Header lookup is case-insensitive. Headers sharing a name in different
    case are merged in mapping order, as repeated headers would be.
    """
    by_name: dict[str, list[str]] = {}
    for name, value in headers.items():
        values = [value] if isinstance(value, str) else list(value)
        by_name.setdefault(name.lower(), []).extend(values)

    lines: list[str] = []
    for name in sorted({name.lower() for name in signed}):
        if name not in by_name:
            return Failure(SigningInputError(message=f"Signed header {name!r} is not present"))
        lines.append(f"{name}:{normalize_header_value(by_name[name])}\n")
    return Success("".join(lines))


def payload_digest(body: object) -> Result[str, SigningInputError]:
    """Hex SHA-256 of the body; the fixed empty digest for an empty body."""
    if not isinstance(body, (bytes, bytearray, memoryview)):
        return Failure(
            SigningInputError(message=f"Payload must be bytes-like, got {type(body).__name__}")
        )
    if len(body) == 0:
        return Success(EMPTY_PAYLOAD_SHA256)
    return Success(hashlib.sha256(body).hexdigest())


def build_canonical_request(
    method: str,
    path: str,
    query: Mapping[str, str],
    headers: Mapping[str, HeaderValue],
    signed: Iterable[str],
    payload_hash: str,
) -> Result[str, SigningInputError]:
    """
    Assemble the canonical request string.

    Args:
        method: HTTP verb
        path: Absolute request path, not yet encoded
        query: Query parameters, not yet encoded
        headers: Request headers; values may be strings or lists of strings
        signed: Names of the headers covered by the signature
        payload_hash: Hex SHA-256 of the body

    Returns:
        Success(canonical request) or Failure(SigningInputError) when a
        signed header is missing
    """
    signed_names = list(signed)
    match canonical_headers(headers, signed_names):
        case Failure(error):
            return Failure(error)
        case Success(header_block):
            return Success(
                "\n".join(
                    [
                        method.upper(),
                        canonical_uri(path),
                        canonical_query_string(query),
                        header_block,
                        signed_header_list(signed_names),
                        payload_hash,
                    ]
                )
            )


__all__ = [
    "EMPTY_PAYLOAD_SHA256",
    "HeaderValue",
    "build_canonical_request",
    "canonical_headers",
    "canonical_query_string",
    "canonical_uri",
    "normalize_header_value",
    "payload_digest",
    "signed_header_list",
    "uri_encode",
]
