"""
Request assembly: command + bucket + region + credentials -> SignedRequest.

Every header the request carries (library headers and caller extras alike) is
in the signed set, so none of them can change after signing without the
service rejecting the signature.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping

from .canonical import canonical_query_string, canonical_uri, payload_digest
from .command import Command, Put, command_body, command_query, http_verb
from .credentials import Credentials
from .errors import SigningInputError
from .region import Region
from .result import Failure, Result, Success
from .signing import amz_date, sign


logger = logging.getLogger(__name__)

Headers = dict[str, str]
Query = dict[str, str]

# Set by the library; caller extras with these names (any case) are replaced.
_LIBRARY_HEADERS = frozenset(
    {
        "host",
        "content-type",
        "content-length",
        "authorization",
        "x-amz-content-sha256",
        "x-amz-date",
        "x-amz-security-token",
    }
)


@dataclass(frozen=True)
class SignedRequest:
    """Fully composed outbound request.

    Attributes:
        method: HTTP verb
        url: Absolute URL including the encoded query string
        path: Unencoded absolute path (``/<bucket>/<key>``) that was signed
        query: Query parameters that were signed
        headers: Header map including ``Authorization``
        body: Request body
        signed_headers: ``;``-joined names covered by the signature
    """

    method: str
    url: str
    path: str
    query: Query
    headers: Headers
    body: bytes = field(default=b"", repr=False)
    signed_headers: str = ""


def object_path(bucket: str, path: str) -> str:
    """Path-style object path: ``/<bucket>/<key>``."""
    key = path if path.startswith("/") else f"/{path}"
    return f"/{bucket}{key}"


def build_url(region: Region, path: str, query: Mapping[str, str]) -> str:
    """Absolute URL; path and query are encoded exactly as they were signed."""
    encoded_query = canonical_query_string(query)
    base = f"{region.base_url}{canonical_uri(path)}"
    return f"{base}?{encoded_query}" if encoded_query else base


def build_request(
    *,
    bucket: str,
    region: Region,
    credentials: Credentials,
    path: str,
    command: Command,
    moment: datetime,
    extra_headers: Mapping[str, str] | None = None,
    extra_query: Mapping[str, str] | None = None,
) -> Result[SignedRequest, SigningInputError]:
    """
    Assemble and sign the outbound request for one command.

    Args:
        bucket: Bucket name
        region: Resolved region (host, scheme, signing region)
        credentials: Credentials to sign with
        path: Object key, with or without a leading ``/``
        command: Operation to perform
        moment: Signing timestamp (timezone-aware)
        extra_headers: Caller headers, signed along with the library headers
        extra_query: Caller query parameters, overridden by the command's own

    Returns:
        Success(SignedRequest) or Failure(SigningInputError)
    """
    if moment.tzinfo is None or moment.utcoffset() is None:
        return Failure(
            SigningInputError(message=f"Signing timestamp {moment.isoformat()} has no timezone")
        )
    body = command_body(command)
    match payload_digest(body):
        case Failure(error):
            return Failure(error)
        case Success(digest):
            pass

    full_path = object_path(bucket, path)
    query: Query = {**(extra_query or {}), **command_query(command)}

    headers: Headers = {
        name: value
        for name, value in (extra_headers or {}).items()
        if name.lower() not in _LIBRARY_HEADERS
    }
    headers["Host"] = region.host
    headers["x-amz-date"] = amz_date(moment)
    headers["x-amz-content-sha256"] = digest
    match command:
        case Put(content_type=content_type):
            headers["Content-Type"] = content_type
            headers["Content-Length"] = str(len(body))
        case _:
            pass
    token = credentials.session_token
    if token is not None:
        headers["x-amz-security-token"] = token

    signed = list(headers)
    match sign(
        method=http_verb(command),
        path=full_path,
        query=query,
        headers=headers,
        signed=signed,
        payload_hash=digest,
        moment=moment,
        credentials=credentials,
        signing_region=region.signing_region,
    ):
        case Failure(error):
            return Failure(error)
        case Success(result):
            pass

    headers["Authorization"] = result.authorization
    request = SignedRequest(
        method=http_verb(command),
        url=build_url(region, full_path, query),
        path=full_path,
        query=query,
        headers=headers,
        body=bytes(body),
        signed_headers=result.signed_headers,
    )
    logger.debug(f"Built {request.method} {request.url} (signed: {request.signed_headers})")
    return Success(request)


__all__ = [
    "Headers",
    "Query",
    "SignedRequest",
    "build_request",
    "build_url",
    "object_path",
]
