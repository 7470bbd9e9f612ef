"""
Response classification.

The status threshold is the single branch point of the pipeline: below it the
body is trusted as data, at or above it the body is a diagnostic to parse as
an S3 error document. No verb is special-cased.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping
from xml.etree import ElementTree as ET

from .errors import MalformedErrorBody, ServiceError
from .result import Failure, Result, Success


logger = logging.getLogger(__name__)

SUCCESS_THRESHOLD = 300


@dataclass(frozen=True)
class S3Response:
    """Successful response with its body fully read.

    Attributes:
        status: HTTP status code (< 300)
        headers: Response headers, names lowercased
        body: Complete body (empty for successful PUT/DELETE)
    """

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = field(default=b"", repr=False)


def is_success(status: int) -> bool:
    return status < SUCCESS_THRESHOLD


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def parse_service_error(status: int, raw_body: bytes) -> Result[ServiceError, MalformedErrorBody]:
    """
    Parse an S3 ``<Error>`` document.

    Absent fields are empty strings, not failures. A body that is not XML, or
    whose root is not ``Error``, is a MalformedErrorBody carrying the raw
    bytes.
    """
    try:
        root = ET.fromstring(raw_body)
    except ET.ParseError as exc:
        return Failure(
            MalformedErrorBody(status=status, reason=f"invalid XML: {exc}", raw_body=raw_body)
        )

    if _local_name(root.tag) != "Error":
        return Failure(
            MalformedErrorBody(
                status=status,
                reason=f"unexpected root element <{_local_name(root.tag)}>",
                raw_body=raw_body,
            )
        )

    fields = {_local_name(child.tag): (child.text or "").strip() for child in root}
    return Success(
        ServiceError(
            status=status,
            code=fields.get("Code", ""),
            message=fields.get("Message", ""),
            raw_body=raw_body,
            resource=fields.get("Resource", "") or fields.get("Key", ""),
            request_id=fields.get("RequestId", ""),
        )
    )


def classify(
    status: int, headers: Mapping[str, str], body: bytes
) -> Result[S3Response, ServiceError | MalformedErrorBody]:
    """Route a complete response by status: data below 300, error document otherwise."""
    if is_success(status):
        return Success(S3Response(status=status, headers=dict(headers), body=body))

    match parse_service_error(status, body):
        case Success(error):
            logger.warning(f"S3 returned {status} {error.code}: {error.message}")
            return Failure(error)
        case Failure(malformed):
            logger.warning(f"S3 returned {status} with unparsable body: {malformed.reason}")
            return Failure(malformed)


__all__ = [
    "S3Response",
    "SUCCESS_THRESHOLD",
    "classify",
    "is_success",
    "parse_service_error",
]
