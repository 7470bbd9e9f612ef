"""ListObjectsV2 result decoding."""

from __future__ import annotations

from datetime import datetime
from xml.etree import ElementTree as ET

from pydantic import BaseModel, ConfigDict, Field

from .errors import EncodingError
from .result import Failure, Result, Success, collect_results
from .validation import validate_model


class ObjectSummary(BaseModel):
    """One ``<Contents>`` entry."""

    key: str
    last_modified: datetime | None = None
    etag: str = ""
    size: int = Field(0, ge=0)
    storage_class: str = ""

    model_config = ConfigDict(frozen=True, extra="forbid")


class CommonPrefix(BaseModel):
    """One ``<CommonPrefixes>`` entry (a "directory" under the delimiter)."""

    prefix: str

    model_config = ConfigDict(frozen=True, extra="forbid")


class ListBucketResult(BaseModel):
    """One page of a ListObjectsV2 response."""

    name: str = ""
    prefix: str = ""
    delimiter: str | None = None
    max_keys: int | None = None
    key_count: int | None = None
    is_truncated: bool = False
    continuation_token: str | None = None
    next_continuation_token: str | None = None
    contents: list[ObjectSummary] = Field(default_factory=list)
    common_prefixes: list[CommonPrefix] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="forbid")


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children(element: ET.Element) -> dict[str, str]:
    return {_local_name(child.tag): (child.text or "") for child in element}


def _object_summary(element: ET.Element) -> Result[ObjectSummary, EncodingError]:
    fields = _children(element)
    match validate_model(
        ObjectSummary,
        key=fields.get("Key", ""),
        last_modified=fields.get("LastModified") or None,
        etag=fields.get("ETag", "").strip('"'),
        size=fields.get("Size") or 0,
        storage_class=fields.get("StorageClass", ""),
    ):
        case Success(summary):
            return Success(summary)
        case Failure(error):
            return Failure(EncodingError(message=f"Invalid <Contents> entry: {error}"))


def parse_list_result(body: bytes) -> Result[ListBucketResult, EncodingError]:
    """
    Decode a ListObjectsV2 body.

    The body must be UTF-8 text holding a ``ListBucketResult`` document
    (namespace-agnostic). Anything else is an EncodingError carrying the raw
    bytes.
    """
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as exc:
        return Failure(EncodingError(message=f"List result is not UTF-8: {exc}", raw_body=body))
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        return Failure(EncodingError(message=f"List result is not XML: {exc}", raw_body=body))
    if _local_name(root.tag) != "ListBucketResult":
        return Failure(
            EncodingError(
                message=f"Unexpected root element <{_local_name(root.tag)}>", raw_body=body
            )
        )

    fields = _children(root)
    summaries = [_object_summary(child) for child in root if _local_name(child.tag) == "Contents"]
    prefixes = [
        CommonPrefix(prefix=_children(child).get("Prefix", ""))
        for child in root
        if _local_name(child.tag) == "CommonPrefixes"
    ]

    match collect_results(summaries):
        case Failure(error):
            return Failure(EncodingError(message=error.message, raw_body=body))
        case Success(contents):
            pass

    match validate_model(
        ListBucketResult,
        name=fields.get("Name", ""),
        prefix=fields.get("Prefix", ""),
        delimiter=fields.get("Delimiter") or None,
        max_keys=fields.get("MaxKeys") or None,
        key_count=fields.get("KeyCount") or None,
        is_truncated=fields.get("IsTruncated", "false").strip().lower() == "true",
        continuation_token=fields.get("ContinuationToken") or None,
        next_continuation_token=fields.get("NextContinuationToken") or None,
        contents=contents,
        common_prefixes=prefixes,
    ):
        case Success(result):
            return Success(result)
        case Failure(validation_error):
            return Failure(EncodingError(message=str(validation_error), raw_body=body))


__all__ = [
    "CommonPrefix",
    "ListBucketResult",
    "ObjectSummary",
    "parse_list_result",
]
