# tests/helpers/__init__.py
"""Shared test utilities: Result unwrapping, fixed inputs and fakes.

Usage:
    >>> from tests.helpers import expect_success, FakeTransport, InMemoryS3
    >>> server = InMemoryS3(BUCKET_NAME, region, credentials)
    >>> response = expect_success(execute(request, FakeTransport(server.handle)))
"""

from __future__ import annotations

from tests.helpers.constants import (
    BUCKET_NAME,
    EXAMPLE_ACCESS_KEY,
    EXAMPLE_AMZ_DATE,
    EXAMPLE_DATE_STAMP,
    EXAMPLE_GET_CANONICAL_HASH,
    EXAMPLE_GET_CANONICAL_REQUEST,
    EXAMPLE_GET_SIGNATURE,
    EXAMPLE_HOST,
    EXAMPLE_SECRET_KEY,
    PUT_BODY,
)
from tests.helpers.fakes import (
    FakeAsyncTransport,
    FakeTransport,
    HangingAsyncTransport,
    InMemoryS3,
    ListChunkStream,
    error_document,
    fail_with,
    raw_response,
    respond_with,
    split_chunks,
)
from tests.helpers.result_utils import E, T, expect_failure, expect_success

__all__ = [
    # Result unwrapping
    "expect_success",
    "expect_failure",
    "T",
    "E",
    # Fakes
    "FakeAsyncTransport",
    "FakeTransport",
    "HangingAsyncTransport",
    "InMemoryS3",
    "ListChunkStream",
    "error_document",
    "fail_with",
    "raw_response",
    "respond_with",
    "split_chunks",
    # Constants
    "BUCKET_NAME",
    "EXAMPLE_ACCESS_KEY",
    "EXAMPLE_AMZ_DATE",
    "EXAMPLE_DATE_STAMP",
    "EXAMPLE_GET_CANONICAL_HASH",
    "EXAMPLE_GET_CANONICAL_REQUEST",
    "EXAMPLE_GET_SIGNATURE",
    "EXAMPLE_HOST",
    "EXAMPLE_SECRET_KEY",
    "PUT_BODY",
]
