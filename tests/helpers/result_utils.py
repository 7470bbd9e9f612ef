# tests/helpers/result_utils.py
"""Result unwrapping helpers for tests."""

from __future__ import annotations

from typing import TypeVar

from s3bucket.result import Failure, Result, Success

T = TypeVar("T")
E = TypeVar("E")


def expect_success(result: Result[T, E]) -> T:
    """Unwrap Success or fail the test with the error.

    Example:
        >>> response = expect_success(bucket.get("/test.file"))
        >>> assert response.status == 200
    """
    match result:
        case Success(value):
            return value
        case Failure(error):
            raise AssertionError(f"Unexpected failure: {error}")


def expect_failure(result: Result[T, E]) -> E:
    """Unwrap Failure or fail the test.

    Example:
        >>> error = expect_failure(bucket.delete("/missing"))
        >>> assert isinstance(error, ServiceError)
    """
    match result:
        case Failure(error):
            return error
        case Success(value):
            raise AssertionError(f"Expected failure but got success: {value}")
