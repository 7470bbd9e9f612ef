# tests/test_classifier.py
"""Tests for response classification and error-document parsing."""

from __future__ import annotations

import pytest

from s3bucket.classifier import S3Response, classify, is_success, parse_service_error
from s3bucket.errors import MalformedErrorBody, ServiceError, describe_error
from tests.helpers import error_document, expect_failure, expect_success


NO_SUCH_KEY = b"""<?xml version="1.0" encoding="UTF-8"?>
<Error>
  <Code>NoSuchKey</Code>
  <Message>The resource you requested does not exist</Message>
  <Resource>/mybucket/myfoto.jpg</Resource>
  <RequestId>4442587FB7D0A2F9</RequestId>
</Error>"""


def test_status_threshold() -> None:
    assert is_success(200)
    assert is_success(204)
    assert is_success(299)
    assert not is_success(300)
    assert not is_success(404)


def test_299_is_success_with_body() -> None:
    response = expect_success(classify(299, {"x": "y"}, b"data"))
    assert response == S3Response(status=299, headers={"x": "y"}, body=b"data")


@pytest.mark.parametrize("status", [300, 301, 304, 400, 403, 404, 500, 503])
def test_300_and_above_parse_error_body(status: int) -> None:
    error = expect_failure(classify(status, {}, NO_SUCH_KEY))
    assert isinstance(error, ServiceError)
    assert error.status == status


def test_redirect_with_empty_body_is_malformed() -> None:
    error = expect_failure(classify(301, {}, b""))
    assert isinstance(error, MalformedErrorBody)
    assert error.status == 301


def test_parse_service_error_fields() -> None:
    error = expect_success(parse_service_error(404, NO_SUCH_KEY))
    assert error.code == "NoSuchKey"
    assert error.message == "The resource you requested does not exist"
    assert error.resource == "/mybucket/myfoto.jpg"
    assert error.request_id == "4442587FB7D0A2F9"
    assert error.raw_body == NO_SUCH_KEY


def test_parse_service_error_missing_fields_are_empty() -> None:
    error = expect_success(parse_service_error(500, b"<Error><Code>InternalError</Code></Error>"))
    assert error.code == "InternalError"
    assert error.message == ""
    assert error.resource == ""


def test_parse_service_error_uses_key_when_no_resource() -> None:
    body = b"<Error><Code>NoSuchKey</Code><Message>m</Message><Key>a/b.txt</Key></Error>"
    assert expect_success(parse_service_error(404, body)).resource == "a/b.txt"


def test_parse_service_error_ignores_namespace() -> None:
    body = error_document("AccessDenied", "Access Denied").replace(
        b"<Error>", b'<Error xmlns="http://s3.amazonaws.com/doc/2006-03-01/">'
    )
    assert expect_success(parse_service_error(403, body)).code == "AccessDenied"


def test_invalid_xml_is_malformed_with_raw_bytes() -> None:
    body = b"<html>Bad Gateway"
    error = expect_failure(parse_service_error(502, body))
    assert error.status == 502
    assert error.raw_body == body
    assert error.reason.startswith("invalid XML")


def test_wrong_root_is_malformed() -> None:
    error = expect_failure(parse_service_error(400, b"<ListBucketResult/>"))
    assert "ListBucketResult" in error.reason


def test_describe_error() -> None:
    error = expect_success(parse_service_error(404, NO_SUCH_KEY))
    assert describe_error(error) == (
        "service error 404 NoSuchKey: The resource you requested does not exist"
    )
