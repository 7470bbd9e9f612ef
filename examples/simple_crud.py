#!/usr/bin/env python3
"""
Blocking CRUD example.

Demonstrates:
- Resolving settings and credentials once from the environment
- PUT, GET and DELETE on one object
- Handling a missing key as an ordinary ServiceError
- Listing every page under a prefix

Requires S3_BUCKET and AWS credentials (environment or ~/.aws/credentials).
Set S3_ENDPOINT (e.g. http://localhost:9000) to run against MinIO.
"""

from __future__ import annotations

import os
import sys

from s3bucket import Bucket, BucketSettings, Failure, ServiceError, Success, describe_error


def main() -> int:
    """Run the blocking demo; returns the exit code."""
    environ = dict(os.environ)
    match BucketSettings.from_env(environ):
        case Failure(validation_error):
            print(f"Invalid settings: {validation_error}")
            return 2
        case Success(settings):
            pass
    match settings.credentials_from(environ):
        case Failure(credentials_error):
            print(credentials_error.message)
            return 2
        case Success(credentials):
            pass
    match Bucket.from_settings(settings, credentials):
        case Failure(signing_error):
            print(describe_error(signing_error))
            return 2
        case Success(bucket):
            pass

    with bucket:
        print(f"=== {bucket} ===")

        match bucket.put("/test.file", b"I want to go to S3", "text/plain"):
            case Success(response):
                print(f"PUT    -> {response.status}")
            case Failure(error):
                print(f"PUT failed: {describe_error(error)}")
                return 1

        match bucket.get("/test.file"):
            case Success(response):
                print(f"GET    -> {response.status}: {response.body.decode()}")
            case Failure(error):
                print(f"GET failed: {describe_error(error)}")
                return 1

        match bucket.list(prefix="test"):
            case Success(pages):
                keys = [item.key for page in pages for item in page.contents]
                print(f"LIST   -> {len(pages)} page(s): {keys}")
            case Failure(error):
                print(f"LIST failed: {describe_error(error)}")

        match bucket.delete("/test.file"):
            case Success(response):
                print(f"DELETE -> {response.status}")
            case Failure(error):
                print(f"DELETE failed: {describe_error(error)}")

        match bucket.get("/test.file"):
            case Failure(ServiceError(status=404, code=code)):
                print(f"GET after delete -> 404 {code} (expected)")
            case Success(response):
                print(f"GET after delete unexpectedly returned {response.status}")
            case Failure(error):
                print(f"GET after delete failed: {describe_error(error)}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
