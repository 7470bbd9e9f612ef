# src/s3bucket/__main__.py
"""CLI for one-off bucket operations.

Usage:
    python -m s3bucket [options] <bucket-name> get <key> [--output FILE]
    python -m s3bucket [options] <bucket-name> put <key> <file> [--content-type TYPE]
    python -m s3bucket [options] <bucket-name> delete <key>
    python -m s3bucket [options] <bucket-name> list [--prefix P] [--delimiter D]

Options:
    --region TAG        Region tag, or signing region with --endpoint
                        (default: S3_REGION or us-east-1)
    --endpoint URL      Custom S3-compatible endpoint (default: S3_ENDPOINT)
    --profile NAME      Credentials-file profile (default: AWS_PROFILE or "default")
    --insecure          Skip TLS certificate verification
    --async             Use the asyncio transport
    --log-level LEVEL   Logging level (default: WARNING)

Examples:
    # Upload a file, read it back, remove it
    python -m s3bucket my-bucket put /test.file ./message.txt --content-type text/plain
    python -m s3bucket my-bucket get /test.file
    python -m s3bucket my-bucket delete /test.file

    # List everything under photos/ against a local MinIO
    python -m s3bucket --endpoint http://localhost:9000 my-bucket list --prefix photos/

Exit codes:
    0: Success
    1: The service rejected the request (ServiceError / MalformedErrorBody)
    2: Transport, signing, encoding or configuration error
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Mapping, Never, Sequence

from .bucket import Bucket
from .classifier import S3Response
from .config import BucketSettings
from .errors import (
    EncodingError,
    MalformedErrorBody,
    S3Error,
    ServiceError,
    SigningInputError,
    TransportError,
    describe_error,
)
from .listing import ListBucketResult
from .result import Failure, Result, Success


def assert_never(value: Never) -> Never:
    """
    Type-safe exhaustiveness check for pattern matching.

    Raises:
        AssertionError: Always (this should never execute)
    """
    raise AssertionError(f"Unhandled case: {value!r}")


def exit_code_for(error: S3Error) -> int:
    match error:
        case ServiceError() | MalformedErrorBody():
            return 1
        case TransportError() | SigningInputError() | EncodingError():
            return 2
        case _:
            assert_never(error)


def report_error(error: S3Error) -> int:
    print(f"✗ Error: {describe_error(error)}", file=sys.stderr)
    match error:
        case MalformedErrorBody(raw_body=raw_body) if raw_body:
            print(raw_body.decode("utf-8", errors="replace"), file=sys.stderr)
        case _:
            pass
    return exit_code_for(error)


def _print_listing(pages: list[ListBucketResult]) -> None:
    for page in pages:
        for prefix in page.common_prefixes:
            print(json.dumps({"prefix": prefix.prefix}))
        for item in page.contents:
            print(
                json.dumps(
                    {
                        "key": item.key,
                        "size": item.size,
                        "last_modified": (
                            item.last_modified.isoformat() if item.last_modified else None
                        ),
                        "etag": item.etag,
                    }
                )
            )


async def _run_async(
    bucket: Bucket, args: argparse.Namespace, content: bytes
) -> Result[object, S3Error]:
    async with bucket:
        if args.command == "get":
            return await bucket.get_async(args.key)
        if args.command == "put":
            return await bucket.put_async(args.key, content, args.content_type)
        if args.command == "delete":
            return await bucket.delete_async(args.key)
        return await bucket.list_async(args.prefix, args.delimiter)


def _run_sync(bucket: Bucket, args: argparse.Namespace, content: bytes) -> Result[object, S3Error]:
    with bucket:
        if args.command == "get":
            return bucket.get(args.key)
        if args.command == "put":
            return bucket.put(args.key, content, args.content_type)
        if args.command == "delete":
            return bucket.delete(args.key)
        return bucket.list(args.prefix, args.delimiter)


def run(args: argparse.Namespace, environ: Mapping[str, str]) -> int:
    """Execute a parsed command line. Returns the process exit code."""
    content = b""
    if args.command == "put":
        try:
            content = Path(args.file).read_bytes()
        except OSError as exc:
            print(f"✗ Error: Cannot read {args.file}: {exc.strerror or exc}", file=sys.stderr)
            return 2

    match BucketSettings.from_env(
        environ,
        bucket_name=args.bucket_name,
        region=args.region,
        endpoint=args.endpoint,
        profile=args.profile,
        verify_tls=False if args.insecure else None,
    ):
        case Failure(validation_error):
            print(f"✗ Invalid configuration:\n{validation_error}", file=sys.stderr)
            return 2
        case Success(settings):
            pass

    match settings.credentials_from(environ):
        case Failure(credentials_error):
            print(f"✗ Error: {credentials_error.message}", file=sys.stderr)
            return 2
        case Success(credentials):
            pass

    match Bucket.from_settings(settings, credentials):
        case Failure(signing_error):
            return report_error(signing_error)
        case Success(bucket):
            pass

    if args.use_async:
        result = asyncio.run(_run_async(bucket, args, content))
    else:
        result = _run_sync(bucket, args, content)

    match result:
        case Failure(error):
            return report_error(error)
        case Success(S3Response(status=status, body=body)) if args.command == "get":
            if args.output:
                Path(args.output).write_bytes(body)
                print(f"✓ {status}: wrote {len(body)} bytes to {args.output}")
            else:
                sys.stdout.buffer.write(body)
                sys.stdout.flush()
            return 0
        case Success(S3Response(status=status)):
            print(f"✓ {args.command} {args.key}: {status}")
            return 0
        case Success(pages) if isinstance(pages, list):
            _print_listing(pages)
            return 0
        case _:
            raise AssertionError(f"Unexpected result type: {result}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m s3bucket",
        description="Signed S3 object operations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--region", default=None, help="Region tag (default: S3_REGION or us-east-1)"
    )
    parser.add_argument(
        "--endpoint", default=None, help="Custom endpoint URL (default: S3_ENDPOINT)"
    )
    parser.add_argument("--profile", default=None, help="Credentials-file profile")
    parser.add_argument("--insecure", action="store_true", help="Skip TLS certificate verification")
    parser.add_argument(
        "--async", action="store_true", dest="use_async", help="Use the asyncio transport"
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    parser.add_argument("bucket_name", help="S3 bucket name")

    subparsers = parser.add_subparsers(dest="command", required=True)

    get_parser = subparsers.add_parser("get", help="Download an object")
    get_parser.add_argument("key", help="Object key")
    get_parser.add_argument("--output", "-o", default=None, help="Write to FILE instead of stdout")

    put_parser = subparsers.add_parser("put", help="Upload a file")
    put_parser.add_argument("key", help="Object key")
    put_parser.add_argument("file", help="Local file to upload")
    put_parser.add_argument(
        "--content-type", default="application/octet-stream", help="Content-Type of the object"
    )

    delete_parser = subparsers.add_parser("delete", help="Delete an object")
    delete_parser.add_argument("key", help="Object key")

    list_parser = subparsers.add_parser("list", help="List objects (all pages)")
    list_parser.add_argument("--prefix", default="", help="Key prefix")
    list_parser.add_argument("--delimiter", default=None, help="Grouping delimiter, e.g. '/'")

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sys.exit(run(args, dict(os.environ)))


if __name__ == "__main__":
    main()
