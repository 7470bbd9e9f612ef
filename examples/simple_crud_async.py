#!/usr/bin/env python3
"""
Asyncio CRUD example.

Demonstrates:
- The *_async verbs on one Bucket
- Driving a ResponseFuture by hand and streaming a body chunk by chunk
- Several requests in flight at once with asyncio.gather

Uses the same environment variables as simple_crud.py.
"""

from __future__ import annotations

import asyncio
import os
import sys

from s3bucket import Bucket, BucketSettings, Failure, Get, Success, describe_error


async def main() -> int:
    """Run the asyncio demo; returns the exit code."""
    environ = dict(os.environ)
    settings = BucketSettings.from_env(environ).unwrap()
    credentials = settings.credentials_from(environ).unwrap()
    bucket = Bucket.from_settings(settings, credentials).unwrap()

    async with bucket:
        keys = [f"/async/{index}.txt" for index in range(5)]
        puts = await asyncio.gather(
            *(bucket.put_async(key, f"object {key}".encode(), "text/plain") for key in keys)
        )
        statuses = [result.map(lambda response: response.status).unwrap_or(-1) for result in puts]
        print(f"PUT x{len(puts)} -> {statuses}")

        # Stream one object instead of buffering it.
        match bucket.request_async(keys[0], Get()):
            case Failure(signing_error):
                print(describe_error(signing_error))
                return 2
            case Success(future):
                pass
        match await future:
            case Success(streaming):
                print(f"GET {keys[0]} -> {streaming.status}")
                while True:
                    match await streaming.next_chunk():
                        case Success(None):
                            break
                        case Success(chunk):
                            print(f"  chunk: {chunk!r}")
                        case Failure(error):
                            print(f"  stream failed: {describe_error(error)}")
                            break
            case Failure(error):
                print(f"GET failed: {describe_error(error)}")

        match await bucket.list_async(prefix="async/"):
            case Success(pages):
                print(f"LIST -> {sum(len(page.contents) for page in pages)} object(s)")
            case Failure(error):
                print(f"LIST failed: {describe_error(error)}")

        deletes = await asyncio.gather(*(bucket.delete_async(key) for key in keys))
        print(f"DELETE x{len(deletes)} -> {sum(result.is_success() for result in deletes)} ok")

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
