# src/s3bucket/__init__.py
"""
Authenticated access to S3-compatible object stores.

Requests are signed with AWS Signature Version 4 and executed either blocking
(urllib3) or on asyncio (aiohttp). Every operation returns a
``Result[T, S3Error]``.
"""

from __future__ import annotations

from .bucket import Bucket
from .classifier import S3Response
from .command import Command, Delete, Get, List, Put
from .config import BucketSettings
from .credentials import Credentials, CredentialsError, load_credentials
from .engine import FutureAlreadyDone, ResponseFuture, StreamingResponse, execute, execute_async
from .errors import (
    EncodingError,
    MalformedErrorBody,
    S3Error,
    ServiceError,
    SigningInputError,
    TransportError,
    describe_error,
)
from .listing import CommonPrefix, ListBucketResult, ObjectSummary
from .region import Region, UnknownRegion, custom_region, resolve
from .request import SignedRequest, build_request
from .result import Failure, Result, Success
from .signing import verify_request


__all__ = [
    # Handle
    "Bucket",
    "BucketSettings",
    # Credentials and regions
    "Credentials",
    "CredentialsError",
    "load_credentials",
    "Region",
    "UnknownRegion",
    "custom_region",
    "resolve",
    # Commands and requests
    "Command",
    "Delete",
    "Get",
    "List",
    "Put",
    "SignedRequest",
    "build_request",
    "verify_request",
    # Execution
    "execute",
    "execute_async",
    "ResponseFuture",
    "StreamingResponse",
    "FutureAlreadyDone",
    "S3Response",
    "ListBucketResult",
    "ObjectSummary",
    "CommonPrefix",
    # Results and errors
    "Result",
    "Success",
    "Failure",
    "S3Error",
    "TransportError",
    "ServiceError",
    "MalformedErrorBody",
    "SigningInputError",
    "EncodingError",
    "describe_error",
]
