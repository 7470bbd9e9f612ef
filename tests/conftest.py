# tests/conftest.py
"""Global PyTest fixtures for the test-suite.

No test touches the network: transports are the in-memory fakes from
``tests.helpers.fakes``. Every test runs under a SIGALRM timeout so a
state machine that never reaches ``Done`` fails instead of hanging.
"""

from __future__ import annotations

import signal
from datetime import UTC, datetime
from types import FrameType
from typing import Callable, Generator

import pytest

from s3bucket.bucket import Bucket
from s3bucket.credentials import Credentials
from s3bucket.region import Region, resolve
from tests.helpers import (
    BUCKET_NAME,
    EXAMPLE_ACCESS_KEY,
    EXAMPLE_SECRET_KEY,
    FakeAsyncTransport,
    FakeTransport,
    InMemoryS3,
    expect_success,
)

DEFAULT_TEST_TIMEOUT_SECONDS = 10.0


def _build_timeout_handler(
    timeout_seconds: float,
) -> Callable[[int, FrameType | None], None]:
    """Create SIGALRM handler that fails the test when timeout is reached."""

    def _handle_timeout(signum: int, frame: FrameType | None) -> None:
        pytest.fail(
            f"Test exceeded {timeout_seconds:.0f}s timeout (includes setup/teardown)",
            pytrace=True,
        )

    return _handle_timeout


def _resolve_timeout_seconds(request: pytest.FixtureRequest) -> float:
    """Return timeout for current test (marker override allowed)."""
    marker = request.node.get_closest_marker("timeout")
    if marker is None:
        return DEFAULT_TEST_TIMEOUT_SECONDS

    raw_value = marker.kwargs.get("seconds", marker.args[0] if marker.args else None)
    if raw_value is None:
        pytest.fail("timeout marker requires seconds argument", pytrace=True)

    seconds = float(raw_value)
    if seconds <= 0:
        pytest.fail("timeout marker must be positive seconds", pytrace=True)

    return seconds


@pytest.fixture(autouse=True)
def per_test_timeout(request: pytest.FixtureRequest) -> Generator[None, None, None]:
    """Fail any test that runs longer than the default timeout."""
    if not hasattr(signal, "SIGALRM") or not hasattr(signal, "setitimer"):
        yield
        return

    timeout_seconds = _resolve_timeout_seconds(request)
    handler = _build_timeout_handler(timeout_seconds)
    previous_handler = signal.getsignal(signal.SIGALRM)
    signal.signal(signal.SIGALRM, handler)
    signal.setitimer(signal.ITIMER_REAL, timeout_seconds)
    try:
        yield
    finally:
        signal.setitimer(signal.ITIMER_REAL, 0.0)
        signal.signal(signal.SIGALRM, previous_handler)


# =========================================================================== #
#                          SIGNING FIXTURES                                   #
# =========================================================================== #


@pytest.fixture
def credentials() -> Credentials:
    """The access/secret key pair used in the published SigV4 examples."""
    return Credentials(access_key=EXAMPLE_ACCESS_KEY, secret_key=EXAMPLE_SECRET_KEY)


@pytest.fixture
def region() -> Region:
    return expect_success(resolve("us-east-1"))


@pytest.fixture
def moment() -> datetime:
    """Signing timestamp of the published examples."""
    return datetime(2013, 5, 24, 0, 0, 0, tzinfo=UTC)


# =========================================================================== #
#                          BUCKET FIXTURES                                    #
# =========================================================================== #


@pytest.fixture
def server(region: Region, credentials: Credentials) -> InMemoryS3:
    """In-memory S3 holding ``BUCKET_NAME`` and verifying every signature."""
    return InMemoryS3(BUCKET_NAME, region, credentials)


@pytest.fixture
def bucket(
    server: InMemoryS3, region: Region, credentials: Credentials, moment: datetime
) -> Generator[Bucket, None, None]:
    """
    Bucket wired to ``server`` through both fake transports.

    Usage:
        def test_something(bucket: Bucket) -> None:
            response = expect_success(bucket.get("/key"))
    """
    with Bucket(
        BUCKET_NAME,
        region,
        credentials,
        transport=FakeTransport(server.handle),
        async_transport=FakeAsyncTransport(server.handle, chunk_size=7),
        clock=lambda: moment,
    ) as handle:
        yield handle
