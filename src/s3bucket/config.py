"""
Bucket configuration resolved once, at construction time.

``BucketSettings`` is an immutable pydantic model. ``from_env`` reads the
process environment a single time; the resulting settings (and the
credentials loaded with them) are passed explicitly from then on.
"""

from __future__ import annotations

from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .credentials import Credentials, CredentialsError, load_credentials
from .errors import SigningInputError
from .region import Region, custom_region, resolve
from .result import Failure, Result, Success
from .validation import validate_model


_TRUE = frozenset({"1", "true", "yes", "on"})


class BucketSettings(BaseModel):
    """Everything needed to build a ``Bucket`` except the transports.

    Attributes:
        bucket_name: Bucket to address
        region: Region tag ("us-east-1", "nyc3", ...) or, with ``endpoint``,
            the signing region of a custom endpoint
        endpoint: Custom "scheme://host[:port]" for S3-compatible services
        profile: Credentials-file profile used when the environment has none
        verify_tls: Verify server certificates
    """

    bucket_name: str = Field(..., min_length=1)
    region: str = "us-east-1"
    endpoint: str | None = None
    profile: str | None = None
    verify_tls: bool = True

    model_config = ConfigDict(frozen=True, extra="forbid")

    @classmethod
    def create(cls, **data: object) -> Result[BucketSettings, ValidationError]:
        return validate_model(cls, **data)

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str], **overrides: object
    ) -> Result[BucketSettings, ValidationError]:
        """
        Read ``S3_BUCKET``, ``S3_REGION``, ``S3_ENDPOINT``, ``S3_VERIFY_TLS``
        and ``AWS_PROFILE``. Keyword overrides that are not None win.
        """
        data: dict[str, object] = {
            "bucket_name": environ.get("S3_BUCKET", ""),
            "region": environ.get("S3_REGION") or environ.get("AWS_REGION") or "us-east-1",
            "endpoint": environ.get("S3_ENDPOINT") or None,
            "profile": environ.get("AWS_PROFILE") or None,
            "verify_tls": environ.get("S3_VERIFY_TLS", "true").strip().lower() in _TRUE,
        }
        data.update({key: value for key, value in overrides.items() if value is not None})
        return validate_model(cls, **data)

    def resolve_region(self) -> Result[Region, SigningInputError]:
        """Known tag, or custom endpoint when ``endpoint`` is set."""
        resolved = (
            custom_region(self.region, self.endpoint) if self.endpoint else resolve(self.region)
        )
        return resolved.map_error(
            lambda unknown: SigningInputError(
                message=f"Cannot resolve region {unknown.tag!r}: {unknown.reason}",
                region_tag=unknown.tag,
            )
        )

    def credentials_from(
        self, environ: Mapping[str, str]
    ) -> Result[Credentials, CredentialsError]:
        """Credentials for this profile, resolved once from ``environ``."""
        return load_credentials(profile=self.profile, environ=environ)


__all__ = ["BucketSettings"]
