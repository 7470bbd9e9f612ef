"""Region resolution: region tag -> (host, scheme, signing region)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal
from urllib.parse import urlsplit

from .result import Failure, Result, Success


class KnownRegion(str, Enum):
    """Region tags with a built-in endpoint."""

    us_east_1 = "us-east-1"
    us_east_2 = "us-east-2"
    us_west_1 = "us-west-1"
    us_west_2 = "us-west-2"
    ca_central_1 = "ca-central-1"
    ap_south_1 = "ap-south-1"
    ap_northeast_1 = "ap-northeast-1"
    ap_northeast_2 = "ap-northeast-2"
    ap_northeast_3 = "ap-northeast-3"
    ap_southeast_1 = "ap-southeast-1"
    ap_southeast_2 = "ap-southeast-2"
    cn_north_1 = "cn-north-1"
    cn_northwest_1 = "cn-northwest-1"
    eu_central_1 = "eu-central-1"
    eu_west_1 = "eu-west-1"
    eu_west_2 = "eu-west-2"
    eu_west_3 = "eu-west-3"
    sa_east_1 = "sa-east-1"
    do_nyc3 = "nyc3"
    do_ams3 = "ams3"
    do_sgp1 = "sgp1"
    do_sfo2 = "sfo2"
    do_fra1 = "fra1"


_DIGITALOCEAN = frozenset(
    {
        KnownRegion.do_nyc3,
        KnownRegion.do_ams3,
        KnownRegion.do_sgp1,
        KnownRegion.do_sfo2,
        KnownRegion.do_fra1,
    }
)
_CHINA = frozenset({KnownRegion.cn_north_1, KnownRegion.cn_northwest_1})


@dataclass(frozen=True)
class UnknownRegion:
    """Region tag (or custom endpoint) that cannot be resolved."""

    tag: str
    reason: str = "unknown region"
    kind: Literal["UnknownRegion"] = "UnknownRegion"


@dataclass(frozen=True)
class Region:
    """Resolved endpoint for a region tag.

    Attributes:
        tag: Tag the region was resolved from
        host: Hostname (with optional port) requests are sent to
        scheme: URL scheme, "https" or "http"
        signing_region: Region code used in the credential scope
    """

    tag: str
    host: str
    scheme: str
    signing_region: str

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}"

    def __str__(self) -> str:
        return self.tag


def _host_for(region: KnownRegion) -> str:
    if region is KnownRegion.us_east_1:
        return "s3.amazonaws.com"
    if region in _DIGITALOCEAN:
        return f"{region.value}.digitaloceanspaces.com"
    if region in _CHINA:
        return f"s3.{region.value}.amazonaws.com.cn"
    return f"s3.{region.value}.amazonaws.com"


def resolve(tag: str) -> Result[Region, UnknownRegion]:
    """
    Resolve a region tag into its endpoint.

    Total over ``KnownRegion``; any other tag is a Failure. Pure.

    Args:
        tag: Region tag such as "us-east-1" or "nyc3" (surrounding whitespace
            and case are ignored)

    Returns:
        Success(Region) or Failure(UnknownRegion)
    """
    normalized = tag.strip().lower()
    try:
        known = KnownRegion(normalized)
    except ValueError:
        return Failure(UnknownRegion(tag=tag))
    return Success(
        Region(
            tag=known.value,
            host=_host_for(known),
            scheme="https",
            signing_region=known.value,
        )
    )


def custom_region(signing_region: str, endpoint: str) -> Result[Region, UnknownRegion]:
    """
    Build a region for an S3-compatible endpoint (MinIO, Ceph, LocalStack...).

    Args:
        signing_region: Region code placed in the credential scope
        endpoint: "host[:port]" or "scheme://host[:port]"; https is assumed
            when no scheme is given

    Returns:
        Success(Region) or Failure(UnknownRegion) for an unusable endpoint
    """
    if not signing_region.strip():
        return Failure(UnknownRegion(tag=endpoint, reason="empty signing region"))
    raw = endpoint.strip()
    if not raw:
        return Failure(UnknownRegion(tag=endpoint, reason="empty endpoint"))
    parts = urlsplit(raw if "://" in raw else f"https://{raw}")
    if parts.scheme not in ("http", "https"):
        return Failure(UnknownRegion(tag=endpoint, reason=f"unsupported scheme {parts.scheme!r}"))
    if not parts.netloc or parts.path not in ("", "/"):
        return Failure(UnknownRegion(tag=endpoint, reason="endpoint must be scheme://host[:port]"))
    return Success(
        Region(
            tag=signing_region.strip(),
            host=parts.netloc,
            scheme=parts.scheme,
            signing_region=signing_region.strip(),
        )
    )


__all__ = [
    "KnownRegion",
    "Region",
    "UnknownRegion",
    "custom_region",
    "resolve",
]
