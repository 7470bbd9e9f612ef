"""
AWS Signature Version 4 for S3.

The signing key is derived from the secret access key through a chain of
HMAC-SHA256 operations (kSecret -> kDate -> kRegion -> kService -> kSigning),
then used to sign the string-to-sign built from the canonical request. All
functions are pure: the same inputs and timestamp give the same signature.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Mapping, TYPE_CHECKING

from .canonical import HeaderValue, build_canonical_request, payload_digest, signed_header_list
from .credentials import Credentials
from .errors import SigningInputError
from .result import Failure, Result, Success

if TYPE_CHECKING:
    from .request import SignedRequest


logger = logging.getLogger(__name__)

ALGORITHM = "AWS4-HMAC-SHA256"
SERVICE = "s3"
TERMINATOR = "aws4_request"
LONG_DATE_FORMAT = "%Y%m%dT%H%M%SZ"
SHORT_DATE_FORMAT = "%Y%m%d"


def amz_date(moment: datetime) -> str:
    """``YYYYMMDDTHHMMSSZ`` in UTC."""
    return moment.astimezone(UTC).strftime(LONG_DATE_FORMAT)


def date_stamp(moment: datetime) -> str:
    """``YYYYMMDD`` in UTC."""
    return moment.astimezone(UTC).strftime(SHORT_DATE_FORMAT)


def credential_scope(stamp: str, region: str) -> str:
    """``date/region/s3/aws4_request``."""
    return f"{stamp}/{region}/{SERVICE}/{TERMINATOR}"


def _hmac(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def signing_key(secret_key: str, stamp: str, region: str) -> bytes:
    """Derive the request-scoped signing key (never cached or stored)."""
    k_date = _hmac(f"AWS4{secret_key}".encode("utf-8"), stamp)
    k_region = _hmac(k_date, region)
    k_service = _hmac(k_region, SERVICE)
    return _hmac(k_service, TERMINATOR)


def string_to_sign(long_date: str, scope: str, canonical_request: str) -> str:
    digest = hashlib.sha256(canonical_request.encode("utf-8")).hexdigest()
    return "\n".join([ALGORITHM, long_date, scope, digest])


def signature(key: bytes, to_sign: str) -> str:
    return hmac.new(key, to_sign.encode("utf-8"), hashlib.sha256).hexdigest()


def authorization_header(access_key: str, scope: str, signed_headers: str, sig: str) -> str:
    return (
        f"{ALGORITHM} Credential={access_key}/{scope}, "
        f"SignedHeaders={signed_headers}, Signature={sig}"
    )


@dataclass(frozen=True)
class SigningResult:
    """Every intermediate of one signature, kept for diagnostics and tests.

    Attributes:
        canonical_request: Exact canonical request string
        string_to_sign: Exact string-to-sign
        signed_headers: ``;``-joined signed header names
        signature: Hex signature
        authorization: Value of the ``Authorization`` header
    """

    canonical_request: str
    string_to_sign: str
    signed_headers: str
    signature: str
    authorization: str


def sign(
    *,
    method: str,
    path: str,
    query: Mapping[str, str],
    headers: Mapping[str, HeaderValue],
    signed: list[str],
    payload_hash: str,
    moment: datetime,
    credentials: Credentials,
    signing_region: str,
) -> Result[SigningResult, SigningInputError]:
    """
    Sign a request description.

    ``headers`` must already contain ``x-amz-date`` matching ``moment``; the
    service checks that the header and the credential scope agree.
    """
    match build_canonical_request(method, path, query, headers, signed, payload_hash):
        case Failure(error):
            return Failure(error)
        case Success(canonical):
            pass

    scope = credential_scope(date_stamp(moment), signing_region)
    to_sign = string_to_sign(amz_date(moment), scope, canonical)
    key = signing_key(credentials.secret, date_stamp(moment), signing_region)
    sig = signature(key, to_sign)
    signed_list = signed_header_list(signed)
    return Success(
        SigningResult(
            canonical_request=canonical,
            string_to_sign=to_sign,
            signed_headers=signed_list,
            signature=sig,
            authorization=authorization_header(credentials.access_key, scope, signed_list, sig),
        )
    )


@dataclass(frozen=True)
class AuthorizationParts:
    """Parsed ``Authorization`` header."""

    access_key: str
    date: str
    region: str
    service: str
    signed_headers: list[str]
    signature: str


def parse_authorization(value: str) -> AuthorizationParts | None:
    """
    Split an ``AWS4-HMAC-SHA256 Credential=..., SignedHeaders=..., Signature=...``
    header into its parts. Returns None for anything else.
    """
    prefix = f"{ALGORITHM} "
    if not value.startswith(prefix):
        return None
    components: dict[str, str] = {}
    for part in value[len(prefix):].split(","):
        key, sep, item = part.strip().partition("=")
        if sep:
            components[key] = item
    credential = components.get("Credential", "").split("/")
    if len(credential) != 5 or credential[4] != TERMINATOR:
        return None
    access_key, date, region, service, _ = credential
    headers = components.get("SignedHeaders", "")
    sig = components.get("Signature", "")
    if not headers or not sig:
        return None
    return AuthorizationParts(
        access_key=access_key,
        date=date,
        region=region,
        service=service,
        signed_headers=headers.split(";"),
        signature=sig,
    )


def verify_request(
    request: SignedRequest, credentials: Credentials, signing_region: str
) -> Result[None, SigningInputError]:
    """
    Recompute a signed request's signature and compare it to the one it carries.

    This is what the service does on receipt. It detects any change, after
    signing, to a signed header, the body, the timestamp or the
    ``Authorization`` value itself.
    """
    headers = {name.lower(): value for name, value in request.headers.items()}
    parts = parse_authorization(headers.get("authorization", ""))
    if parts is None:
        return Failure(SigningInputError(message="Missing or malformed Authorization header"))
    if parts.access_key != credentials.access_key:
        return Failure(SigningInputError(message="Access key does not match"))
    if parts.region != signing_region or parts.service != SERVICE:
        return Failure(SigningInputError(message="Credential scope does not match"))

    try:
        moment = datetime.strptime(headers.get("x-amz-date", ""), LONG_DATE_FORMAT).replace(
            tzinfo=UTC
        )
    except ValueError:
        return Failure(SigningInputError(message="Missing or malformed x-amz-date header"))
    if date_stamp(moment) != parts.date:
        return Failure(SigningInputError(message="x-amz-date does not match credential scope"))

    match payload_digest(request.body):
        case Failure(error):
            return Failure(error)
        case Success(digest):
            pass
    if headers.get("x-amz-content-sha256") != digest:
        return Failure(SigningInputError(message="Body does not match x-amz-content-sha256"))

    match sign(
        method=request.method,
        path=request.path,
        query=request.query,
        headers=headers,
        signed=parts.signed_headers,
        payload_hash=digest,
        moment=moment,
        credentials=credentials,
        signing_region=signing_region,
    ):
        case Failure(error):
            return Failure(error)
        case Success(expected):
            pass

    if not hmac.compare_digest(expected.signature, parts.signature):
        logger.debug(f"Signature mismatch for {request.method} {request.path}")
        return Failure(SigningInputError(message="Signature does not match"))
    return Success(None)


__all__ = [
    "ALGORITHM",
    "AuthorizationParts",
    "SigningResult",
    "amz_date",
    "authorization_header",
    "credential_scope",
    "date_stamp",
    "parse_authorization",
    "sign",
    "signature",
    "signing_key",
    "string_to_sign",
    "verify_request",
]
