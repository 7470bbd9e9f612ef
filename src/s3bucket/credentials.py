"""
AWS access credentials and the loader that resolves them once.

Resolution order: explicit arguments, then ``AWS_ACCESS_KEY_ID`` /
``AWS_SECRET_ACCESS_KEY`` / ``AWS_SESSION_TOKEN`` in the supplied environment,
then the ``[profile]`` section of ``~/.aws/credentials``. The resolved
``Credentials`` value is injected into a ``Bucket``; nothing in the request
pipeline reads the environment or the profile file afterwards.
"""

from __future__ import annotations

import configparser
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from .result import Failure, Result, Success
from .validation import validate_model


logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"


class Credentials(BaseModel):
    """Access key, secret key and optional session token.

    The secret and the token are ``SecretStr`` so that ``repr()``, ``str()``
    and log records never contain them.
    """

    access_key: str = Field(..., min_length=1)
    secret_key: SecretStr
    token: SecretStr | None = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def secret(self) -> str:
        return self.secret_key.get_secret_value()

    @property
    def session_token(self) -> str | None:
        return None if self.token is None else self.token.get_secret_value()


@dataclass(frozen=True)
class CredentialsError:
    """No usable credentials were found.

    Attributes:
        message: What was tried and why it failed
        source: Which source failed last ("arguments", "environment", "profile")
    """

    message: str
    source: str = ""
    kind: Literal["CredentialsError"] = "CredentialsError"


def make_credentials(
    access_key: str, secret_key: str, token: str | None = None
) -> Result[Credentials, CredentialsError]:
    """Validate explicit credentials."""
    match validate_model(Credentials, access_key=access_key, secret_key=secret_key, token=token):
        case Success(credentials):
            return Success(credentials)
        case Failure(error):
            return Failure(CredentialsError(message=str(error), source="arguments"))


def from_env(environ: Mapping[str, str]) -> Result[Credentials, CredentialsError]:
    """Read credentials from ``AWS_*`` variables of the given environment."""
    access_key = environ.get("AWS_ACCESS_KEY_ID")
    secret_key = environ.get("AWS_SECRET_ACCESS_KEY")
    if not access_key or not secret_key:
        return Failure(
            CredentialsError(
                message="AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY are not both set",
                source="environment",
            )
        )
    return make_credentials(access_key, secret_key, environ.get("AWS_SESSION_TOKEN") or None)


def default_credentials_path(environ: Mapping[str, str]) -> Path:
    """``AWS_SHARED_CREDENTIALS_FILE`` or ``~/.aws/credentials``."""
    override = environ.get("AWS_SHARED_CREDENTIALS_FILE")
    return Path(override) if override else Path.home() / ".aws" / "credentials"


def from_profile(
    path: Path, profile: str = DEFAULT_PROFILE
) -> Result[Credentials, CredentialsError]:
    """
    Read credentials from an INI-style AWS credentials file.

    Args:
        path: Credentials file location
        profile: Section name (default "default")

    Returns:
        Success(Credentials) or Failure(CredentialsError) naming the missing
        file, section or key
    """
    parser = configparser.ConfigParser(interpolation=None)
    try:
        read = parser.read(path, encoding="utf-8")
    except configparser.Error as exc:
        return Failure(
            CredentialsError(message=f"Cannot parse {path}: {exc}", source="profile")
        )
    if not read:
        return Failure(
            CredentialsError(message=f"Credentials file not found: {path}", source="profile")
        )
    if not parser.has_section(profile):
        return Failure(
            CredentialsError(message=f"Section [{profile}] not found in {path}", source="profile")
        )
    section = parser[profile]
    access_key = section.get("aws_access_key_id")
    secret_key = section.get("aws_secret_access_key")
    if not access_key:
        return Failure(
            CredentialsError(message=f"Missing aws_access_key_id in {path}", source="profile")
        )
    if not secret_key:
        return Failure(
            CredentialsError(message=f"Missing aws_secret_access_key in {path}", source="profile")
        )
    return make_credentials(access_key, secret_key, section.get("aws_session_token") or None)


def load_credentials(
    access_key: str | None = None,
    secret_key: str | None = None,
    token: str | None = None,
    profile: str | None = None,
    *,
    environ: Mapping[str, str],
    credentials_path: Path | None = None,
) -> Result[Credentials, CredentialsError]:
    """
    Resolve credentials: arguments, then environment, then profile file.

    Explicit arguments win only when both keys are given. The environment is
    passed in rather than read from ``os.environ`` so the caller decides when
    (once) it is consulted.
    """
    if access_key and secret_key:
        return make_credentials(access_key, secret_key, token)

    match from_env(environ):
        case Success(credentials):
            logger.debug("Loaded credentials from environment")
            return Success(credentials)
        case Failure(env_error):
            pass

    path = credentials_path or default_credentials_path(environ)
    section = profile or environ.get("AWS_PROFILE") or DEFAULT_PROFILE
    match from_profile(path, section):
        case Success(credentials):
            logger.debug(f"Loaded credentials from profile [{section}]")
            return Success(credentials)
        case Failure(profile_error):
            return Failure(
                CredentialsError(
                    message=(
                        "No credentials provided as arguments, in the environment or in the "
                        f"profile file: {env_error.message}; {profile_error.message}"
                    ),
                    source="profile",
                )
            )


__all__ = [
    "Credentials",
    "CredentialsError",
    "DEFAULT_PROFILE",
    "from_env",
    "from_profile",
    "load_credentials",
    "make_credentials",
]
