#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .http import HTTPClient
from .interfaces import CredentialsCache, RoleAssumer
from .utils import get_home_dir

ENV_ACCESS_KEY_ID: Final = "AWS_ACCESS_KEY_ID"
ENV_SECRET_ACCESS_KEY: Final = "AWS_SECRET_ACCESS_KEY"  # noqa: S105
ENV_SESSION_TOKEN: Final = "AWS_SESSION_TOKEN"  # noqa: S105
ENV_ACCOUNT_ID: Final = "AWS_ACCOUNT_ID"
ENV_PROFILE: Final = "AWS_PROFILE"
ENV_SHARED_CREDENTIALS_FILE: Final = "AWS_SHARED_CREDENTIALS_FILE"
ENV_CONFIG_FILE: Final = "AWS_CONFIG_FILE"

DEFAULT_PROFILE: Final = "default"
DEFAULT_ASSUME_ROLE_PROFILE: Final = "assumes_role"
DEFAULT_CACHE_KEY: Final = "aws_cached_credentials"


def default_credentials_file() -> Path:
    """The shared credentials file, ``~/.aws/credentials`` unless overridden."""
    if override := os.environ.get(ENV_SHARED_CREDENTIALS_FILE):
        return Path(override).expanduser()
    return get_home_dir() / ".aws" / "credentials"


def default_config_file() -> Path:
    """The shared config file, ``~/.aws/config`` unless overridden."""
    if override := os.environ.get(ENV_CONFIG_FILE):
        return Path(override).expanduser()
    return get_home_dir() / ".aws" / "config"


def default_profile_name() -> str:
    return os.environ.get(ENV_PROFILE) or DEFAULT_PROFILE


@dataclass(kw_only=True)
class DefaultChainConfig:
    """Configuration for :py:func:`~aws_credential_providers.create_default_resolver`.

    Every field is optional.
    """

    http_client: HTTPClient | None = None
    """Client used by the container and instance metadata resolvers.

    An :py:class:`~aws_credential_providers.http.AIOHTTPClient` that opens a session
    per request is created if unset.
    """

    credentials_cache: CredentialsCache | None = None
    """When set, instance metadata credentials are persisted in this store."""

    cache_key: str = DEFAULT_CACHE_KEY
    """The key instance metadata credentials are stored under."""

    role_assumer: RoleAssumer | None = None
    """Used by the assume-role resolvers. Without one they always fail over."""

    credentials_file: Path | None = None
    """Overrides the shared credentials file location."""

    config_file: Path | None = None
    """Overrides the shared config file location."""

    container_timeout: float = 2
    """Seconds allowed per container metadata request."""

    container_retries: int = 3
    """Attempts made against the container metadata endpoint."""

    imds_timeout: float = 1
    """Seconds allowed per instance metadata request."""

    imds_retries: int = 1
    """Attempts made against the instance metadata service."""
