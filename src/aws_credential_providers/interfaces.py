#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from .identity import AWSCredentialsIdentity


@runtime_checkable
class CredentialsResolver(Protocol):
    """Used to load AWS credentials from a given source.

    Resolvers take no input. They either return credentials or raise a
    :py:class:`~aws_credential_providers.exceptions.CredentialsError`.
    """

    async def get_identity(self) -> AWSCredentialsIdentity:
        """Load credentials from this resolver."""
        ...


class CredentialsCache(Protocol):
    """A key/value store that can persist credentials outside of the process."""

    async def get(self, key: str) -> Mapping[str, Any] | None:
        """Fetch a stored entry, returning ``None`` if it is absent or stale."""
        ...

    async def set(self, key: str, value: Mapping[str, Any], ttl: int) -> None:
        """Store an entry.

        :param ttl: Seconds until the entry should be discarded. ``0`` means the
            entry never expires.
        """
        ...


class RoleAssumer(Protocol):
    """Exchanges source credentials for short-lived role credentials.

    Usually backed by an STS ``AssumeRole`` call.
    """

    async def assume_role(
        self,
        *,
        source_credentials: AWSCredentialsIdentity,
        role_arn: str,
        role_session_name: str,
        duration_seconds: int,
        external_id: str | None = None,
    ) -> AWSCredentialsIdentity: ...
