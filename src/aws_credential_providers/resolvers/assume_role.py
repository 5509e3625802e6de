#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from ..config import DEFAULT_ASSUME_ROLE_PROFILE, default_credentials_file
from ..exceptions import (
    CredentialsError,
    MalformedDataError,
    MissingCredentialsError,
    ProfileNotFoundError,
    SourceUnavailableError,
)
from ..identity import AWSCredentialsIdentity
from ..interfaces import CredentialsResolver, RoleAssumer
from .profile import credentials_from_profile, load_profile_file

logger: Final = logging.getLogger(__name__)

_DEFAULT_DURATION_SECONDS: Final = 3600
_PROFILE_PREFIX: Final = "profile "


@dataclass(frozen=True, kw_only=True)
class AssumeRoleProfile:
    """The role assumption settings of a single profile section."""

    role_arn: str
    source_profile: str
    role_session_name: str
    duration_seconds: int = _DEFAULT_DURATION_SECONDS
    external_id: str | None = None

    @classmethod
    def from_profile_data(
        cls, data: dict[str, str], *, profile: str, filename: str
    ) -> "AssumeRoleProfile":
        role_arn = data.get("role_arn")
        if not role_arn:
            raise MissingCredentialsError(
                f"No role_arn present in INI profile '{profile}' ({filename})"
            )
        source_profile = data.get("source_profile")
        if not source_profile:
            raise MissingCredentialsError(
                f"No source_profile present in INI profile '{profile}' ({filename})"
            )

        duration = data.get("duration_seconds")
        try:
            duration_seconds = int(duration) if duration else _DEFAULT_DURATION_SECONDS
        except ValueError as e:
            raise MalformedDataError(
                f"Invalid duration_seconds {duration!r} in INI profile '{profile}' "
                f"({filename})"
            ) from e

        return cls(
            role_arn=role_arn,
            source_profile=source_profile,
            role_session_name=data.get("role_session_name")
            or f"aws-credential-providers-{int(time.time())}",
            duration_seconds=duration_seconds,
            external_id=data.get("external_id") or None,
        )


class AssumeRoleCredentialsResolver(CredentialsResolver):
    """Resolves short-lived credentials by assuming the role named in a profile.

    The profile must name a ``role_arn`` and a ``source_profile``. The source
    profile's static credentials are exchanged for role credentials through the
    configured :py:class:`~aws_credential_providers.interfaces.RoleAssumer`.
    """

    SOURCE_NAME: Final = "assume-role"

    def __init__(
        self,
        *,
        profile: str | None = None,
        filename: str | os.PathLike[str] | None = None,
        role_assumer: RoleAssumer | None = None,
    ) -> None:
        """
        :param profile: The profile designating role assumption. Defaults to
            ``assumes_role``.
        :param filename: The file to read. Defaults to ``~/.aws/credentials``.
        :param role_assumer: Performs the actual role assumption.
        """
        self._profile = profile or DEFAULT_ASSUME_ROLE_PROFILE
        self._filename = Path(filename) if filename else default_credentials_file()
        self._role_assumer = role_assumer

    async def get_identity(self) -> AWSCredentialsIdentity:
        filename = str(self._filename)
        profiles = await asyncio.to_thread(load_profile_file, filename)
        if self._profile not in profiles:
            raise ProfileNotFoundError(self._profile, filename)

        settings = AssumeRoleProfile.from_profile_data(
            profiles[self._profile], profile=self._profile, filename=filename
        )
        source_credentials = self._resolve_source_credentials(
            profiles, settings.source_profile, filename
        )

        if self._role_assumer is None:
            raise SourceUnavailableError(
                f"Profile '{self._profile}' ({filename}) requires role assumption, "
                "but no role assumer is configured."
            )

        logger.debug(
            "Assuming role %s using source profile '%s'.",
            settings.role_arn,
            settings.source_profile,
        )
        try:
            credentials = await self._role_assumer.assume_role(
                source_credentials=source_credentials,
                role_arn=settings.role_arn,
                role_session_name=settings.role_session_name,
                duration_seconds=settings.duration_seconds,
                external_id=settings.external_id,
            )
        except CredentialsError:
            raise
        except Exception as e:
            raise SourceUnavailableError(
                f"Failed to assume role {settings.role_arn}: {e}"
            ) from e

        if credentials.expiration is None:
            raise MalformedDataError(
                f"Credentials for assumed role {settings.role_arn} have no expiration"
            )
        return credentials

    def _resolve_source_credentials(
        self, profiles: dict[str, dict[str, str]], source_profile: str, filename: str
    ) -> AWSCredentialsIdentity:
        # Config files prefix section names with "profile ", credentials files don't.
        for name in (source_profile, f"{_PROFILE_PREFIX}{source_profile}"):
            if name in profiles:
                return credentials_from_profile(
                    profiles[name],
                    profile=name,
                    filename=filename,
                    source_name=self.SOURCE_NAME,
                )
        raise ProfileNotFoundError(source_profile, filename)

    def __repr__(self) -> str:
        return (
            f"AssumeRoleCredentialsResolver(profile={self._profile!r}, "
            f"filename={str(self._filename)!r})"
        )
