#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import configparser
import logging
import os
from pathlib import Path
from typing import Final, TypeAlias

from ..config import default_credentials_file, default_profile_name
from ..exceptions import (
    MalformedDataError,
    MissingCredentialsError,
    ProfileFileNotFoundError,
    ProfileNotFoundError,
)
from ..identity import AWSCredentialsIdentity
from ..interfaces import CredentialsResolver

logger: Final = logging.getLogger(__name__)

ProfileData: TypeAlias = dict[str, dict[str, str]]

_SESSION_TOKEN_KEYS: Final = ("aws_session_token", "aws_security_token")


def load_profile_file(filename: str | os.PathLike[str]) -> ProfileData:
    """Parse an ini-style credentials or config file into a mapping of profiles.

    :raises ProfileFileNotFoundError: If the file doesn't exist or can't be read.
    :raises MalformedDataError: If the file isn't valid ini.
    """
    path = os.fspath(filename)
    if not os.path.isfile(path) or not os.access(path, os.R_OK):
        raise ProfileFileNotFoundError(path)

    parser = configparser.ConfigParser(interpolation=None)
    try:
        with open(path, encoding="utf-8") as f:
            parser.read_file(f, source=path)
    except OSError as e:
        raise ProfileFileNotFoundError(path) from e
    except (configparser.Error, UnicodeDecodeError) as e:
        raise MalformedDataError(f"Unable to parse {path}: {e}") from e

    return {section: dict(parser.items(section)) for section in parser.sections()}


async def read_profile(
    profile: str, filename: str | os.PathLike[str]
) -> dict[str, str]:
    """Load a single profile section, reading the file in a worker thread.

    :raises ProfileFileNotFoundError: If the file doesn't exist or can't be read.
    :raises ProfileNotFoundError: If the file has no section named ``profile``.
    """
    profiles = await asyncio.to_thread(load_profile_file, filename)
    try:
        return profiles[profile]
    except KeyError:
        raise ProfileNotFoundError(profile, os.fspath(filename)) from None


def credentials_from_profile(
    data: dict[str, str], *, profile: str, filename: str, source_name: str
) -> AWSCredentialsIdentity:
    access_key_id = data.get("aws_access_key_id")
    secret_access_key = data.get("aws_secret_access_key")
    if not access_key_id or not secret_access_key:
        raise MissingCredentialsError(
            f"No credentials present in INI profile '{profile}' ({filename})"
        )

    session_token = None
    for key in _SESSION_TOKEN_KEYS:
        if session_token := data.get(key):
            break

    return AWSCredentialsIdentity(
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        session_token=session_token or None,
        account_id=data.get("aws_account_id") or None,
        source_name=source_name,
    )


class ProfileCredentialsResolver(CredentialsResolver):
    """Resolves AWS Credentials from a profile in a shared credentials file.

    The file is read on every call. Wrap this resolver in a
    :py:class:`~aws_credential_providers.resolvers.memoize.MemoizingCredentialsResolver`
    to avoid re-reading it.
    """

    SOURCE_NAME: Final = "ini"

    def __init__(
        self,
        *,
        profile: str | None = None,
        filename: str | os.PathLike[str] | None = None,
    ) -> None:
        """
        :param profile: The profile section to read. Defaults to ``$AWS_PROFILE``,
            falling back to ``default``.
        :param filename: The file to read. Defaults to ``~/.aws/credentials``.
        """
        self._profile = profile or default_profile_name()
        self._filename = Path(filename) if filename else default_credentials_file()

    @property
    def profile(self) -> str:
        return self._profile

    @property
    def filename(self) -> Path:
        return self._filename

    async def get_identity(self) -> AWSCredentialsIdentity:
        filename = str(self._filename)
        data = await read_profile(self._profile, filename)
        credentials = credentials_from_profile(
            data,
            profile=self._profile,
            filename=filename,
            source_name=self.SOURCE_NAME,
        )
        logger.debug(
            "Found credentials in profile '%s' of %s.", self._profile, filename
        )
        return credentials

    def __repr__(self) -> str:
        return (
            f"ProfileCredentialsResolver(profile={self._profile!r}, "
            f"filename={str(self._filename)!r})"
        )
