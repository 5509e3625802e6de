#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import os
from datetime import UTC, datetime
from pathlib import Path

from .exceptions import MalformedDataError

RFC3339 = "%Y-%m-%dT%H:%M:%SZ"
# Same as RFC3339, but with microsecond precision.
RFC3339_MICRO = "%Y-%m-%dT%H:%M:%S.%fZ"


def ensure_utc(value: datetime) -> datetime:
    """Ensures that the given datetime is a UTC timezone-aware datetime.

    If the datetime isn't timezone-aware, its timezone is set to UTC. If it is aware,
    it's replaced with the equivalent datetime under UTC.

    :param value: A datetime object that may or may not be timezone-aware.
    :returns: A UTC timezone-aware equivalent datetime.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    else:
        return value.astimezone(UTC)


def parse_expiration(value: object) -> datetime | None:
    """Parse an ``Expiration`` value from a credentials document.

    Accepts ISO 8601 strings (with or without a trailing ``Z``) and numeric epoch
    seconds. ``None`` is passed through.

    :raises MalformedDataError: If the value can't be interpreted as a timestamp.
    """
    match value:
        case None:
            return None
        case bool():
            raise MalformedDataError(f"Invalid credentials expiration: {value!r}")
        case int() | float():
            try:
                return datetime.fromtimestamp(value, tz=UTC)
            except (OverflowError, OSError, ValueError) as e:
                raise MalformedDataError(
                    f"Invalid credentials expiration: {value!r}"
                ) from e
        case str():
            try:
                return ensure_utc(datetime.fromisoformat(value))
            except ValueError as e:
                raise MalformedDataError(
                    f"Invalid credentials expiration: {value!r}"
                ) from e
        case _:
            raise MalformedDataError(f"Invalid credentials expiration: {value!r}")


def serialize_expiration(value: datetime) -> str:
    """Serialize an expiration as an RFC3339 UTC timestamp.

    Microseconds are kept when present so the value parses back unchanged.
    """
    value = ensure_utc(value)
    if value.microsecond != 0:
        return value.strftime(RFC3339_MICRO)
    return value.strftime(RFC3339)


def get_home_dir() -> Path:
    """Resolve the current user's home directory.

    ``HOME`` wins; on Windows ``HOMEDRIVE`` + ``HOMEPATH`` are used when ``HOME``
    isn't set.
    """
    if home := os.environ.get("HOME"):
        return Path(home)
    drive = os.environ.get("HOMEDRIVE")
    path = os.environ.get("HOMEPATH")
    if drive and path:
        return Path(f"{drive}{path}")
    return Path.home()
