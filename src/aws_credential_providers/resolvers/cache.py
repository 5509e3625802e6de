#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import hashlib
import json
import logging
import os
import tempfile
from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, Final

from ..config import DEFAULT_CACHE_KEY
from ..exceptions import MalformedDataError
from ..identity import AWSCredentialsIdentity
from ..interfaces import CredentialsCache, CredentialsResolver
from ..utils import get_home_dir

logger: Final = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class CachingCredentialsResolver(CredentialsResolver):
    """Wraps a resolver and saves its credentials in a :py:class:`CredentialsCache`.

    Calls are forwarded to the wrapped resolver only when no unexpired credentials
    are found in the cache. Fresh credentials are written back with a TTL matching
    their remaining lifetime, or ``0`` if they never expire.

    Store failures never fail resolution: a failed read is a cache miss and a failed
    write is logged and ignored.
    """

    def __init__(
        self,
        resolver: CredentialsResolver,
        cache: CredentialsCache,
        *,
        cache_key: str | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """
        :param resolver: The resolver to wrap.
        :param cache: The store credentials are persisted in.
        :param cache_key: The key to store credentials under.
        :param clock: Returns the current UTC time.
        """
        self._resolver = resolver
        self._cache = cache
        self._cache_key = cache_key or DEFAULT_CACHE_KEY
        self._clock = clock

    async def get_identity(self) -> AWSCredentialsIdentity:
        if (cached := await self._load()) is not None:
            return cached

        credentials = await self._resolver.get_identity()
        await self._store(credentials)
        return credentials

    async def _load(self) -> AWSCredentialsIdentity | None:
        try:
            found = await self._cache.get(self._cache_key)
        except Exception as e:
            logger.warning(
                "Failed to read cached credentials for key %s: %s", self._cache_key, e
            )
            return None
        if found is None:
            logger.debug("No cached credentials for key %s.", self._cache_key)
            return None

        try:
            credentials = AWSCredentialsIdentity.from_dict(found)
        except MalformedDataError as e:
            logger.debug("Ignoring malformed cache entry %s: %s", self._cache_key, e)
            return None
        if credentials.is_expired_at(self._clock()):
            logger.debug("Cached credentials for key %s expired.", self._cache_key)
            return None

        logger.debug("Using cached credentials for key %s.", self._cache_key)
        return credentials

    async def _store(self, credentials: AWSCredentialsIdentity) -> None:
        if credentials.expiration is None:
            ttl = 0
        else:
            # A TTL of 0 means "forever", so credentials that are already due must
            # still get a positive TTL.
            remaining = (credentials.expiration - self._clock()).total_seconds()
            ttl = max(int(remaining), 1)
        try:
            await self._cache.set(self._cache_key, credentials.to_dict(), ttl)
        except Exception as e:
            logger.warning(
                "Failed to cache credentials for key %s: %s", self._cache_key, e
            )


class InMemoryCredentialsCache(CredentialsCache):
    """A process-local :py:class:`CredentialsCache` that honors TTLs."""

    def __init__(self, *, clock: Callable[[], datetime] = _utc_now) -> None:
        self._entries: dict[str, tuple[Mapping[str, Any], datetime | None]] = {}
        self._clock = clock

    async def get(self, key: str) -> Mapping[str, Any] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: Mapping[str, Any], ttl: int) -> None:
        expires_at = None if ttl == 0 else self._clock() + timedelta(seconds=ttl)
        self._entries[key] = (dict(value), expires_at)


class JSONFileCredentialsCache(CredentialsCache):
    """A :py:class:`CredentialsCache` storing one JSON file per key.

    Files live in ``~/.aws/credential-providers/cache`` by default. Writes go to a
    temporary file which then replaces the target, so readers never observe a
    partially written entry.
    """

    def __init__(
        self,
        working_dir: str | os.PathLike[str] | None = None,
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._working_dir = (
            Path(working_dir)
            if working_dir is not None
            else get_home_dir() / ".aws" / "credential-providers" / "cache"
        )
        self._clock = clock

    def _path_for(self, key: str) -> Path:
        digest = hashlib.sha1(key.encode("utf-8"), usedforsecurity=False).hexdigest()
        return self._working_dir / f"{digest}.json"

    async def get(self, key: str) -> Mapping[str, Any] | None:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: Mapping[str, Any], ttl: int) -> None:
        expires_at = None if ttl == 0 else self._clock().timestamp() + ttl
        await asyncio.to_thread(
            self._write, key, {"expires_at": expires_at, "value": dict(value)}
        )

    def _read(self, key: str) -> Mapping[str, Any] | None:
        path = self._path_for(key)
        try:
            with open(path, encoding="utf-8") as f:
                entry = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.debug("Unable to read credentials cache file %s: %s", path, e)
            return None

        if not isinstance(entry, dict) or not isinstance(entry.get("value"), dict):
            return None
        expires_at = entry.get("expires_at")
        if expires_at is not None and self._clock().timestamp() >= expires_at:
            return None
        return entry["value"]

    def _write(self, key: str, entry: dict[str, Any]) -> None:
        self._working_dir.mkdir(parents=True, exist_ok=True)
        temp_fd, temp_path = tempfile.mkstemp(dir=self._working_dir, suffix=".tmp")
        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                json.dump(entry, f)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(temp_path, 0o600)
            os.replace(temp_path, self._path_for(key))
        except BaseException:
            Path(temp_path).unlink(missing_ok=True)
            raise
