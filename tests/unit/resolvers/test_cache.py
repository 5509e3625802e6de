#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import json
import pathlib
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from aws_credential_providers import (
    AWSCredentialsIdentity,
    CachingCredentialsResolver,
    InMemoryCredentialsCache,
    JSONFileCredentialsCache,
    MissingCredentialsError,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def _clock() -> datetime:
    return NOW


def _credentials(
    access_key_id: str = "akid", expiration: datetime | None = None
) -> AWSCredentialsIdentity:
    return AWSCredentialsIdentity(
        access_key_id=access_key_id,
        secret_access_key="secret",
        session_token="token",
        expiration=expiration,
        source_name="imds",
    )


def _resolver(credentials: AWSCredentialsIdentity) -> AsyncMock:
    resolver = AsyncMock()
    resolver.get_identity.return_value = credentials
    return resolver


def _store(entry: dict | None = None) -> AsyncMock:
    cache = AsyncMock()
    cache.get.return_value = entry
    return cache


async def test_cache_hit_short_circuits():
    cached = _credentials("cached", expiration=NOW + timedelta(minutes=5))
    resolver = _resolver(_credentials("fresh"))
    cache = _store(cached.to_dict())

    caching = CachingCredentialsResolver(resolver, cache, clock=_clock)
    assert await caching.get_identity() == cached
    resolver.get_identity.assert_not_awaited()
    cache.set.assert_not_awaited()
    cache.get.assert_awaited_once_with("aws_cached_credentials")


async def test_cache_hit_without_expiration():
    cached = _credentials("cached")
    resolver = _resolver(_credentials("fresh"))

    caching = CachingCredentialsResolver(resolver, _store(cached.to_dict()))
    assert await caching.get_identity() == cached
    resolver.get_identity.assert_not_awaited()


async def test_cache_miss_writes_back_with_ttl():
    fresh = _credentials("fresh", expiration=NOW + timedelta(seconds=900))
    resolver = _resolver(fresh)
    cache = _store(None)

    caching = CachingCredentialsResolver(resolver, cache, clock=_clock)
    assert await caching.get_identity() is fresh
    resolver.get_identity.assert_awaited_once()
    cache.set.assert_awaited_once_with("aws_cached_credentials", fresh.to_dict(), 900)


async def test_expired_entry_refetched():
    stale = _credentials("stale", expiration=NOW - timedelta(seconds=1))
    fresh = _credentials("fresh", expiration=NOW + timedelta(hours=1))
    resolver = _resolver(fresh)
    cache = _store(stale.to_dict())

    caching = CachingCredentialsResolver(resolver, cache, clock=_clock)
    assert await caching.get_identity() is fresh
    resolver.get_identity.assert_awaited_once()
    cache.set.assert_awaited_once_with("aws_cached_credentials", fresh.to_dict(), 3600)


async def test_constant_credentials_cached_forever():
    fresh = _credentials("fresh")
    cache = _store(None)

    caching = CachingCredentialsResolver(_resolver(fresh), cache, cache_key="custom")
    await caching.get_identity()
    cache.get.assert_awaited_once_with("custom")
    cache.set.assert_awaited_once_with("custom", fresh.to_dict(), 0)


async def test_malformed_entry_is_a_miss():
    fresh = _credentials("fresh")
    resolver = _resolver(fresh)

    caching = CachingCredentialsResolver(resolver, _store({"garbage": True}))
    assert await caching.get_identity() is fresh
    resolver.get_identity.assert_awaited_once()


async def test_read_failure_is_a_miss():
    fresh = _credentials("fresh")
    resolver = _resolver(fresh)
    cache = _store()
    cache.get.side_effect = ConnectionError("store down")

    caching = CachingCredentialsResolver(resolver, cache)
    assert await caching.get_identity() is fresh


async def test_write_failure_does_not_fail_resolution():
    fresh = _credentials("fresh")
    cache = _store(None)
    cache.set.side_effect = ConnectionError("store down")

    caching = CachingCredentialsResolver(_resolver(fresh), cache)
    assert await caching.get_identity() is fresh


async def test_resolver_failure_propagates_without_write():
    resolver = AsyncMock()
    resolver.get_identity.side_effect = MissingCredentialsError("nothing")
    cache = _store(None)

    caching = CachingCredentialsResolver(resolver, cache)
    with pytest.raises(MissingCredentialsError):
        await caching.get_identity()
    cache.set.assert_not_awaited()


async def test_in_memory_cache_honors_ttl():
    now = NOW
    cache = InMemoryCredentialsCache(clock=lambda: now)

    await cache.set("forever", {"a": 1}, 0)
    await cache.set("short", {"b": 2}, 10)
    assert await cache.get("forever") == {"a": 1}
    assert await cache.get("short") == {"b": 2}
    assert await cache.get("missing") is None

    now = NOW + timedelta(seconds=10)
    assert await cache.get("short") is None
    assert await cache.get("forever") == {"a": 1}


async def test_json_file_cache(tmp_path: pathlib.Path):
    now = NOW
    cache = JSONFileCredentialsCache(tmp_path / "cache", clock=lambda: now)
    entry = _credentials(expiration=NOW + timedelta(hours=1)).to_dict()

    assert await cache.get("key") is None
    await cache.set("key", entry, 60)
    assert await cache.get("key") == entry

    files = list((tmp_path / "cache").iterdir())
    assert len(files) == 1
    assert json.loads(files[0].read_text())["value"] == entry

    now = NOW + timedelta(seconds=60)
    assert await cache.get("key") is None


async def test_json_file_cache_ignores_corrupt_files(tmp_path: pathlib.Path):
    cache = JSONFileCredentialsCache(tmp_path / "cache")
    await cache.set("key", {"a": 1}, 0)
    [path] = (tmp_path / "cache").glob("*.json")
    path.write_text("{not json")

    assert await cache.get("key") is None


async def test_json_file_cache_default_location(clean_environment: pathlib.Path):
    cache = JSONFileCredentialsCache()
    await cache.set("key", {"a": 1}, 0)
    assert await cache.get("key") == {"a": 1}
    assert (clean_environment / ".aws" / "credential-providers" / "cache").is_dir()


async def test_caching_resolver_with_in_memory_store():
    expiration = datetime.now(UTC) + timedelta(hours=1)
    resolver = _resolver(_credentials(expiration=expiration))
    cache = InMemoryCredentialsCache()

    first = await CachingCredentialsResolver(resolver, cache).get_identity()
    # A separate decorator instance sharing the store skips the resolver.
    second = await CachingCredentialsResolver(resolver, cache).get_identity()

    assert first == second
    resolver.get_identity.assert_awaited_once()
