#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from unittest.mock import AsyncMock

import pytest
from aws_credential_providers import (
    AWSCredentialsIdentity,
    ChainedCredentialsResolver,
    ChainExhaustedError,
    EnvironmentCredentialsResolver,
    MalformedDataError,
    MissingCredentialsError,
    SourceUnavailableError,
    StaticCredentialsResolver,
)


def _credentials(access_key_id: str) -> AWSCredentialsIdentity:
    return AWSCredentialsIdentity(
        access_key_id=access_key_id, secret_access_key="secret"
    )


def _succeeding(access_key_id: str) -> AsyncMock:
    resolver = AsyncMock()
    resolver.get_identity.return_value = _credentials(access_key_id)
    return resolver


def _failing(error: Exception) -> AsyncMock:
    resolver = AsyncMock()
    resolver.get_identity.side_effect = error
    return resolver


def test_empty_chain_rejected_at_construction():
    with pytest.raises(ValueError):
        ChainedCredentialsResolver([])


async def test_first_success_short_circuits():
    resolvers = [
        _failing(MissingCredentialsError("first")),
        _succeeding("second"),
        _succeeding("third"),
        _failing(SourceUnavailableError("fourth")),
    ]
    chain = ChainedCredentialsResolver(resolvers)

    credentials = await chain.get_identity()

    assert credentials == _credentials("second")
    resolvers[0].get_identity.assert_awaited_once()
    resolvers[1].get_identity.assert_awaited_once()
    resolvers[2].get_identity.assert_not_awaited()
    resolvers[3].get_identity.assert_not_awaited()


async def test_resolvers_invoked_in_order():
    order: list[str] = []

    def record(name: str, result: AWSCredentialsIdentity | Exception) -> AsyncMock:
        resolver = AsyncMock()

        async def get_identity() -> AWSCredentialsIdentity:
            order.append(name)
            if isinstance(result, Exception):
                raise result
            return result

        resolver.get_identity.side_effect = get_identity
        return resolver

    chain = ChainedCredentialsResolver(
        [
            record("a", MissingCredentialsError("a")),
            record("b", MalformedDataError("b")),
            record("c", _credentials("c")),
        ]
    )
    assert (await chain.get_identity()).access_key_id == "c"
    assert order == ["a", "b", "c"]


async def test_exhausted_chain_aggregates_causes():
    errors = [
        MissingCredentialsError("no env vars"),
        MalformedDataError("bad file"),
        SourceUnavailableError("metadata timed out"),
    ]
    chain = ChainedCredentialsResolver([_failing(e) for e in errors])

    with pytest.raises(ChainExhaustedError) as e:
        await chain.get_identity()

    assert e.value.errors == errors
    assert len(e.value.causes) == 3
    message = str(e.value)
    assert "no env vars" in message
    assert "bad file" in message
    assert "metadata timed out" in message


async def test_non_credentials_errors_propagate():
    last = _succeeding("unused")
    chain = ChainedCredentialsResolver([_failing(RuntimeError("bug")), last])

    with pytest.raises(RuntimeError):
        await chain.get_identity()
    last.get_identity.assert_not_awaited()


async def test_chain_names_resolvers_in_causes():
    chain = ChainedCredentialsResolver([EnvironmentCredentialsResolver()])

    with pytest.raises(ChainExhaustedError) as e:
        await chain.get_identity()
    name, error = e.value.causes[0]
    assert name == "EnvironmentCredentialsResolver"
    assert isinstance(error, MissingCredentialsError)


async def test_chain_with_static_credentials():
    static = StaticCredentialsResolver(credentials=_credentials("static"))
    chain = ChainedCredentialsResolver(
        (_failing(MissingCredentialsError("nope")), static)
    )
    assert (await chain.get_identity()).access_key_id == "static"
