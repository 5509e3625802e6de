#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from aws_credential_providers.http import URI, AIOHTTPClient, HTTPRequest
from aws_credential_providers.testing import MockHTTPClient, MockHTTPClientError


@pytest.mark.parametrize(
    "uri, expected",
    [
        (URI(host="169.254.169.254"), "http://169.254.169.254"),
        (
            URI(host="169.254.169.254", port=80, path="/latest/api/token"),
            "http://169.254.169.254:80/latest/api/token",
        ),
        (URI(host="fd00:ec2::254", port=80, path="/"), "http://[fd00:ec2::254]:80/"),
        (URI(scheme="https", host="localhost", path="/creds"), "https://localhost/creds"),
    ],
)
def test_uri_build(uri: URI, expected: str) -> None:
    assert uri.build() == expected


def test_uri_with_path() -> None:
    uri = URI(host="localhost", port=8080)
    assert uri.with_path("/a") == URI(host="localhost", port=8080, path="/a")


async def test_mock_client_returns_queued_responses() -> None:
    client = MockHTTPClient()
    client.add_response(200, body=b"first")
    client.add_error(TimeoutError())

    request = HTTPRequest(destination=URI(host="localhost"))
    response = await client.send(request)
    assert await response.consume_body_async() == b"first"

    with pytest.raises(TimeoutError):
        await client.send(request)

    with pytest.raises(MockHTTPClientError):
        await client.send(request)
    assert client.call_count == 3


def _mock_session() -> MagicMock:
    response = MagicMock(status=200, reason="OK", headers={"Content-Type": "text"})
    response.read = AsyncMock(return_value=b"ok")
    session = MagicMock()
    session.request.return_value.__aenter__.return_value = response
    return session


async def test_aiohttp_client_uses_provided_session():
    session = _mock_session()
    client = AIOHTTPClient(_session=session)

    response = await client.send(HTTPRequest(destination=URI(host="localhost")))

    assert response.status == 200
    assert response.body == b"ok"
    assert session.request.call_args.kwargs["url"] == "http://localhost"
    session.close.assert_not_called()


async def test_aiohttp_client_closes_its_own_session():
    session = _mock_session()
    with patch("aiohttp.ClientSession") as session_class:
        session_class.return_value.__aenter__.return_value = session
        response = await AIOHTTPClient().send(
            HTTPRequest(destination=URI(host="localhost"))
        )

    assert response.status == 200
    session_class.return_value.__aexit__.assert_awaited_once()
