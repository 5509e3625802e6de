#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import ipaddress
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Final
from urllib.parse import urlparse

from ..exceptions import (
    CredentialsError,
    MalformedDataError,
    MissingCredentialsError,
    SourceUnavailableError,
)
from ..http import HTTPClient, HTTPRequest, HTTPRequestConfiguration, URI
from ..identity import AWSCredentialsIdentity
from ..interfaces import CredentialsResolver
from ..utils import parse_expiration

logger: Final = logging.getLogger(__name__)

_CONTAINER_METADATA_IP = "169.254.170.2"
_CONTAINER_METADATA_ALLOWED_HOSTS = {
    _CONTAINER_METADATA_IP,
    "169.254.170.23",
    "fd00:ec2::23",
    "localhost",
}
_DEFAULT_TIMEOUT = 2
_DEFAULT_RETRIES = 3
_SLEEP_SECONDS = 0.1


@dataclass
class ContainerCredentialsConfig:
    """Configuration for container credential retrieval operations."""

    timeout: float = _DEFAULT_TIMEOUT
    retries: int = _DEFAULT_RETRIES


class ContainerMetadataClient:
    """Client for remote credential retrieval in Container environments like ECS/EKS."""

    def __init__(self, http_client: HTTPClient, config: ContainerCredentialsConfig):
        self._http_client = http_client
        self._config = config

    def _validate_allowed_url(self, uri: URI) -> None:
        if self._is_loopback(uri.host):
            return

        if not self._is_allowed_container_metadata_host(uri.host):
            raise MissingCredentialsError(
                f"Unsupported host '{uri.host}'. "
                f"Can only retrieve metadata from a loopback address or "
                f"one of: {', '.join(sorted(_CONTAINER_METADATA_ALLOWED_HOSTS))}"
            )

    async def get_credentials(self, uri: URI, fields: dict[str, str]) -> dict[str, Any]:
        self._validate_allowed_url(uri)
        fields = {**fields, "Accept": "application/json"}
        request = HTTPRequest(method="GET", destination=uri, fields=fields)
        request_config = HTTPRequestConfiguration(read_timeout=self._config.timeout)

        attempts = 0
        last_exc: Exception | None = None
        while attempts < self._config.retries:
            attempts += 1
            try:
                async with asyncio.timeout(self._config.timeout):
                    response = await self._http_client.send(
                        request, request_config=request_config
                    )
                    body = await response.consume_body_async()
            except Exception as e:
                logger.debug(
                    "Container metadata request attempt %s failed: %r", attempts, e
                )
                last_exc = e
                if attempts < self._config.retries:
                    await asyncio.sleep(_SLEEP_SECONDS)
                continue

            if response.status != 200:
                last_exc = SourceUnavailableError(
                    f"Container metadata service returned {response.status}: "
                    f"{body.decode('utf-8', errors='replace')}"
                )
                if attempts < self._config.retries:
                    await asyncio.sleep(_SLEEP_SECONDS)
                continue

            try:
                document = json.loads(body.decode("utf-8"))
            except (UnicodeDecodeError, ValueError) as e:
                raise MalformedDataError(
                    "Unable to parse JSON from container metadata: "
                    f"{body.decode('utf-8', errors='replace')}"
                ) from e
            if not isinstance(document, dict):
                raise MalformedDataError(
                    "Container metadata response is not a JSON object"
                )
            return document

        raise SourceUnavailableError(
            f"Failed to retrieve container metadata after {self._config.retries} "
            "attempt(s)"
        ) from last_exc

    def _is_loopback(self, hostname: str) -> bool:
        try:
            return ipaddress.ip_address(hostname.strip("[]")).is_loopback
        except ValueError:
            return False

    def _is_allowed_container_metadata_host(self, hostname: str) -> bool:
        return hostname.strip("[]") in _CONTAINER_METADATA_ALLOWED_HOSTS


class ContainerCredentialsResolver(CredentialsResolver):
    """Resolves AWS Credentials from container credential sources."""

    ENV_VAR: Final = "AWS_CONTAINER_CREDENTIALS_RELATIVE_URI"
    ENV_VAR_FULL: Final = "AWS_CONTAINER_CREDENTIALS_FULL_URI"
    ENV_VAR_AUTH_TOKEN: Final = "AWS_CONTAINER_AUTHORIZATION_TOKEN"  # noqa: S105
    ENV_VAR_AUTH_TOKEN_FILE: Final = (
        "AWS_CONTAINER_AUTHORIZATION_TOKEN_FILE"  # noqa: S105
    )
    SOURCE_NAME: Final = "container"

    def __init__(
        self,
        http_client: HTTPClient,
        config: ContainerCredentialsConfig | None = None,
    ):
        self._config = config or ContainerCredentialsConfig()
        self._client = ContainerMetadataClient(http_client, self._config)

    def _resolve_uri_from_env(self) -> URI:
        if relative := os.environ.get(self.ENV_VAR):
            return URI(scheme="http", host=_CONTAINER_METADATA_IP, path=relative)
        elif full := os.environ.get(self.ENV_VAR_FULL):
            parsed = urlparse(full)
            return URI(
                scheme=parsed.scheme,
                host=parsed.hostname or "",
                port=parsed.port,
                path=parsed.path,
            )
        else:
            raise MissingCredentialsError(
                f"Neither {self.ENV_VAR} or {self.ENV_VAR_FULL} environment "
                "variables are set. Unable to resolve credentials."
            )

    async def _resolve_fields_from_env(self) -> dict[str, str]:
        fields: dict[str, str] = {}
        if filename := os.environ.get(self.ENV_VAR_AUTH_TOKEN_FILE):
            try:
                auth_token = await asyncio.to_thread(self._read_file, filename)
            except OSError as e:
                raise MissingCredentialsError(f"Unable to open {filename}.") from e
            fields["Authorization"] = auth_token
        elif auth_token := os.environ.get(self.ENV_VAR_AUTH_TOKEN):
            fields["Authorization"] = auth_token

        return fields

    def _read_file(self, filename: str) -> str:
        with open(filename) as f:
            try:
                return f.read().strip()
            except UnicodeDecodeError as e:
                raise MalformedDataError(
                    f"Unable to read valid utf-8 bytes from {filename}."
                ) from e

    async def get_identity(self) -> AWSCredentialsIdentity:
        uri = self._resolve_uri_from_env()
        fields = await self._resolve_fields_from_env()
        creds = await self._client.get_credentials(uri, fields)
        return credentials_from_document(creds, source_name=self.SOURCE_NAME)


def credentials_from_document(
    document: dict[str, Any], *, source_name: str
) -> AWSCredentialsIdentity:
    """Build credentials from a metadata service JSON document.

    :raises MissingCredentialsError: If the key id or secret are absent.
    :raises MalformedDataError: If a field has the wrong type or the expiration
        can't be parsed.
    """
    access_key_id = document.get("AccessKeyId")
    secret_access_key = document.get("SecretAccessKey")
    if not access_key_id or not secret_access_key:
        raise MissingCredentialsError(
            "AccessKeyId and SecretAccessKey are required for "
            f"{source_name} credentials"
        )
    if not isinstance(access_key_id, str) or not isinstance(secret_access_key, str):
        raise MalformedDataError(
            f"AccessKeyId and SecretAccessKey must be strings in {source_name} "
            "credentials"
        )

    try:
        return AWSCredentialsIdentity(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=document.get("Token"),
            expiration=parse_expiration(document.get("Expiration")),
            account_id=document.get("AccountId"),
            source_name=source_name,
        )
    except CredentialsError:
        raise
    except (TypeError, ValueError) as e:
        raise MalformedDataError(f"Invalid {source_name} credentials: {e}") from e
