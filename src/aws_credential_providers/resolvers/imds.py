#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Final, Literal

from .. import __version__
from ..exceptions import (
    MalformedDataError,
    MissingCredentialsError,
    SourceUnavailableError,
)
from ..http import HTTPClient, HTTPRequest, HTTPRequestConfiguration, URI
from ..identity import AWSCredentialsIdentity
from ..interfaces import CredentialsResolver
from .container import credentials_from_document

logger: Final = logging.getLogger(__name__)

_USER_AGENT: Final = f"aws-credential-providers-imds-client/{__version__}"


@dataclass(init=False)
class IMDSConfig:
    """Configuration for EC2Metadata."""

    _HOST_MAPPING = MappingProxyType(
        {"IPv4": "169.254.169.254", "IPv6": "fd00:ec2::254"}
    )
    _MIN_TTL = 5
    _MAX_TTL = 21600

    endpoint_uri: URI
    endpoint_mode: Literal["IPv4", "IPv6"]
    token_ttl: int
    timeout: float
    retries: int
    ec2_instance_profile_name: str | None

    def __init__(
        self,
        *,
        endpoint_uri: URI | None = None,
        endpoint_mode: Literal["IPv4", "IPv6"] = "IPv4",
        token_ttl: int = _MAX_TTL,
        timeout: float = 1,
        retries: int = 1,
        ec2_instance_profile_name: str | None = None,
    ):
        if retries < 1:
            raise ValueError("IMDS retries must be at least 1.")
        self.endpoint_mode = endpoint_mode
        self.endpoint_uri = self._resolve_endpoint(endpoint_uri, endpoint_mode)
        self.token_ttl = self._validate_token_ttl(token_ttl)
        self.timeout = timeout
        self.retries = retries
        self.ec2_instance_profile_name = ec2_instance_profile_name

    def _validate_token_ttl(self, ttl: int) -> int:
        if not self._MIN_TTL <= ttl <= self._MAX_TTL:
            raise ValueError(
                f"Token TTL must be between {self._MIN_TTL} and "
                f"{self._MAX_TTL} seconds."
            )
        return ttl

    def _resolve_endpoint(
        self, endpoint_uri: URI | None, endpoint_mode: Literal["IPv4", "IPv6"]
    ) -> URI:
        if endpoint_uri is not None:
            return endpoint_uri

        return URI(
            scheme="http",
            host=self._HOST_MAPPING.get(endpoint_mode, self._HOST_MAPPING["IPv4"]),
            port=80,
        )


class Token:
    """Represents an IMDSv2 session token with a value and method for checking
    expiration."""

    def __init__(self, value: str, ttl: int):
        self._value = value
        self._ttl = ttl
        self._created_time = datetime.now()

    def is_expired(self) -> bool:
        return datetime.now() - self._created_time >= timedelta(seconds=self._ttl)

    @property
    def value(self) -> str:
        return self._value


class EC2Metadata:
    """Fetches paths from the instance metadata service using IMDSv2 tokens."""

    _TOKEN_PATH = "/latest/api/token"  # noqa: S105

    def __init__(self, http_client: HTTPClient, config: IMDSConfig | None = None):
        self._http_client = http_client
        self._config = config or IMDSConfig()
        self._refresh_lock = asyncio.Lock()
        self._token: Token | None = None

    def _should_refresh(self) -> bool:
        return self._token is None or self._token.is_expired()

    async def _refresh_token(self) -> None:
        async with self._refresh_lock:
            if not self._should_refresh():
                return
            request = HTTPRequest(
                method="PUT",
                destination=self._config.endpoint_uri.with_path(self._TOKEN_PATH),
                fields={
                    "User-Agent": _USER_AGENT,
                    "x-aws-ec2-metadata-token-ttl-seconds": str(
                        self._config.token_ttl
                    ),
                },
            )
            body = await self._send(request)
            self._token = Token(body, self._config.token_ttl)

    async def get_token(self) -> Token:
        if self._should_refresh():
            await self._refresh_token()
        assert self._token is not None  # noqa: S101
        return self._token

    async def get(self, *, path: str) -> str:
        token = await self.get_token()
        request = HTTPRequest(
            method="GET",
            destination=self._config.endpoint_uri.with_path(path),
            fields={
                "User-Agent": _USER_AGENT,
                "x-aws-ec2-metadata-token": token.value,
            },
        )
        return await self._send(request)

    async def _send(self, request: HTTPRequest) -> str:
        request_config = HTTPRequestConfiguration(read_timeout=self._config.timeout)
        last_exc: Exception | None = None
        for attempt in range(1, self._config.retries + 1):
            try:
                async with asyncio.timeout(self._config.timeout):
                    response = await self._http_client.send(
                        request, request_config=request_config
                    )
                    body = await response.consume_body_async()
            except Exception as e:
                logger.debug(
                    "Instance metadata request to %s failed on attempt %s: %r",
                    request.destination.path,
                    attempt,
                    e,
                )
                last_exc = e
                continue

            if response.status == 200:
                try:
                    return body.decode("utf-8")
                except UnicodeDecodeError as e:
                    raise MalformedDataError(
                        "Instance metadata service returned invalid utf-8 for "
                        f"{request.destination.path}"
                    ) from e
            last_exc = SourceUnavailableError(
                f"Instance metadata service returned {response.status} for "
                f"{request.destination.path}"
            )
            if response.status == 404:
                break

        raise SourceUnavailableError(
            f"Failed to retrieve {request.destination.path} from the instance "
            f"metadata service after {attempt} attempt(s)"
        ) from last_exc


class IMDSCredentialsResolver(CredentialsResolver):
    """Resolves AWS Credentials from an EC2 Instance Metadata Service (IMDS) client."""

    ENV_VAR_DISABLED: Final = "AWS_EC2_METADATA_DISABLED"
    SOURCE_NAME: Final = "imds"
    _METADATA_PATH_BASE = "/latest/meta-data/iam/security-credentials/"

    def __init__(self, http_client: HTTPClient, config: IMDSConfig | None = None):
        self._config = config or IMDSConfig()
        self._ec2_metadata_client = EC2Metadata(
            http_client=http_client, config=self._config
        )
        self._profile_name = self._config.ec2_instance_profile_name

    async def get_identity(self) -> AWSCredentialsIdentity:
        if os.environ.get(self.ENV_VAR_DISABLED, "").lower() == "true":
            raise MissingCredentialsError(
                f"Instance metadata credentials are disabled by {self.ENV_VAR_DISABLED}"
            )

        profile = self._profile_name
        if profile is None:
            profile = (
                await self._ec2_metadata_client.get(path=self._METADATA_PATH_BASE)
            ).strip()
            if not profile:
                raise MissingCredentialsError(
                    "No instance profile is attached to this instance"
                )
            profile = profile.splitlines()[0]

        creds_str = await self._ec2_metadata_client.get(
            path=f"{self._METADATA_PATH_BASE}{profile}"
        )
        try:
            creds = json.loads(creds_str)
        except ValueError as e:
            raise MalformedDataError(
                f"Unable to parse JSON from instance metadata for profile {profile}"
            ) from e
        if not isinstance(creds, dict):
            raise MalformedDataError(
                f"Instance metadata for profile {profile} is not a JSON object"
            )

        logger.debug("Retrieved credentials for instance profile %s.", profile)
        return credentials_from_document(creds, source_name=self.SOURCE_NAME)
