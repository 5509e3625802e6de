#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .exceptions import MalformedDataError
from .utils import ensure_utc, parse_expiration, serialize_expiration


@dataclass(frozen=True, kw_only=True)
class AWSCredentialsIdentity:
    """An immutable snapshot of AWS credentials resolved from a single source."""

    access_key_id: str
    """A unique identifier for an AWS user or role."""

    secret_access_key: str = field(repr=False)
    """A secret key used in conjunction with the access key ID to authenticate
    programmatic access to AWS services."""

    session_token: str | None = field(default=None, repr=False)
    """A temporary token used to specify the current session for the supplied
    credentials."""

    expiration: datetime | None = None
    """The expiration time of the identity.

    If time zone is provided, it is updated to UTC. The value must always be in UTC.
    Credentials without an expiration never expire.
    """

    account_id: str | None = None
    """The AWS account's ID."""

    source_name: str = "unknown"
    """The name of the source that produced these credentials."""

    def __post_init__(self) -> None:
        if not self.access_key_id:
            raise ValueError("access_key_id must be a non-empty string")
        if not self.secret_access_key:
            raise ValueError("secret_access_key must be a non-empty string")
        if self.expiration is not None:
            object.__setattr__(self, "expiration", ensure_utc(self.expiration))

    def is_expired_at(self, now: datetime) -> bool:
        """Whether the identity is expired at the given instant."""
        if self.expiration is None:
            return False
        return ensure_utc(now) >= self.expiration

    @property
    def is_expired(self) -> bool:
        """Whether the identity is expired."""
        return self.is_expired_at(datetime.now(tz=UTC))

    def to_dict(self) -> dict[str, Any]:
        """Serialize into a JSON-compatible mapping."""
        result: dict[str, Any] = {
            "AccessKeyId": self.access_key_id,
            "SecretAccessKey": self.secret_access_key,
            "Source": self.source_name,
        }
        if self.session_token is not None:
            result["SessionToken"] = self.session_token
        if self.expiration is not None:
            result["Expiration"] = serialize_expiration(self.expiration)
        if self.account_id is not None:
            result["AccountId"] = self.account_id
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AWSCredentialsIdentity":
        """Deserialize a mapping produced by :py:meth:`to_dict`.

        :raises MalformedDataError: If required fields are missing or invalid.
        """
        if not isinstance(data, Mapping):
            raise MalformedDataError(
                f"Expected a mapping of credentials, got {type(data).__name__}"
            )
        access_key_id = data.get("AccessKeyId")
        secret_access_key = data.get("SecretAccessKey")
        if not isinstance(access_key_id, str) or not isinstance(
            secret_access_key, str
        ):
            raise MalformedDataError("AccessKeyId and SecretAccessKey are required")
        try:
            return cls(
                access_key_id=access_key_id,
                secret_access_key=secret_access_key,
                session_token=data.get("SessionToken"),
                expiration=parse_expiration(data.get("Expiration")),
                account_id=data.get("AccountId"),
                source_name=data.get("Source", "unknown"),
            )
        except ValueError as e:
            raise MalformedDataError(str(e)) from e
