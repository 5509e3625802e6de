#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import logging
import os
from typing import Final

from ..config import (
    ENV_ACCESS_KEY_ID,
    ENV_ACCOUNT_ID,
    ENV_SECRET_ACCESS_KEY,
    ENV_SESSION_TOKEN,
)
from ..exceptions import MissingCredentialsError
from ..identity import AWSCredentialsIdentity
from ..interfaces import CredentialsResolver

logger: Final = logging.getLogger(__name__)


class EnvironmentCredentialsResolver(CredentialsResolver):
    """Resolves AWS Credentials from system environment variables."""

    SOURCE_NAME: Final = "env"

    async def get_identity(self) -> AWSCredentialsIdentity:
        access_key_id = os.getenv(ENV_ACCESS_KEY_ID)
        secret_access_key = os.getenv(ENV_SECRET_ACCESS_KEY)

        if not access_key_id or not secret_access_key:
            raise MissingCredentialsError(
                "Could not find environment variable credentials in "
                f"{ENV_ACCESS_KEY_ID}/{ENV_SECRET_ACCESS_KEY}"
            )

        logger.debug("Found credentials in environment variables.")
        return AWSCredentialsIdentity(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=os.getenv(ENV_SESSION_TOKEN) or None,
            account_id=os.getenv(ENV_ACCOUNT_ID) or None,
            source_name=self.SOURCE_NAME,
        )
