#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from ..config import (
    DEFAULT_ASSUME_ROLE_PROFILE,
    DEFAULT_PROFILE,
    DefaultChainConfig,
    default_config_file,
    default_credentials_file,
)
from ..http import AIOHTTPClient
from ..interfaces import CredentialsResolver
from .assume_role import AssumeRoleCredentialsResolver
from .cache import CachingCredentialsResolver
from .chain import ChainedCredentialsResolver
from .container import ContainerCredentialsConfig, ContainerCredentialsResolver
from .environment import EnvironmentCredentialsResolver
from .imds import IMDSConfig, IMDSCredentialsResolver
from .memoize import MemoizingCredentialsResolver
from .profile import ProfileCredentialsResolver


def create_default_chain(
    config: DefaultChainConfig | None = None,
) -> ChainedCredentialsResolver:
    """Creates the default AWS credential resolver chain, without memoization.

    The chain checks, in order: environment variables, the ``assumes_role`` profile
    of the shared credentials file, the ``profile assumes_role`` section of the
    shared config file, the ``$AWS_PROFILE`` (or ``default``) profile of the shared
    credentials file, the ``profile default`` section of the shared config file, the
    container credentials endpoint and finally the EC2 instance metadata service.
    """
    config = config or DefaultChainConfig()
    http_client = config.http_client or AIOHTTPClient()
    credentials_file = config.credentials_file or default_credentials_file()
    config_file = config.config_file or default_config_file()

    imds: CredentialsResolver = IMDSCredentialsResolver(
        http_client,
        IMDSConfig(timeout=config.imds_timeout, retries=config.imds_retries),
    )
    if config.credentials_cache is not None:
        imds = CachingCredentialsResolver(
            imds, config.credentials_cache, cache_key=config.cache_key
        )

    return ChainedCredentialsResolver(
        (
            EnvironmentCredentialsResolver(),
            AssumeRoleCredentialsResolver(
                filename=credentials_file, role_assumer=config.role_assumer
            ),
            AssumeRoleCredentialsResolver(
                profile=f"profile {DEFAULT_ASSUME_ROLE_PROFILE}",
                filename=config_file,
                role_assumer=config.role_assumer,
            ),
            ProfileCredentialsResolver(filename=credentials_file),
            ProfileCredentialsResolver(
                profile=f"profile {DEFAULT_PROFILE}", filename=config_file
            ),
            ContainerCredentialsResolver(
                http_client,
                ContainerCredentialsConfig(
                    timeout=config.container_timeout,
                    retries=config.container_retries,
                ),
            ),
            imds,
        )
    )


def create_default_resolver(
    config: DefaultChainConfig | None = None,
) -> MemoizingCredentialsResolver:
    """Creates the default AWS credential resolver.

    This is :py:func:`create_default_chain` wrapped in a
    :py:class:`MemoizingCredentialsResolver`, so credentials are resolved once and
    reused until they expire.
    """
    return MemoizingCredentialsResolver(create_default_chain(config))
