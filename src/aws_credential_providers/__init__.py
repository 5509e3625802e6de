#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
__version__ = "0.1.0"

from .config import DefaultChainConfig  # noqa: E402
from .exceptions import (  # noqa: E402
    ChainExhaustedError,
    CredentialsError,
    MalformedDataError,
    MissingCredentialsError,
    ProfileFileNotFoundError,
    ProfileNotFoundError,
    SourceUnavailableError,
)
from .identity import AWSCredentialsIdentity  # noqa: E402
from .interfaces import CredentialsCache, CredentialsResolver, RoleAssumer  # noqa: E402
from .resolvers import (  # noqa: E402
    AssumeRoleCredentialsResolver,
    CachingCredentialsResolver,
    ChainedCredentialsResolver,
    ContainerCredentialsResolver,
    EnvironmentCredentialsResolver,
    IMDSCredentialsResolver,
    InMemoryCredentialsCache,
    JSONFileCredentialsCache,
    MemoizingCredentialsResolver,
    ProfileCredentialsResolver,
    StaticCredentialsResolver,
    create_default_chain,
    create_default_resolver,
)

__all__ = (
    "AWSCredentialsIdentity",
    "AssumeRoleCredentialsResolver",
    "CachingCredentialsResolver",
    "ChainExhaustedError",
    "ChainedCredentialsResolver",
    "ContainerCredentialsResolver",
    "CredentialsCache",
    "CredentialsError",
    "CredentialsResolver",
    "DefaultChainConfig",
    "EnvironmentCredentialsResolver",
    "IMDSCredentialsResolver",
    "InMemoryCredentialsCache",
    "JSONFileCredentialsCache",
    "MalformedDataError",
    "MemoizingCredentialsResolver",
    "MissingCredentialsError",
    "ProfileCredentialsResolver",
    "ProfileFileNotFoundError",
    "ProfileNotFoundError",
    "RoleAssumer",
    "SourceUnavailableError",
    "StaticCredentialsResolver",
    "create_default_chain",
    "create_default_resolver",
)
