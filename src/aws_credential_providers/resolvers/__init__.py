#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from .assume_role import AssumeRoleCredentialsResolver, AssumeRoleProfile
from .cache import (
    CachingCredentialsResolver,
    InMemoryCredentialsCache,
    JSONFileCredentialsCache,
)
from .chain import ChainedCredentialsResolver
from .container import ContainerCredentialsConfig, ContainerCredentialsResolver
from .default import create_default_chain, create_default_resolver
from .environment import EnvironmentCredentialsResolver
from .imds import IMDSConfig, IMDSCredentialsResolver
from .memoize import MemoizingCredentialsResolver
from .profile import ProfileCredentialsResolver
from .static import StaticCredentialsResolver

__all__ = (
    "AssumeRoleCredentialsResolver",
    "AssumeRoleProfile",
    "CachingCredentialsResolver",
    "ChainedCredentialsResolver",
    "ContainerCredentialsConfig",
    "ContainerCredentialsResolver",
    "EnvironmentCredentialsResolver",
    "IMDSConfig",
    "IMDSCredentialsResolver",
    "InMemoryCredentialsCache",
    "JSONFileCredentialsCache",
    "MemoizingCredentialsResolver",
    "ProfileCredentialsResolver",
    "StaticCredentialsResolver",
    "create_default_chain",
    "create_default_resolver",
)
