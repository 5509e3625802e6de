#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import logging
from collections.abc import Sequence
from typing import Final

from ..exceptions import ChainExhaustedError, CredentialsError
from ..identity import AWSCredentialsIdentity
from ..interfaces import CredentialsResolver

logger: Final = logging.getLogger(__name__)


class ChainedCredentialsResolver(CredentialsResolver):
    """Attempts to resolve credentials by checking a sequence of sub-resolvers.

    Resolvers are tried strictly in order. If a nested resolver raises a
    :py:class:`CredentialsError`, the next resolver in the chain will be attempted.
    The first successful result is returned and no later resolver is invoked. If
    every resolver fails, a :py:class:`ChainExhaustedError` carrying each failure is
    raised.
    """

    def __init__(self, resolvers: Sequence[CredentialsResolver]) -> None:
        """Construct a ChainedCredentialsResolver.

        :param resolvers: The sequence of resolvers to resolve credentials from.
        :raises ValueError: If ``resolvers`` is empty.
        """
        if not resolvers:
            raise ValueError("No providers in chain")
        self._resolvers: tuple[CredentialsResolver, ...] = tuple(resolvers)

    @property
    def resolvers(self) -> tuple[CredentialsResolver, ...]:
        return self._resolvers

    async def get_identity(self) -> AWSCredentialsIdentity:
        logger.debug("Attempting to resolve credentials from resolver chain.")
        causes: list[tuple[str, CredentialsError]] = []
        for resolver in self._resolvers:
            name = _describe(resolver)
            try:
                logger.debug("Attempting to resolve credentials from %s.", name)
                return await resolver.get_identity()
            except CredentialsError as e:
                logger.debug("Failed to resolve credentials from %s: %s", name, e)
                causes.append((name, e))

        raise ChainExhaustedError(causes)


def _describe(resolver: object) -> str:
    if type(resolver).__repr__ is object.__repr__:
        return type(resolver).__name__
    return repr(resolver)
